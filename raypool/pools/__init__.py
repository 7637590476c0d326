# raypool/pools/__init__.py

from .assembler import assemble_pool
from .base import MarketInfo, PoolDescriptor, PoolKeys, RawPoolKeys
from .extractor import INITIALIZE2_ACCOUNT_INDEX, PoolKeysExtractor
from .resolver import MarketInfoResolver
from .watcher import PoolWatcher

__all__ = [
    "assemble_pool",
    "MarketInfo",
    "PoolDescriptor",
    "PoolKeys",
    "RawPoolKeys",
    "INITIALIZE2_ACCOUNT_INDEX",
    "PoolKeysExtractor",
    "MarketInfoResolver",
    "PoolWatcher",
]
