# raypool/core/__init__.py

# Import directly available classes/modules via relative imports
from .client import SolanaClient
from .market import MarketLayout, decode_market_account, derive_market_authority
from .pubkeys import RaydiumAddresses, SolanaProgramAddresses
from .transaction import ParsedTransaction, parse_transaction

__all__ = [
    "SolanaClient",
    "MarketLayout",
    "decode_market_account",
    "derive_market_authority",
    "RaydiumAddresses",
    "SolanaProgramAddresses",
    "ParsedTransaction",
    "parse_transaction",
]
