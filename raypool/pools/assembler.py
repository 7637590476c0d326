# raypool/pools/assembler.py

from typing import Callable, Optional

from ..core.market import derive_market_authority
from .base import MarketInfo, PoolDescriptor, PoolKeys, RawPoolKeys, now_ms


def assemble_pool(
    raw_keys: RawPoolKeys,
    market_info: MarketInfo,
    signature: Optional[str] = None,
    clock: Callable[[], int] = now_ms,
) -> PoolDescriptor:
    """Merges transaction-derived keys with market info; stamps detection time."""
    keys = PoolKeys(
        id=raw_keys.id,
        program_id=raw_keys.program_id,
        authority=raw_keys.authority,
        open_orders=raw_keys.open_orders,
        target_orders=raw_keys.target_orders,
        base_mint=raw_keys.base_mint,
        quote_mint=raw_keys.quote_mint,
        base_vault=raw_keys.base_vault,
        quote_vault=raw_keys.quote_vault,
        withdraw_queue=raw_keys.withdraw_queue,
        lp_vault=raw_keys.lp_vault,
        lp_mint=raw_keys.lp_mint,
        lp_decimals=raw_keys.lp_decimals,
        base_decimals=raw_keys.base_decimals,
        quote_decimals=raw_keys.quote_decimals,
        market_version=raw_keys.market_version,
        market_program_id=raw_keys.market_program_id,
        market_id=raw_keys.market_id,
        market_authority=derive_market_authority(raw_keys.market_program_id, raw_keys.market_id),
        market_base_vault=market_info.base_vault,
        market_quote_vault=market_info.quote_vault,
        market_bids=market_info.bids,
        market_asks=market_info.asks,
        market_event_queue=market_info.event_queue,
        open_time=raw_keys.open_time,
    )
    return PoolDescriptor(
        address=raw_keys.id,
        base_mint=raw_keys.base_mint,
        quote_mint=raw_keys.quote_mint,
        base_decimals=raw_keys.base_decimals,
        quote_decimals=raw_keys.quote_decimals,
        timestamp=clock(),
        signature=signature,
        keys=keys,
    )
