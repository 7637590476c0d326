# raypool/pools/base.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from solders.pubkey import Pubkey


@dataclass(frozen=True)
class RawPoolKeys:
    """Pool keys recovered from the initialize2 transaction alone."""
    id: Pubkey
    program_id: Pubkey
    authority: Pubkey
    open_orders: Pubkey
    target_orders: Pubkey
    base_mint: Pubkey
    quote_mint: Pubkey
    base_vault: Pubkey
    quote_vault: Pubkey
    withdraw_queue: Pubkey
    lp_vault: Pubkey
    lp_mint: Pubkey
    lp_decimals: int
    base_decimals: int
    quote_decimals: int
    market_version: int
    market_program_id: Pubkey
    market_id: Pubkey
    base_and_quote_swapped: bool
    open_time: Optional[int] = None


@dataclass(frozen=True)
class MarketInfo:
    base_vault: Pubkey
    quote_vault: Pubkey
    bids: Pubkey
    asks: Pubkey
    event_queue: Pubkey


@dataclass(frozen=True)
class PoolKeys:
    """Everything needed to trade against a v4 pool (LiquidityPoolKeysV4)."""
    id: Pubkey
    program_id: Pubkey
    authority: Pubkey
    open_orders: Pubkey
    target_orders: Pubkey
    base_mint: Pubkey
    quote_mint: Pubkey
    base_vault: Pubkey
    quote_vault: Pubkey
    withdraw_queue: Pubkey
    lp_vault: Pubkey
    lp_mint: Pubkey
    lp_decimals: int
    base_decimals: int
    quote_decimals: int
    market_version: int
    market_program_id: Pubkey
    market_id: Pubkey
    market_authority: Pubkey
    market_base_vault: Pubkey
    market_quote_vault: Pubkey
    market_bids: Pubkey
    market_asks: Pubkey
    market_event_queue: Pubkey
    open_time: Optional[int] = None


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


@dataclass(frozen=True, eq=False)
class PoolDescriptor:
    address: Pubkey
    base_mint: Pubkey
    quote_mint: Pubkey
    base_decimals: int
    quote_decimals: int
    # Detection time in ms, not block time
    timestamp: int = field(default_factory=now_ms)
    signature: Optional[str] = None
    keys: Optional[PoolKeys] = None

    @property
    def address_str(self) -> str:
        return str(self.address)

    def __hash__(self): return hash(self.address_str)

    def __eq__(self, other):
        if not isinstance(other, PoolDescriptor): return NotImplemented
        return self.address == other.address

    def __str__(self):
        base = str(self.base_mint)
        quote = str(self.quote_mint)
        return (
            f"RaydiumPool(Pair={base[:4]}...{base[-4:]}/{quote[:4]}...{quote[-4:]}, "
            f"ID={self.address_str[:8]}...)"
        )

    def to_dict(self) -> dict:
        return {
            "address": self.address_str,
            "baseMint": str(self.base_mint),
            "quoteMint": str(self.quote_mint),
            "baseDecimals": self.base_decimals,
            "quoteDecimals": self.quote_decimals,
            "timestamp": self.timestamp,
            "signature": self.signature,
        }
