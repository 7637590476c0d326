# raypool/pools/resolver.py

from solders.pubkey import Pubkey

from ..core.client import SolanaClient
from ..core.exceptions import AccountNotFound
from ..core.market import decode_market_account
from ..utils.logger import get_logger
from .base import MarketInfo

logger = get_logger(__name__)


class MarketInfoResolver:
    """Fetches a pool's order-book market account and pulls out its vaults and queues."""

    def __init__(self, client: SolanaClient):
        self.client = client

    async def resolve(self, market_id: Pubkey) -> MarketInfo:
        data = await self.client.get_account_data(market_id)
        if not data:
            raise AccountNotFound(f"Market account {market_id} not found")

        layout = decode_market_account(data)
        logger.debug(f"Decoded market {market_id}: bids={layout.bids} asks={layout.asks}")
        return MarketInfo(
            base_vault=layout.base_vault,
            quote_vault=layout.quote_vault,
            bids=layout.bids,
            asks=layout.asks,
            event_queue=layout.event_queue,
        )
