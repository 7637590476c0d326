# raypool/core/client.py

import json
from typing import Any, Dict, Optional

from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.rpc.responses import GetAccountInfoResp, GetTransactionResp

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed
from solana.rpc.core import RPCException

from .exceptions import TransactionDecodeError, TransientNetworkFailure
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30
# Highest transaction version the pipeline understands (v0 = address lookup tables).
MAX_SUPPORTED_TRANSACTION_VERSION = 0


class SolanaClient:
    """
    Thin read-only wrapper over solana-py's AsyncClient exposing the two
    lookups the pool pipeline needs.
    """

    def __init__(
        self,
        rpc_endpoint: str,
        commitment: Commitment = Confirmed,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        async_client: Optional[AsyncClient] = None,
    ) -> None:
        self.rpc_endpoint = rpc_endpoint
        self.commitment = commitment
        self.timeout_seconds = timeout_seconds
        self.async_client = async_client if async_client is not None else AsyncClient(
            rpc_endpoint, commitment=commitment, timeout=timeout_seconds
        )
        logger.info(f"SolanaClient initialized: {rpc_endpoint} @ {commitment}")

    async def __aenter__(self) -> "SolanaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        try:
            await self.async_client.close()
            logger.info("SolanaClient connection closed.")
        except Exception as e:
            logger.warning(f"Error closing SolanaClient: {e}")

    async def get_transaction_json(
        self,
        tx_sig_str: str,
        max_supported_transaction_version: Optional[int] = MAX_SUPPORTED_TRANSACTION_VERSION,
    ) -> Optional[Dict[str, Any]]:
        """
        Fetches a transaction with jsonParsed encoding and returns the RPC
        `result` object as plain JSON, or None if the node does not have it.
        """
        try:
            sig = Signature.from_string(tx_sig_str)
        except ValueError as e:
            raise TransactionDecodeError(f"Invalid signature {tx_sig_str!r}") from e
        try:
            resp: GetTransactionResp = await self.async_client.get_transaction(
                sig,
                encoding="jsonParsed",
                commitment=self.commitment,
                max_supported_transaction_version=max_supported_transaction_version,
            )
        except (SolanaRpcException, RPCException) as e:
            raise TransientNetworkFailure(f"get_transaction {tx_sig_str} failed: {e}") from e

        if resp.value is None:
            logger.debug(f"Transaction {tx_sig_str} not available yet")
            return None
        return json.loads(resp.value.to_json())

    async def get_account_data(
        self,
        pubkey: Pubkey,
        commitment: Optional[Commitment] = None,
    ) -> Optional[bytes]:
        """Returns the raw data of an account, or None if it does not exist."""
        try:
            resp: GetAccountInfoResp = await self.async_client.get_account_info(
                pubkey,
                commitment=commitment or self.commitment,
                encoding="base64",
            )
        except (SolanaRpcException, RPCException) as e:
            raise TransientNetworkFailure(f"get_account_info {pubkey} failed: {e}") from e

        if resp.value is None:
            return None
        return bytes(resp.value.data)
