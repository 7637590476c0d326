# raypool/monitoring/logs_listener.py

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import websockets
from websockets.exceptions import WebSocketException
from solders.pubkey import Pubkey

from ..core.constants import DEFAULT_COMMITMENT
from ..core.exceptions import ReconnectBudgetExhausted, TransientNetworkFailure
from ..utils.logger import get_logger
from .base_listener import BaseLogsListener
from .logs_event_processor import LogNotification, LogsEventProcessor

logger = get_logger(__name__)

DEFAULT_RECONNECT_BASE_DELAY_SECONDS = 1.0
DEFAULT_RECONNECT_MAX_DELAY_SECONDS = 30.0
DEFAULT_MAX_RECONNECT_ATTEMPTS = 5

SUBSCRIBE_REQUEST_ID = 1

# Everything that means "the subscription is gone, build a new one".
SUBSCRIPTION_ERRORS = (
    WebSocketException,
    OSError,
    asyncio.TimeoutError,
    TransientNetworkFailure,
)


class LogsListener(BaseLogsListener):
    """
    Subscribes to Solana program logs via logsSubscribe and hands every
    notification to a callback, reconnecting with exponential backoff
    when the subscription breaks.
    """

    def __init__(
        self,
        wss_endpoint: str,
        program_id: Pubkey,
        commitment: str = DEFAULT_COMMITMENT,
        reconnect_base_delay: float = DEFAULT_RECONNECT_BASE_DELAY_SECONDS,
        reconnect_max_delay: float = DEFAULT_RECONNECT_MAX_DELAY_SECONDS,
        max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS,
        processor: Optional[LogsEventProcessor] = None,
        connect: Callable[..., Any] = websockets.connect,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        super().__init__()
        self.wss_endpoint = wss_endpoint
        self.program_id = program_id
        self.commitment = commitment
        self.reconnect_base_delay = reconnect_base_delay
        self.reconnect_max_delay = reconnect_max_delay
        self.max_reconnect_attempts = max_reconnect_attempts
        self.processor = processor if processor is not None else LogsEventProcessor()
        self._connect = connect
        self._sleep = sleep
        self._ws = None
        self._reconnect_attempts = 0
        self.subscription_id: Optional[int] = None

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    def reconnect_delay(self, attempt: int) -> float:
        """Backoff for the given attempt number: base * 2^attempt, capped."""
        return min(self.reconnect_base_delay * (2 ** attempt), self.reconnect_max_delay)

    async def listen(
        self,
        on_event: Callable[[LogNotification], Awaitable[None]],
    ) -> None:
        """
        Runs until stop() is called. A stop requested before listen() starts
        is honoured; a stopped listener stays stopped.

        Raises:
            ReconnectBudgetExhausted: the subscription failed again after
                max_reconnect_attempts consecutive reconnects.
        """
        while not self._stop_event.is_set():
            try:
                await self._subscribe_and_stream(on_event)
            except SUBSCRIPTION_ERRORS as e:
                if self._stop_event.is_set():
                    break
                logger.error(f"Error in log subscription: {e!r}")
                await self._wait_before_reconnect()
            else:
                if not self._stop_event.is_set():
                    logger.warning("Log stream ended without a stop request.")
                    await self._wait_before_reconnect()
        logger.info("LogsListener stopped.")

    async def stop(self) -> None:
        """Stops listening and closes the WebSocket."""
        await super().stop()
        if self._ws is not None:
            await self._ws.close()

    async def _wait_before_reconnect(self) -> None:
        if self._reconnect_attempts >= self.max_reconnect_attempts:
            logger.error(
                "Max reconnection attempts reached. "
                "Please check your connection or try again later."
            )
            raise ReconnectBudgetExhausted(
                f"Log subscription failed after {self._reconnect_attempts} reconnect attempts"
            )
        self._reconnect_attempts += 1
        delay = self.reconnect_delay(self._reconnect_attempts)
        logger.info(
            f"Attempting to reconnect in {delay:g} seconds... "
            f"(Attempt {self._reconnect_attempts}/{self.max_reconnect_attempts})"
        )
        await self._sleep(delay)

    def _subscribe_request(self) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": SUBSCRIBE_REQUEST_ID,
            "method": "logsSubscribe",
            "params": [
                {"mentions": [str(self.program_id)]},
                {"commitment": self.commitment},
            ],
        }

    async def _subscribe_and_stream(
        self,
        on_event: Callable[[LogNotification], Awaitable[None]],
    ) -> None:
        logger.info(f"Setting up log subscription for {self.program_id} on {self.wss_endpoint}...")
        # Each attempt opens its own socket; leaving the block closes it.
        async with self._connect(self.wss_endpoint, ping_interval=20, ping_timeout=60) as ws:
            self._ws = ws
            try:
                await ws.send(json.dumps(self._subscribe_request()))
                self.subscription_id = await self._await_confirmation(ws)
                # Reset reconnect attempts on successful subscription
                self._reconnect_attempts = 0
                logger.info(f"Successfully subscribed (subscription {self.subscription_id})")

                while not self._stop_event.is_set():
                    raw = await ws.recv()
                    notification = self._decode_frame(raw)
                    if notification is not None:
                        await on_event(notification)
            finally:
                self._ws = None

    async def _await_confirmation(self, ws) -> int:
        while True:
            raw = await ws.recv()
            try:
                msg = json.loads(raw)
            except (TypeError, ValueError) as e:
                raise TransientNetworkFailure(f"Unreadable subscription reply: {raw!r}") from e
            if not isinstance(msg, dict):
                raise TransientNetworkFailure(f"Unexpected subscription reply: {raw!r}")
            if msg.get("id") != SUBSCRIBE_REQUEST_ID:
                continue
            if "error" in msg:
                raise TransientNetworkFailure(f"logsSubscribe rejected: {msg['error']}")
            return msg.get("result")

    def _decode_frame(self, raw: Any) -> Optional[LogNotification]:
        try:
            msg = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-JSON frame: {raw!r:.120}")
            return None
        if not isinstance(msg, dict):
            return None
        return self.processor.parse_notification(msg)
