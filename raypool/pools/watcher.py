# raypool/pools/watcher.py

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union

from ..core.client import SolanaClient
from ..core.exceptions import PoolWatcherException, TransactionNotFound
from ..core.transaction import parse_transaction
from ..monitoring.base_listener import BaseLogsListener
from ..monitoring.dedup import SignatureCache
from ..monitoring.logs_event_processor import LogNotification, LogsEventProcessor
from ..utils.audit_logger import AuditLogger
from ..utils.logger import get_logger
from .assembler import assemble_pool
from .base import PoolDescriptor, now_ms
from .extractor import PoolKeysExtractor
from .resolver import MarketInfoResolver

logger = get_logger(__name__)

DEFAULT_TX_FETCH_RETRIES = 3
DEFAULT_TX_FETCH_RETRY_DELAY_SECONDS = 1.0

PoolCallback = Callable[[PoolDescriptor], Union[None, Awaitable[None]]]


class PoolWatcher:
    """
    Wires the log subscription to the pool pipeline:
    dedup -> init filter -> transaction fetch -> key extraction ->
    market lookup -> assembly -> consumer callback.
    """

    def __init__(
        self,
        client: SolanaClient,
        listener: BaseLogsListener,
        signature_cache: Optional[SignatureCache] = None,
        processor: Optional[LogsEventProcessor] = None,
        extractor: Optional[PoolKeysExtractor] = None,
        resolver: Optional[MarketInfoResolver] = None,
        audit_logger: Optional[AuditLogger] = None,
        tx_fetch_retries: int = DEFAULT_TX_FETCH_RETRIES,
        tx_fetch_retry_delay: float = DEFAULT_TX_FETCH_RETRY_DELAY_SECONDS,
        ordered_processing: bool = False,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.listener = listener
        self.signature_cache = signature_cache if signature_cache is not None else SignatureCache()
        self.processor = processor if processor is not None else LogsEventProcessor()
        self.extractor = extractor if extractor is not None else PoolKeysExtractor(processor=self.processor)
        self.resolver = resolver if resolver is not None else MarketInfoResolver(client)
        self.audit_logger = audit_logger if audit_logger is not None else AuditLogger()
        self.tx_fetch_retries = max(0, tx_fetch_retries)
        self.tx_fetch_retry_delay = tx_fetch_retry_delay
        self.ordered_processing = ordered_processing
        self.clock = clock
        self._sleep = sleep

        self._callback: Optional[PoolCallback] = None
        self._tasks: Set[asyncio.Task] = set()
        self._queue: Optional[asyncio.Queue] = None
        self.processor_task: Optional[asyncio.Task] = None
        self.stats: Dict[str, int] = {
            "notifications": 0,
            "duplicates": 0,
            "pool_inits": 0,
            "pools_emitted": 0,
            "pools_dropped": 0,
        }

    async def start(self, on_pool_detected: PoolCallback) -> None:
        """
        Runs until stop() is called or the listener gives up.

        Raises:
            ReconnectBudgetExhausted: propagated from the listener.
        """
        self._callback = on_pool_detected
        if self.ordered_processing:
            self._queue = asyncio.Queue()
            self.processor_task = asyncio.create_task(self._process_queue())
        logger.info(f"Starting PoolWatcher (ordered={self.ordered_processing})")
        try:
            await self.listener.listen(self.handle_notification)
            # Clean stop: let pools already in flight reach the consumer.
            await self.drain()
        finally:
            await self._cancel_pending()
            logger.info(f"PoolWatcher stopped. Stats: {self.stats}")

    async def stop(self) -> None:
        await self.listener.stop()

    async def handle_notification(self, notification: LogNotification) -> None:
        """Cheap checks inline; the expensive part is scheduled off the listener loop."""
        self.stats["notifications"] += 1
        signature = notification.signature

        if not self.signature_cache.check_and_mark(signature):
            self.stats["duplicates"] += 1
            logger.debug(f"Skipping already seen transaction {signature}")
            return
        if notification.err is not None:
            logger.debug(f"Skipping failed transaction {signature}: {notification.err}")
            return
        if not self.processor.is_pool_initialization(notification.logs):
            return

        self.stats["pool_inits"] += 1
        logger.info(f"Pool initialization seen in {signature}")
        if self._queue is not None:
            self._queue.put_nowait(notification)
        else:
            task = asyncio.create_task(self.process_notification(notification))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def process_notification(self, notification: LogNotification) -> Optional[PoolDescriptor]:
        """Builds and emits the descriptor for one pool-init notification. Never raises."""
        signature = notification.signature
        try:
            descriptor = await self.build_descriptor(signature)
        except PoolWatcherException as e:
            self.stats["pools_dropped"] += 1
            logger.warning(f"Dropping {signature}: {type(e).__name__}: {e}")
            self.audit_logger.log_pool_event("POOL_DROPPED", signature, error=e)
            return None
        except Exception as e:
            self.stats["pools_dropped"] += 1
            logger.error(f"Unexpected error processing {signature}: {e}", exc_info=True)
            self.audit_logger.log_pool_event("POOL_DROPPED", signature, error=e)
            return None

        self.stats["pools_emitted"] += 1
        logger.info(f"New pool detected: {descriptor} (tx {signature})")
        self.audit_logger.log_pool_event("POOL_DETECTED", signature, descriptor=descriptor)
        await self._emit(descriptor)
        return descriptor

    async def build_descriptor(self, signature: str) -> PoolDescriptor:
        payload = await self._fetch_transaction(signature)
        tx = parse_transaction(payload)
        raw_keys = self.extractor.extract(tx)
        market_info = await self.resolver.resolve(raw_keys.market_id)
        return assemble_pool(raw_keys, market_info, signature=signature, clock=self.clock)

    async def drain(self) -> None:
        """Waits until every scheduled notification has been processed."""
        if self._queue is not None:
            await self._queue.join()
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _fetch_transaction(self, signature: str) -> Dict[str, Any]:
        for attempt in range(self.tx_fetch_retries + 1):
            payload = await self.client.get_transaction_json(signature)
            if payload is not None:
                return payload
            if attempt < self.tx_fetch_retries:
                logger.debug(
                    f"Transaction {signature} not returned yet "
                    f"(attempt {attempt + 1}/{self.tx_fetch_retries + 1})"
                )
                await self._sleep(self.tx_fetch_retry_delay)
        raise TransactionNotFound(f"Transaction {signature} not found")

    async def _emit(self, descriptor: PoolDescriptor) -> None:
        if self._callback is None:
            return
        try:
            result = self._callback(descriptor)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Pool callback failed for {descriptor}: {e}", exc_info=True)

    async def _process_queue(self) -> None:
        assert self._queue is not None
        while True:
            notification = await self._queue.get()
            try:
                await self.process_notification(notification)
            finally:
                self._queue.task_done()

    async def _cancel_pending(self) -> None:
        pending = list(self._tasks)
        if self.processor_task is not None:
            pending.append(self.processor_task)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        self.processor_task = None
        self._queue = None
