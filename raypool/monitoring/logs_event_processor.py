# raypool/monitoring/logs_event_processor.py

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..core.constants import INIT_LOG_MARKER

# "Program log: initialize2: InitializeInstruction2 { nonce: 254, open_time: 1717000000,
#  init_pc_amount: 300000000000, init_coin_amount: 800000000000000 }"
_INIT_FIELD_RE = re.compile(r"(\w+):\s*(\d+)")


@dataclass
class LogNotification:
    signature: str
    logs: List[str] = field(default_factory=list)
    err: Any = None
    slot: Optional[int] = None


@dataclass(frozen=True)
class InitLogEntry:
    nonce: int
    open_time: int
    init_pc_amount: int
    init_coin_amount: int


class LogsEventProcessor:
    """
    Reads logsSubscribe notifications for the AMM program and decides which
    ones announce a new pool.
    """

    def __init__(self, marker: str = INIT_LOG_MARKER):
        self.marker = marker

    def parse_notification(self, message: Dict[str, Any]) -> Optional[LogNotification]:
        """Returns the notification carried by a websocket frame, or None for other frames."""
        if message.get("method") != "logsNotification":
            return None
        params = message.get("params")
        result = params.get("result") if isinstance(params, dict) else None
        if not isinstance(result, dict):
            return None
        value = result.get("value")
        if not isinstance(value, dict):
            return None
        signature = value.get("signature")
        if not signature:
            return None
        context = result.get("context")
        logs = value.get("logs")
        return LogNotification(
            signature=signature,
            logs=[line for line in logs if isinstance(line, str)] if isinstance(logs, list) else [],
            err=value.get("err"),
            slot=context.get("slot") if isinstance(context, dict) else None,
        )

    def is_pool_initialization(self, logs: Iterable[str]) -> bool:
        return any(self.marker in line for line in logs)

    def parse_init_log(self, logs: Iterable[str]) -> Optional[InitLogEntry]:
        """Parses the initialize2 log line, if present and complete."""
        for line in logs:
            if self.marker not in line:
                continue
            fields = {key: int(value) for key, value in _INIT_FIELD_RE.findall(line)}
            try:
                return InitLogEntry(
                    nonce=fields["nonce"],
                    open_time=fields["open_time"],
                    init_pc_amount=fields["init_pc_amount"],
                    init_coin_amount=fields["init_coin_amount"],
                )
            except KeyError:
                return None
        return None
