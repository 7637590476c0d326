# raypool/monitoring/__init__.py

# Import classes using relative paths within this package
from .base_listener import BaseLogsListener
from .dedup import SignatureCache
from .logs_listener import LogsListener
from .logs_event_processor import InitLogEntry, LogNotification, LogsEventProcessor

__all__ = [
    "BaseLogsListener",
    "SignatureCache",
    "LogsListener",
    "InitLogEntry",
    "LogNotification",
    "LogsEventProcessor",
]
