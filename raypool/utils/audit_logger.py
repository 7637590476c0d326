# raypool/utils/audit_logger.py

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from .logger import get_logger  # Use the main logger setup

if TYPE_CHECKING:
    # pools imports this module
    from ..pools.base import PoolDescriptor

audit_log = get_logger("AuditLogger")  # Dedicated logger instance


class AuditLogger:
    """
    Writes one JSON line per pipeline outcome for later analysis.
    """

    def __init__(self, log_to_file: bool = False, filepath: str = "pool_audit.log"):
        self.log_to_file = log_to_file
        self.filepath = filepath
        audit_log.info("AuditLogger initialized.")

    def log_pool_event(
            self,
            event_type: str,  # "POOL_DETECTED" or "POOL_DROPPED"
            signature: str,
            descriptor: Optional["PoolDescriptor"] = None,
            error: Optional[BaseException] = None,
            extra_data: Optional[dict] = None
    ) -> dict:
        """Logs a pool-related event and returns the entry written."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type.upper(),
            "signature": signature,
            "error": str(error) if error else None,
            "error_type": type(error).__name__ if error else None,
        }

        if descriptor:
            log_entry.update(descriptor.to_dict())
            if descriptor.keys:
                log_entry["market_id"] = str(descriptor.keys.market_id)
                log_entry["lp_mint"] = str(descriptor.keys.lp_mint)
                log_entry["open_time"] = descriptor.keys.open_time

        if extra_data:
            log_entry.update(extra_data)

        log_message = json.dumps(log_entry)
        audit_log.info(log_message)

        if self.log_to_file:
            try:
                with open(self.filepath, "a") as f:
                    f.write(log_message + "\n")
            except OSError as e:
                audit_log.error(f"Failed to write audit log to file {self.filepath}: {e}")
        return log_entry
