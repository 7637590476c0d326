# raypool/monitoring/dedup.py

import threading
from collections import OrderedDict
from typing import Optional


class SignatureCache:
    """
    In-memory record of transaction signatures already handed to the pipeline.

    Unbounded unless max_size is given, in which case the oldest signature is
    evicted once the cache is full. State lives for the process lifetime and
    survives websocket reconnects.
    """

    def __init__(self, max_size: Optional[int] = None):
        if max_size is not None and max_size <= 0:
            max_size = None
        self.max_size = max_size
        self._signatures: "OrderedDict[str, None]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._signatures)

    def __contains__(self, signature: str) -> bool:
        return self.seen(signature)

    def seen(self, signature: str) -> bool:
        with self._lock:
            return signature in self._signatures

    def mark_seen(self, signature: str) -> None:
        with self._lock:
            self._add(signature)

    def check_and_mark(self, signature: str) -> bool:
        """Marks the signature and returns True if it had not been seen before."""
        with self._lock:
            if signature in self._signatures:
                return False
            self._add(signature)
            return True

    def _add(self, signature: str) -> None:
        self._signatures[signature] = None
        if self.max_size is not None:
            while len(self._signatures) > self.max_size:
                self._signatures.popitem(last=False)
