"""Time-ordered string IDs for accounts, companies, products, upgrades and ticks.

IDs are zero-padded to a fixed width so that text ordering in PostgreSQL
(`ORDER BY id` on the settlement journal) matches creation order.
"""

import threading
import time

ID_WIDTH = 20


class SnowflakeIdGenerator:
    """Millisecond timestamp (since 2024-01-01 UTC) followed by a 22-bit sequence."""

    _EPOCH_MS = 1_704_067_200_000
    _SEQUENCE_BITS = 22
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self) -> None:
        self._sequence = 0
        self._last_timestamp_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            ts = max(int(time.time() * 1000), self._last_timestamp_ms)
            if ts == self._last_timestamp_ms:
                self._sequence += 1
                if self._sequence > self._MAX_SEQUENCE:
                    # sequence exhausted within one millisecond: borrow the next one
                    ts += 1
                    self._sequence = 0
            else:
                self._sequence = 0
            self._last_timestamp_ms = ts
            value = ((ts - self._EPOCH_MS) << self._SEQUENCE_BITS) | self._sequence
            return str(value).zfill(ID_WIDTH)


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    return _default_generator.next_id()
