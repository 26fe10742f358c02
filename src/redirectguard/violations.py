# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

import threading
from collections import deque
from typing import Iterator, Optional

from redirectguard.constraints import ensure
from redirectguard.types import Violation


class ViolationRecorder:
    """Append-only log of rejected redirects. With `maxlen`, the oldest entries
    are dropped first."""

    def __init__(self, maxlen: Optional[int] = None) -> None:
        ensure(maxlen is None or maxlen > 0, ValueError, "maxlen must be positive")

        self._entries: deque[Violation] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    @property
    def maxlen(self) -> Optional[int]:
        return self._entries.maxlen

    def record(self, violation: Violation) -> None:
        with self._lock:
            self._entries.append(violation)

    def list(self) -> list[Violation]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.list())
