"""Module audit_log: the human-readable trail of triage decisions."""
#
# PURPOSE:
# The "terminal" of the triage feed.
# 1. Append-only list of log lines, each with a monotonic sequence number.
# 2. Optionally bounded: the oldest lines fall off once max_lines is reached.
# 3. get_since(N) lets a late consumer tail only what it has not seen.
#

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

from triage.utils.observer import Observable, Signal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    sequence: int
    line: str


class AuditLog(Observable):
    """
    Append-only audit trail.

    Guarantees:
    1. Every line gets a unique, monotonically increasing sequence number.
    2. `get_since(N)` returns exactly the retained entries with sequence > N.
    """

    def __init__(self, max_lines: Optional[int] = None):
        super().__init__()
        self._entries: Deque[AuditEntry] = deque(maxlen=max_lines)
        self._sequence = 0
        self.line_appended = Signal("line_appended")

    @property
    def max_lines(self) -> Optional[int]:
        return self._entries.maxlen

    @property
    def last_sequence(self) -> int:
        return self._sequence

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, line: str) -> AuditEntry:
        self._sequence += 1
        entry = AuditEntry(sequence=self._sequence, line=line)
        self._entries.append(entry)
        logger.info(f"[AuditLog] {line}")
        self.line_appended.emit(entry)
        return entry

    def lines(self) -> Tuple[str, ...]:
        return tuple(entry.line for entry in self._entries)

    def last_line(self) -> Optional[str]:
        return self._entries[-1].line if self._entries else None

    def get_since(self, since_sequence: int = 0) -> Tuple[List[AuditEntry], bool]:
        """
        Entries with sequence > since_sequence.

        Returns:
            Tuple of (entries, truncated) where truncated=True if lines the
            caller has not seen were already dropped by the cap.
        """
        oldest = self._entries[0].sequence if self._entries else self._sequence + 1
        truncated = since_sequence + 1 < oldest
        return [e for e in self._entries if e.sequence > since_sequence], truncated
