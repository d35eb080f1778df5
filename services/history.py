import json
import threading
import uuid
from collections import OrderedDict, deque
from datetime import datetime, timezone
from typing import List, Optional

from config.settings import HISTORY_LIMIT, HISTORY_SESSION_LIMIT
from services.schemas import ScanHistoryEntry, ScanResult


class ScanHistory:
    """Bounded, newest-first log of scan results for one session."""

    def __init__(self, limit: int = HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._entries = deque(maxlen=limit)

    def record(
        self,
        result: ScanResult,
        entry_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> ScanHistoryEntry:
        entry = ScanHistoryEntry(
            **result.model_dump(),
            id=entry_id or uuid.uuid4().hex,
            timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        )
        # appendleft on a bounded deque drops the oldest entry
        self._entries.appendleft(entry)
        return entry

    def entries(self) -> List[ScanHistoryEntry]:
        return list(self._entries)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def to_json(self) -> str:
        return json.dumps([entry.model_dump(mode="json", by_alias=True) for entry in self._entries])

    @classmethod
    def from_json(cls, raw: str, limit: int = HISTORY_LIMIT) -> "ScanHistory":
        history = cls(limit=limit)
        for item in json.loads(raw or "[]")[:limit]:
            history._entries.append(ScanHistoryEntry.model_validate(item))
        return history


class SessionRegistry:
    """
    Hands out one ScanHistory per client session id.

    At most `max_sessions` histories are kept; creating one more drops the
    least recently used session.
    """

    def __init__(self, limit: int = HISTORY_LIMIT, max_sessions: int = HISTORY_SESSION_LIMIT):
        if max_sessions < 1:
            raise ValueError("Session limit must be at least 1")
        self.limit = limit
        self.max_sessions = max_sessions
        self._histories: "OrderedDict[str, ScanHistory]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[ScanHistory]:
        """History for a session that has recorded scans, without creating one."""
        with self._lock:
            history = self._histories.get(session_id)
            if history is not None:
                self._histories.move_to_end(session_id)
            return history

    def history_for(self, session_id: str) -> ScanHistory:
        with self._lock:
            history = self._histories.get(session_id)
            if history is None:
                history = self._histories[session_id] = ScanHistory(limit=self.limit)
                while len(self._histories) > self.max_sessions:
                    self._histories.popitem(last=False)
            else:
                self._histories.move_to_end(session_id)
            return history

    def __len__(self) -> int:
        return len(self._histories)
