# ballot_ledger/ballot_runtime/events.py
from __future__ import annotations

"""
Ledger event log.

Events are for external observers only; ledger correctness never depends
on them. They are appended in commit order and fanned out to subscribers.
A subscriber that raises is logged and skipped, the committed change stays.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

log = logging.getLogger(__name__)

PROPOSAL_CREATED = "ProposalCreated"
VOTE_CAST = "VoteCast"
RESULTS_FINALIZED = "ResultsFinalized"


@dataclass(frozen=True)
class LedgerEvent:
    seq: int
    kind: str
    proposal_id: int
    ts: int
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out = {"seq": self.seq, "kind": self.kind, "proposal_id": self.proposal_id, "ts": self.ts}
        out.update(self.data)
        return out


Subscriber = Callable[[LedgerEvent], None]


class EventLog:
    """
    In-memory, append-only record of ledger events.

    Like the ledger it mirrors, the log is never truncated; it lives as long
    as the service process and is not persisted.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[LedgerEvent] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that removes it again."""
        with self._lock:
            self._subscribers.append(fn)

        def _unsubscribe() -> None:
            with self._lock:
                if fn in self._subscribers:
                    self._subscribers.remove(fn)

        return _unsubscribe

    def emit(self, kind: str, proposal_id: int, ts: int, **data: Any) -> LedgerEvent:
        with self._lock:
            event = LedgerEvent(
                seq=len(self._events),
                kind=kind,
                proposal_id=int(proposal_id),
                ts=int(ts),
                data=dict(data),
            )
            self._events.append(event)
            subscribers = list(self._subscribers)

        for fn in subscribers:
            try:
                fn(event)
            except Exception:
                log.exception("event subscriber failed for %s #%d", kind, event.seq)
        return event

    def events(self, kind: Optional[str] = None, proposal_id: Optional[int] = None) -> List[LedgerEvent]:
        with self._lock:
            out = list(self._events)
        if kind is not None:
            out = [e for e in out if e.kind == kind]
        if proposal_id is not None:
            out = [e for e in out if e.proposal_id == proposal_id]
        return out

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
