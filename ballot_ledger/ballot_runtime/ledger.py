# ballot_ledger/ballot_runtime/ledger.py
"""
ballot_ledger/ballot_runtime/ledger.py
--------------------------------------

Confidential-ballot ledger.

A creator opens a timed proposal, participants submit encrypted votes that
the ledger stores but cannot read, and after the deadline the creator
submits a plaintext tally. The ledger accepts the tally only if it adds up
to the number of votes it counted itself.

Per proposal the phases are:

    open       now < deadline, accepting votes
    closed     now >= deadline, creator may read the encrypted tally
    finalized  results frozen and public

Production invariants:

- `vote_count == len(voters) == len(encrypted_tally)` at all times.
- `finalized` implies `sum(results) == vote_count`.
- `finalized` flips false -> true at most once.
- No vote is accepted once `now >= deadline`.
- Every operation runs under one lock across its whole read-check-write
  sequence and either commits fully or raises without touching state.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from .attestation import ProofVerifier
from .clock import SystemClock
from .errors import (
    AlreadyFinalized,
    AlreadyVoted,
    InvalidDuration,
    InvalidProof,
    NotCreator,
    NotFinalized,
    ResultMismatch,
    UnknownProposal,
    VotingClosed,
    VotingStillOpen,
)
from .events import PROPOSAL_CREATED, RESULTS_FINALIZED, VOTE_CAST, EventLog
from .handles import EncryptedValue

log = logging.getLogger(__name__)

OPTION_COUNT = 4

PHASE_OPEN = "open"
PHASE_CLOSED = "closed"
PHASE_FINALIZED = "finalized"


@dataclass
class Proposal:
    id: int
    title: str
    creator: str
    created_at: int
    deadline: int
    vote_count: int = 0
    finalized: bool = False
    results: Optional[Tuple[int, ...]] = None
    encrypted_tally: List[EncryptedValue] = field(default_factory=list)
    voters: Set[str] = field(default_factory=set)

    def phase(self, now: int) -> str:
        if self.finalized:
            return PHASE_FINALIZED
        if now < self.deadline:
            return PHASE_OPEN
        return PHASE_CLOSED


@dataclass(frozen=True)
class ProposalView:
    """Read-only metadata projection of a proposal."""

    id: int
    title: str
    creator: str
    deadline: int
    finalized: bool
    vote_count: int
    phase: str


def _is_count(x: object) -> bool:
    return isinstance(x, int) and not isinstance(x, bool) and x >= 0


class BallotLedger:
    """
    Append-only collection of proposals, indexed by creation order.

    The caller identity is passed explicitly to every operation; the
    hosting environment (HTTP layer, CLI, tests) is responsible for
    authenticating it.

    Public entrypoints:

        create_proposal(caller, title, duration_seconds) -> id
        cast_vote(caller, proposal_id, encrypted_choice, validity_proof)
        get_encrypted_votes(caller, proposal_id) -> tuple of handles
        finalize_results(caller, proposal_id, results)
        get_results(proposal_id) -> tuple of counts
        get_proposal(proposal_id) -> ProposalView
        get_proposal_count() -> int
        has_voted(proposal_id, identity) -> bool
    """

    def __init__(
        self,
        verifier: ProofVerifier,
        *,
        clock=None,
        events: Optional[EventLog] = None,
        option_count: int = OPTION_COUNT,
    ) -> None:
        if int(option_count) < 1:
            raise ValueError("option_count must be >= 1")
        self.verifier = verifier
        self.clock = clock or SystemClock()
        self.events = events or EventLog()
        self.option_count = int(option_count)
        self._lock = threading.RLock()
        self._proposals: List[Proposal] = []

    # ------------------------------------------------------------------
    # Internal helpers (call with the lock held)
    # ------------------------------------------------------------------

    def _get(self, proposal_id: int) -> Proposal:
        if isinstance(proposal_id, bool) or not isinstance(proposal_id, int):
            raise UnknownProposal(f"unknown proposal {proposal_id!r}")
        if not 0 <= proposal_id < len(self._proposals):
            raise UnknownProposal(f"unknown proposal {proposal_id}")
        return self._proposals[proposal_id]

    def _view(self, p: Proposal, now: int) -> ProposalView:
        return ProposalView(
            id=p.id,
            title=p.title,
            creator=p.creator,
            deadline=p.deadline,
            finalized=p.finalized,
            vote_count=p.vote_count,
            phase=p.phase(now),
        )

    # ------------------------------------------------------------------
    # State-changing operations
    # ------------------------------------------------------------------

    def create_proposal(self, caller: str, title: str, duration_seconds: int) -> int:
        if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int):
            raise InvalidDuration("duration must be an integer number of seconds")
        if duration_seconds <= 0:
            raise InvalidDuration("duration must be > 0")

        with self._lock:
            now = self.clock.now()
            pid = len(self._proposals)
            proposal = Proposal(
                id=pid,
                title=str(title),
                creator=str(caller),
                created_at=now,
                deadline=now + duration_seconds,
            )
            self._proposals.append(proposal)
            log.info("proposal %d created by %s (deadline=%d)", pid, proposal.creator, proposal.deadline)
            self.events.emit(PROPOSAL_CREATED, pid, now, creator=proposal.creator, deadline=proposal.deadline)
            return pid

    def cast_vote(
        self,
        caller: str,
        proposal_id: int,
        encrypted_choice: EncryptedValue,
        validity_proof: bytes,
    ) -> None:
        voter = str(caller)
        with self._lock:
            p = self._get(proposal_id)
            now = self.clock.now()
            if now >= p.deadline:
                log.debug("vote on proposal %d rejected: voting closed", p.id)
                raise VotingClosed(f"voting on proposal {p.id} closed at {p.deadline}")
            if voter in p.voters:
                log.debug("vote on proposal %d rejected: %s already voted", p.id, voter)
                raise AlreadyVoted(f"{voter} already voted on proposal {p.id}")
            if not isinstance(encrypted_choice, EncryptedValue):
                raise InvalidProof("encrypted choice must be an EncryptedValue handle")
            if not self.verifier.verify(encrypted_choice, validity_proof, proposal_id=p.id, voter=voter):
                log.debug("vote on proposal %d rejected: invalid proof from %s", p.id, voter)
                raise InvalidProof(f"validity proof rejected for proposal {p.id}")

            p.voters.add(voter)
            p.vote_count += 1
            p.encrypted_tally.append(encrypted_choice)
            log.info("vote %d accepted on proposal %d", p.vote_count, p.id)
            self.events.emit(VOTE_CAST, p.id, now, voter=voter)

    def finalize_results(self, caller: str, proposal_id: int, results: Sequence[int]) -> None:
        with self._lock:
            p = self._get(proposal_id)
            now = self.clock.now()
            if str(caller) != p.creator:
                raise NotCreator(f"only the creator may finalize proposal {p.id}")
            if now < p.deadline:
                raise VotingStillOpen(f"voting on proposal {p.id} is open until {p.deadline}")
            if p.finalized:
                raise AlreadyFinalized(f"proposal {p.id} is already finalized")

            try:
                counts = tuple(results)
            except TypeError:
                raise ResultMismatch("results must be a sequence of counts") from None
            if len(counts) != self.option_count:
                raise ResultMismatch(f"expected {self.option_count} results, got {len(counts)}")
            if not all(_is_count(c) for c in counts):
                raise ResultMismatch("results must be non-negative integers")
            if sum(counts) != p.vote_count:
                log.debug("finalize of proposal %d rejected: sum %d != %d votes", p.id, sum(counts), p.vote_count)
                raise ResultMismatch(f"results sum to {sum(counts)} but {p.vote_count} votes were cast")

            p.results = counts
            p.finalized = True
            log.info("proposal %d finalized with %s", p.id, list(counts))
            self.events.emit(RESULTS_FINALIZED, p.id, now, results=list(counts))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_encrypted_votes(self, caller: str, proposal_id: int) -> Tuple[EncryptedValue, ...]:
        with self._lock:
            p = self._get(proposal_id)
            if str(caller) != p.creator:
                raise NotCreator(f"only the creator may read the tally of proposal {p.id}")
            if self.clock.now() < p.deadline:
                raise VotingStillOpen(f"voting on proposal {p.id} is open until {p.deadline}")
            return tuple(p.encrypted_tally)

    def get_results(self, proposal_id: int) -> Tuple[int, ...]:
        with self._lock:
            p = self._get(proposal_id)
            if not p.finalized or p.results is None:
                raise NotFinalized(f"proposal {p.id} is not finalized")
            return p.results

    def get_proposal(self, proposal_id: int) -> ProposalView:
        with self._lock:
            return self._view(self._get(proposal_id), self.clock.now())

    def get_proposal_count(self) -> int:
        with self._lock:
            return len(self._proposals)

    def has_voted(self, proposal_id: int, identity: str) -> bool:
        with self._lock:
            return str(identity) in self._get(proposal_id).voters

    def list_proposals(self) -> List[ProposalView]:
        with self._lock:
            now = self.clock.now()
            return [self._view(p, now) for p in self._proposals]
