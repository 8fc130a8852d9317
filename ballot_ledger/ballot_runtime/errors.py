# ballot_ledger/ballot_runtime/errors.py
from __future__ import annotations

"""
Categorical ledger errors.

Every failing ledger operation raises exactly one of these and leaves all
state unchanged. `code` is the stable, snake_case identifier used in logs
and in HTTP error details.
"""


class BallotLedgerError(Exception):
    code = "ledger_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)


class InvalidDuration(BallotLedgerError):
    code = "invalid_duration"


class UnknownProposal(BallotLedgerError):
    code = "unknown_proposal"


class VotingClosed(BallotLedgerError):
    code = "voting_closed"


class VotingStillOpen(BallotLedgerError):
    code = "voting_still_open"


class AlreadyVoted(BallotLedgerError):
    code = "already_voted"


class InvalidProof(BallotLedgerError):
    code = "invalid_proof"


class NotCreator(BallotLedgerError):
    code = "not_creator"


class AlreadyFinalized(BallotLedgerError):
    code = "already_finalized"


class ResultMismatch(BallotLedgerError):
    code = "result_mismatch"


class NotFinalized(BallotLedgerError):
    code = "not_finalized"


__all__ = [
    "BallotLedgerError",
    "InvalidDuration",
    "UnknownProposal",
    "VotingClosed",
    "VotingStillOpen",
    "AlreadyVoted",
    "InvalidProof",
    "NotCreator",
    "AlreadyFinalized",
    "ResultMismatch",
    "NotFinalized",
]
