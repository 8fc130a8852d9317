# ballot_ledger/ballot_runtime/__init__.py
"""
Ballot runtime: the proposal / vote / finalize state machine and the two
external capabilities it consumes (validity attestation, sealed-ballot
decryption).
"""

from .clock import ManualClock, SystemClock
from .errors import BallotLedgerError
from .events import EventLog, LedgerEvent
from .handles import EncryptedValue
from .ledger import OPTION_COUNT, BallotLedger, ProposalView

__all__ = [
    "BallotLedger",
    "BallotLedgerError",
    "EncryptedValue",
    "EventLog",
    "LedgerEvent",
    "ManualClock",
    "OPTION_COUNT",
    "ProposalView",
    "SystemClock",
]
