import pathlib
import sys

import pytest

# Ensure the repo root (containing the ballot_ledger package dir) is on sys.path.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ballot_ledger.ballot_runtime.attestation import InputAttester
from ballot_ledger.ballot_runtime.clock import ManualClock
from ballot_ledger.ballot_runtime.ledger import BallotLedger
from ballot_ledger.ballot_runtime.sealing import BallotSealer

GENESIS_TS = 1_700_000_000
CREATOR = "0xC0FFEE"


@pytest.fixture(scope="session")
def attester():
    return InputAttester.generate()


@pytest.fixture
def clock():
    return ManualClock(start=GENESIS_TS)


@pytest.fixture
def ledger(attester, clock):
    """Fresh ledger per test, sharing the session attester."""
    return BallotLedger(attester.verifier(), clock=clock)


@pytest.fixture
def sealer_for():
    sealers = {}

    def _get(proposal_id):
        if proposal_id not in sealers:
            sealers[proposal_id] = BallotSealer.generate(proposal_id)
        return sealers[proposal_id]

    return _get


@pytest.fixture
def vote(ledger, attester, sealer_for):
    """Seal, attest and cast one ballot; returns the sealed handle."""

    def _vote(proposal_id, voter, choice):
        sealed = sealer_for(proposal_id).seal(choice)
        proof = attester.attest(sealed, choice, proposal_id=proposal_id, voter=voter)
        ledger.cast_vote(voter, proposal_id, sealed, proof)
        return sealed

    return _vote
