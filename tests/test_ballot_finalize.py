# tests/test_ballot_finalize.py

import pytest

from ballot_ledger.ballot_runtime.errors import (
    AlreadyFinalized,
    NotCreator,
    NotFinalized,
    ResultMismatch,
    UnknownProposal,
    VotingClosed,
    VotingStillOpen,
)
from ballot_ledger.ballot_runtime.events import RESULTS_FINALIZED
from ballot_ledger.ballot_runtime.ledger import PHASE_FINALIZED

from conftest import CREATOR


# ============================================================
# Finalization
# ============================================================


def test_finalize_before_deadline_rejected(ledger):
    pid = ledger.create_proposal(CREATOR, "Test Vote", 1)
    with pytest.raises(VotingStillOpen):
        ledger.finalize_results(CREATOR, pid, [1, 1, 1, 1])
    with pytest.raises(VotingStillOpen):
        ledger.finalize_results(CREATOR, pid, [0, 0, 0, 0])
    assert ledger.get_proposal(pid).finalized is False


def test_non_creator_cannot_finalize(ledger, clock):
    pid = ledger.create_proposal(CREATOR, "Test Vote", 1)
    clock.advance(256)
    with pytest.raises(NotCreator):
        ledger.finalize_results("0xV1", pid, [1, 1, 1, 1])
    with pytest.raises(NotCreator):
        ledger.finalize_results("0xV1", pid, [0, 0, 0, 0])
    assert ledger.get_proposal(pid).finalized is False


def test_short_proposal_lifecycle(ledger, clock, vote):
    """
    Duration 1, advance past the deadline:
    - votes fail with VotingClosed
    - a non-zero tally against zero votes fails with ResultMismatch
    - [0, 0, 0, 0] finalizes
    - any further finalize fails with AlreadyFinalized
    """
    pid = ledger.create_proposal(CREATOR, "Test Vote", 1)
    clock.advance(256)

    with pytest.raises(VotingClosed):
        vote(pid, "0xV1", 0)

    with pytest.raises(ResultMismatch):
        ledger.finalize_results(CREATOR, pid, [1, 1, 1, 1])
    assert ledger.get_proposal(pid).finalized is False

    ledger.finalize_results(CREATOR, pid, [0, 0, 0, 0])
    p = ledger.get_proposal(pid)
    assert p.finalized is True
    assert p.phase == PHASE_FINALIZED
    assert ledger.get_results(pid) == (0, 0, 0, 0)

    with pytest.raises(AlreadyFinalized):
        ledger.finalize_results(CREATOR, pid, [0, 0, 0, 0])
    with pytest.raises(AlreadyFinalized):
        ledger.finalize_results(CREATOR, pid, [1, 1, 1, 1])


def test_matching_nonzero_tally_accepted(ledger, clock, vote):
    pid = ledger.create_proposal(CREATOR, "nonzero", 60)
    for i, choice in enumerate([0, 1, 1, 3, 3, 3]):
        vote(pid, f"0xV{i}", choice)
    clock.advance(60)

    ledger.finalize_results(CREATOR, pid, [1, 2, 0, 3])
    assert ledger.get_results(pid) == (1, 2, 0, 3)


def test_only_the_total_is_checked(ledger, clock, vote):
    # The ledger never saw plaintext choices, so any split with the right
    # total is accepted.
    pid = ledger.create_proposal(CREATOR, "trust boundary", 60)
    for i in range(4):
        vote(pid, f"0xV{i}", 0)
    clock.advance(60)

    ledger.finalize_results(CREATOR, pid, [0, 0, 0, 4])
    assert ledger.get_results(pid) == (0, 0, 0, 4)


@pytest.mark.parametrize(
    "results",
    [
        [0, 0, 0, 2],  # short by one
        [1, 1, 1, 1],  # over by one
        [4, 0, 0, -1],  # right total, negative entry
        [3, 0, 0],  # wrong option count
        [3, 0, 0, 0, 0],  # wrong option count
        [],
        [1.0, 1, 1, 0],  # not integers
        [True, True, True, False],
        ["1", "1", "1", "0"],
    ],
)
def test_inconsistent_results_rejected(ledger, clock, vote, results):
    pid = ledger.create_proposal(CREATOR, "mismatch", 60)
    for i in range(3):
        vote(pid, f"0xV{i}", i)
    clock.advance(60)

    with pytest.raises(ResultMismatch):
        ledger.finalize_results(CREATOR, pid, results)

    assert ledger.get_proposal(pid).finalized is False
    with pytest.raises(NotFinalized):
        ledger.get_results(pid)
    assert ledger.events.events(kind=RESULTS_FINALIZED) == []


def test_not_a_sequence_rejected(ledger, clock):
    pid = ledger.create_proposal(CREATOR, "shape", 1)
    clock.advance(1)
    with pytest.raises(ResultMismatch):
        ledger.finalize_results(CREATOR, pid, 0)


def test_corrected_tally_can_be_resubmitted(ledger, clock, vote):
    pid = ledger.create_proposal(CREATOR, "retry", 60)
    vote(pid, "0xV1", 2)
    clock.advance(60)

    with pytest.raises(ResultMismatch):
        ledger.finalize_results(CREATOR, pid, [0, 0, 2, 0])
    ledger.finalize_results(CREATOR, pid, [0, 0, 1, 0])
    assert ledger.get_results(pid) == (0, 0, 1, 0)


def test_finalize_unknown_proposal(ledger):
    with pytest.raises(UnknownProposal):
        ledger.finalize_results(CREATOR, 0, [0, 0, 0, 0])


def test_vote_count_frozen_after_finalize(ledger, clock, vote):
    pid = ledger.create_proposal(CREATOR, "frozen", 10)
    vote(pid, "0xV1", 0)
    clock.advance(10)
    ledger.finalize_results(CREATOR, pid, [1, 0, 0, 0])

    with pytest.raises(VotingClosed):
        vote(pid, "0xV2", 0)
    assert ledger.get_proposal(pid).vote_count == 1


def test_finalize_emits_event(ledger, clock):
    pid = ledger.create_proposal(CREATOR, "evented", 1)
    clock.advance(1)
    ledger.finalize_results(CREATOR, pid, (0, 0, 0, 0))

    (ev,) = ledger.events.events(kind=RESULTS_FINALIZED)
    assert ev.proposal_id == pid
    assert ev.data["results"] == [0, 0, 0, 0]


# ============================================================
# Results / encrypted tally access
# ============================================================


def test_results_unavailable_before_finalization(ledger, clock):
    pid = ledger.create_proposal(CREATOR, "View Test", 3600)
    with pytest.raises(NotFinalized):
        ledger.get_results(pid)
    clock.advance(3600)
    with pytest.raises(NotFinalized):
        ledger.get_results(pid)


def test_encrypted_votes_creator_only(ledger, clock):
    pid = ledger.create_proposal(CREATOR, "Access Test", 1)
    clock.advance(256)
    with pytest.raises(NotCreator):
        ledger.get_encrypted_votes("0xV1", pid)
    assert ledger.get_encrypted_votes(CREATOR, pid) == ()


def test_encrypted_votes_unavailable_while_open(ledger, clock):
    ledger.create_proposal(CREATOR, "Access Test", 1)
    clock.advance(256)
    timing = ledger.create_proposal(CREATOR, "Timing Test", 3600)

    with pytest.raises(VotingStillOpen):
        ledger.get_encrypted_votes(CREATOR, timing)


def test_encrypted_votes_unknown_proposal(ledger):
    with pytest.raises(UnknownProposal):
        ledger.get_encrypted_votes(CREATOR, 5)


def test_encrypted_votes_return_every_accepted_handle(ledger, clock, vote):
    pid = ledger.create_proposal(CREATOR, "handles", 60)
    cast = [vote(pid, f"0xV{i}", i % 4) for i in range(5)]
    clock.advance(60)

    handles = ledger.get_encrypted_votes(CREATOR, pid)
    assert list(handles) == cast
    # still readable after finalization
    ledger.finalize_results(CREATOR, pid, [2, 1, 1, 1])
    assert len(ledger.get_encrypted_votes(CREATOR, pid)) == 5


def test_full_round_trip_decrypts_to_exact_counts(ledger, clock, vote, sealer_for):
    pid = ledger.create_proposal(CREATOR, "Should we increase voting time?", 3600)
    choices = [0, 1, 2, 3, 1, 1, 2, 0, 3, 3, 3]
    for i, choice in enumerate(choices):
        vote(pid, f"0xV{i}", choice)
    clock.advance(3600)

    handles = ledger.get_encrypted_votes(CREATOR, pid)
    counts = sealer_for(pid).tally(handles)
    assert counts == [2, 3, 2, 4]

    ledger.finalize_results(CREATOR, pid, counts)
    assert ledger.get_results(pid) == (2, 3, 2, 4)
    assert sum(ledger.get_results(pid)) == ledger.get_proposal(pid).vote_count


def test_non_creator_before_deadline_gets_not_creator(ledger, clock):
    # The creator check runs before the deadline check, so an outsider
    # learns nothing about the voting window from the error.
    pid = ledger.create_proposal(CREATOR, "order", 3600)
    with pytest.raises(NotCreator):
        ledger.get_encrypted_votes("0xV1", pid)
    with pytest.raises(NotCreator):
        ledger.finalize_results("0xV1", pid, [0, 0, 0, 0])

    with pytest.raises(VotingStillOpen):
        ledger.get_encrypted_votes(CREATOR, pid)
