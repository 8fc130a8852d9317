from __future__ import annotations

import binascii
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, StrictInt

from ballot_ledger import crypto_utils
from ballot_ledger.api.identity import require_current_account
from ballot_ledger.ballot_runtime.errors import BallotLedgerError
from ballot_ledger.ballot_runtime.handles import EncryptedValue
from ballot_ledger.ballot_runtime.ledger import BallotLedger, ProposalView

router = APIRouter(prefix="/proposals", tags=["proposals"])

ERROR_STATUS: Dict[str, int] = {
    "unknown_proposal": 404,
    "not_creator": 403,
    "invalid_duration": 400,
    "invalid_proof": 400,
    "result_mismatch": 400,
    "voting_closed": 409,
    "voting_still_open": 409,
    "already_voted": 409,
    "already_finalized": 409,
    "not_finalized": 409,
}


def http_error(exc: BallotLedgerError) -> HTTPException:
    return HTTPException(status_code=ERROR_STATUS.get(exc.code, 400), detail=exc.code)


# Body fields whose type errors are ledger rule violations, not schema errors.
FIELD_ERROR_CODES: Dict[str, str] = {
    "duration_seconds": "invalid_duration",
    "results": "result_mismatch",
}


def validation_error_code(exc: RequestValidationError) -> Optional[str]:
    for err in exc.errors():
        loc = tuple(err.get("loc") or ())
        if len(loc) >= 2 and loc[0] == "body" and loc[1] in FIELD_ERROR_CODES:
            return FIELD_ERROR_CODES[loc[1]]
    return None


class ProposalCreate(BaseModel):
    title: str
    duration_seconds: StrictInt


class VoteSubmit(BaseModel):
    ciphertext_b64: str
    proof_hex: str


class ResultsSubmit(BaseModel):
    results: List[StrictInt] = Field(default_factory=list)


def get_ledger(request: Request) -> BallotLedger:
    return request.app.state.ledger


def _proposal_out(view: ProposalView) -> Dict[str, Any]:
    return {
        "id": view.id,
        "title": view.title,
        "creator": view.creator,
        "deadline": view.deadline,
        "finalized": view.finalized,
        "vote_count": view.vote_count,
        "phase": view.phase,
    }


@router.post("")
def create_proposal(
    payload: ProposalCreate,
    account: str = Depends(require_current_account),
    ledger: BallotLedger = Depends(get_ledger),
):
    try:
        pid = ledger.create_proposal(account, payload.title, payload.duration_seconds)
    except BallotLedgerError as e:
        raise http_error(e)
    return {"ok": True, "id": pid, "proposal": _proposal_out(ledger.get_proposal(pid))}


@router.get("")
def list_proposals(ledger: BallotLedger = Depends(get_ledger)):
    return {"ok": True, "proposals": [_proposal_out(v) for v in ledger.list_proposals()]}


@router.get("/count")
def proposal_count(ledger: BallotLedger = Depends(get_ledger)):
    return {"ok": True, "count": ledger.get_proposal_count()}


@router.get("/{proposal_id}")
def get_proposal(proposal_id: int, ledger: BallotLedger = Depends(get_ledger)):
    try:
        view = ledger.get_proposal(proposal_id)
    except BallotLedgerError as e:
        raise http_error(e)
    return {"ok": True, "proposal": _proposal_out(view)}


@router.post("/{proposal_id}/votes")
def cast_vote(
    proposal_id: int,
    payload: VoteSubmit,
    account: str = Depends(require_current_account),
    ledger: BallotLedger = Depends(get_ledger),
):
    try:
        blob = crypto_utils.b64d(payload.ciphertext_b64)
        proof = crypto_utils.hex_to_bytes(payload.proof_hex)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="malformed_ballot")
    if not blob:
        raise HTTPException(status_code=400, detail="malformed_ballot")

    try:
        ledger.cast_vote(account, proposal_id, EncryptedValue(blob), proof)
    except BallotLedgerError as e:
        raise http_error(e)
    return {"ok": True, "proposal_id": proposal_id, "voter": account}


@router.get("/{proposal_id}/votes/encrypted")
def encrypted_votes(
    proposal_id: int,
    account: str = Depends(require_current_account),
    ledger: BallotLedger = Depends(get_ledger),
):
    try:
        handles = ledger.get_encrypted_votes(account, proposal_id)
    except BallotLedgerError as e:
        raise http_error(e)
    return {"ok": True, "ciphertexts_b64": [crypto_utils.b64e(h.to_bytes()) for h in handles]}


@router.get("/{proposal_id}/voters/{identity}")
def has_voted(proposal_id: int, identity: str, ledger: BallotLedger = Depends(get_ledger)):
    try:
        voted = ledger.has_voted(proposal_id, identity)
    except BallotLedgerError as e:
        raise http_error(e)
    return {"ok": True, "has_voted": voted}


@router.post("/{proposal_id}/finalize")
def finalize_results(
    proposal_id: int,
    payload: ResultsSubmit,
    account: str = Depends(require_current_account),
    ledger: BallotLedger = Depends(get_ledger),
):
    try:
        ledger.finalize_results(account, proposal_id, payload.results)
    except BallotLedgerError as e:
        raise http_error(e)
    return {"ok": True, "results": list(ledger.get_results(proposal_id))}


@router.get("/{proposal_id}/results")
def get_results(proposal_id: int, ledger: BallotLedger = Depends(get_ledger)):
    try:
        results = ledger.get_results(proposal_id)
    except BallotLedgerError as e:
        raise http_error(e)
    return {"ok": True, "results": list(results)}
