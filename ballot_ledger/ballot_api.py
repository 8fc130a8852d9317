from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ballot_ledger.api import proposals
from ballot_ledger.ballot_runtime.attestation import AttestationVerifier, RejectAllVerifier
from ballot_ledger.ballot_runtime.ledger import BallotLedger
from ballot_ledger.settings import Settings, get_settings

log = logging.getLogger(__name__)


def build_ledger(settings: Settings, clock=None) -> BallotLedger:
    pk_hex = settings.attester.public_key_hex
    if pk_hex:
        verifier = AttestationVerifier(pk_hex)
    else:
        log.warning("no attester public key configured; every vote will be rejected")
        verifier = RejectAllVerifier()
    return BallotLedger(verifier, clock=clock, option_count=settings.ballot.option_count)


def create_app(settings: Optional[Settings] = None, ledger: Optional[BallotLedger] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Ballot Ledger API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One ledger per service instance, alive for the process lifetime.
    app.state.ledger = ledger or build_ledger(settings)
    app.state.settings = settings

    app.include_router(proposals.router)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        code = proposals.validation_error_code(exc)
        if code is None:
            return await request_validation_exception_handler(request, exc)
        log.debug("request rejected as %s: %s", code, exc.errors())
        return JSONResponse({"detail": code}, status_code=proposals.ERROR_STATUS[code])

    @app.get("/health")
    def health():
        return {"ok": True, "proposals": app.state.ledger.get_proposal_count()}

    return app
