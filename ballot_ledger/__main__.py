# ballot_ledger/__main__.py
"""
Entry point for running the ballot ledger as a module:

    python -m ballot_ledger serve [--host 127.0.0.1] [--port 8000]
    python -m ballot_ledger demo  [--title T] [--duration 3600] [--voters 10]
                                  [--choices 0,1,2,3,...]

Env toggles (see ballot_ledger.settings):
  BALLOT_CONFIG=path.yaml      -> YAML settings file
  BALLOT_ATTESTER_PUBKEY=hex   -> trusted input attester (serve)
  BALLOT_LOG_LEVEL=DEBUG       -> log level
"""

from __future__ import annotations

import argparse
import logging
import secrets
from typing import List, Optional

from .ballot_runtime.attestation import InputAttester
from .ballot_runtime.clock import ManualClock
from .ballot_runtime.errors import BallotLedgerError
from .ballot_runtime.ledger import BallotLedger
from .ballot_runtime.sealing import BallotSealer
from .settings import configure_logging, get_settings

log = logging.getLogger("ballot_ledger")


def parse_args(argv=None):
    settings = get_settings()
    p = argparse.ArgumentParser(
        prog="ballot-ledger",
        description="Confidential-ballot ledger: service and local demo",
    )
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", default=settings.server.host, help="Bind address")
    serve.add_argument("--port", type=int, default=settings.server.port, help="Port")

    demo = sub.add_parser("demo", help="Run an in-process election end to end")
    demo.add_argument("--title", default="Demo proposal", help="Proposal title")
    demo.add_argument("--duration", type=int, default=3600, help="Voting window in seconds")
    demo.add_argument("--voters", type=int, default=10, help="Number of voters (random choices)")
    demo.add_argument("--choices", default="", help="Comma-separated choices; overrides --voters")
    return p.parse_args(argv)


def _parse_choices(raw: str, voters: int, option_count: int) -> List[int]:
    if raw.strip():
        return [int(c.strip()) for c in raw.split(",") if c.strip()]
    return [secrets.randbelow(option_count) for _ in range(max(0, voters))]


def run_demo(
    title: str,
    duration: int,
    choices: List[int],
    option_count: int,
) -> List[int]:
    clock = ManualClock(start=0)
    attester = InputAttester.generate(option_count=option_count)
    ledger = BallotLedger(attester.verifier(), clock=clock, option_count=option_count)

    creator = "@creator"
    pid = ledger.create_proposal(creator, title, duration)
    sealer = BallotSealer.generate(pid, option_count=option_count)

    for i, choice in enumerate(choices):
        voter = f"@voter{i}"
        sealed = sealer.seal(choice)
        proof = attester.attest(sealed, choice, proposal_id=pid, voter=voter)
        ledger.cast_vote(voter, pid, sealed, proof)

    clock.advance(duration)
    handles = ledger.get_encrypted_votes(creator, pid)
    counts = sealer.tally(handles, option_count)
    ledger.finalize_results(creator, pid, counts)
    return list(ledger.get_results(pid))


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    if args.command == "serve":
        import uvicorn

        from .ballot_api import create_app

        uvicorn.run(create_app(settings), host=args.host, port=args.port)
        return 0

    option_count = settings.ballot.option_count
    try:
        choices = _parse_choices(args.choices, args.voters, option_count)
        results = run_demo(args.title, args.duration, choices, option_count)
    except (ValueError, BallotLedgerError) as e:
        log.error("demo failed: %s", e)
        return 2

    print(f'Results for "{args.title}" ({len(choices)} votes):')
    for i, count in enumerate(results):
        print(f"  Option {i}: {count} votes")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
