"""
ballot_ledger/app.py
--------------------
Thin entrypoint for running the ballot ledger service via:

    uvicorn ballot_ledger.app:app

All real route wiring lives in ballot_ledger.ballot_api.
"""

from .ballot_api import create_app

app = create_app()


if __name__ == "__main__":
    # Convenience for: python -m ballot_ledger.app
    import uvicorn

    from .settings import get_settings

    s = get_settings()
    uvicorn.run(app, host=s.server.host, port=s.server.port)
