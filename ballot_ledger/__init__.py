"""
Ballot ledger package initializer

Keep this module lightweight. Do not import FastAPI or crypto backends here,
so the in-process ledger can be used without the service stack.
"""

__all__ = []
