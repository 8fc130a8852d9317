from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, status


def current_account_optional(
    account: Optional[str] = Header(default=None, alias="X-Account"),
) -> Optional[str]:
    if account is None:
        return None
    account = account.strip()
    return account or None


def require_current_account(
    account: Optional[str] = Depends(current_account_optional),
) -> str:
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="auth_required")
    return account
