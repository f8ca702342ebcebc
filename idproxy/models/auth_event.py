from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


AuthStatus = Literal["AuthSuccess", "AuthFailure", "AuthError"]


class AuthEvent(BaseModel):
    ts: Optional[str] = None
    corr_id: Optional[str] = None
    provider: str
    action: str
    status: AuthStatus
    user: Optional[str] = None
    message: Optional[str] = None
