from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SessionState(BaseModel):
    access_token: str = ""
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    expires_on: Optional[dt.datetime] = None
    email: str = ""
    user: str = ""
    preferred_username: str = ""
    groups: List[str] = Field(default_factory=list)

    def is_expired(self, now: Optional[dt.datetime] = None) -> bool:
        if self.expires_on is None:
            return False
        now = now or dt.datetime.now(dt.timezone.utc)
        return self.expires_on <= now

    def redacted(self) -> Dict[str, Any]:
        """Identity fields only; tokens never leave through this view."""
        return self.model_dump(
            mode="json",
            exclude={"access_token", "id_token", "refresh_token"},
        )
