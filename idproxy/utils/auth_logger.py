from __future__ import annotations

import asyncio
import datetime as dt
import json
from pathlib import Path
from typing import Optional

from structlog import get_logger

from idproxy.core.config import get_settings
from idproxy.core.security import correlation_id
from idproxy.models.auth_event import AuthEvent


logger = get_logger(__name__)


class AuthEventLogger:
    """Append-only JSON lines log of authentication outcomes, one file per day."""

    def __init__(self, base_path: Optional[Path] = None) -> None:
        self.base_path = base_path or get_settings().auth_log_path
        self._lock = asyncio.Lock()

    async def emit(self, event: AuthEvent) -> AuthEvent:
        record = event.model_copy()
        if not record.ts:
            record.ts = dt.datetime.now(dt.timezone.utc).isoformat().replace("+00:00", "Z")
        if not record.corr_id:
            record.corr_id = correlation_id()

        log_path = self._log_path_for_ts(record.ts)
        line = json.dumps(record.model_dump(), sort_keys=True)

        async with self._lock:
            await asyncio.to_thread(self._write_line, log_path, line)
        logger.info(
            "auth.event",
            provider=record.provider,
            action=record.action,
            status=record.status,
            user=record.user,
            corr_id=record.corr_id,
        )
        return record

    def _log_path_for_ts(self, iso_ts: str) -> Path:
        day = iso_ts.split("T", 1)[0].replace("-", "")
        return self.base_path / f"auth-{day}.jsonl"

    def _write_line(self, path: Path, line: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")


_auth_logger: Optional[AuthEventLogger] = None


def get_auth_logger() -> AuthEventLogger:
    global _auth_logger
    if _auth_logger is None:
        _auth_logger = AuthEventLogger()
    return _auth_logger


async def log_auth_event(event: AuthEvent) -> AuthEvent:
    return await get_auth_logger().emit(event)
