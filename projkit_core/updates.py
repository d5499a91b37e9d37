"""Best-effort check for a newer projkit release."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import requests
import yaml
from requests.exceptions import RequestException

from .paths import AppPaths

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_RELEASE_URL", "UpdateInfo", "UpdateChecker", "version_key"]

DEFAULT_RELEASE_URL = "https://api.github.com/repos/projkit/projkit/releases/latest"


def version_key(version: str) -> tuple[int, ...]:
    parts = re.findall(r"\d+", version.split("-", 1)[0])
    return tuple(int(part) for part in parts[:3]) or (0,)


@dataclass(frozen=True)
class UpdateInfo:
    current: str
    latest: str

    @property
    def available(self) -> bool:
        return version_key(self.latest) > version_key(self.current)


class UpdateChecker:
    def __init__(
        self,
        paths: AppPaths | None = None,
        *,
        url: str = DEFAULT_RELEASE_URL,
        interval_days: int = 5,
        timeout: float = 5.0,
        session: Any = requests,
    ) -> None:
        self.schedule_path = (paths or AppPaths()).update_schedule
        self.url = url
        self.interval = timedelta(days=interval_days)
        self.timeout = timeout
        self._session = session

    def _last_check(self) -> datetime | None:
        if not self.schedule_path.exists():
            return None
        try:
            raw = yaml.safe_load(self.schedule_path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError):
            return None
        stamp = raw.get("last_check") if isinstance(raw, dict) else None
        if not isinstance(stamp, str):
            return None
        try:
            return datetime.fromisoformat(stamp)
        except ValueError:
            return None

    def _record(self, now: datetime, latest: str | None) -> None:
        self.schedule_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"last_check": now.isoformat(), "latest": latest}
        self.schedule_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")

    def due(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        last = self._last_check()
        return last is None or now - last >= self.interval

    def fetch_latest(self) -> str | None:
        try:
            response = self._session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (RequestException, ValueError) as exc:
            logger.debug("update check failed: %s", exc)
            return None
        tag = payload.get("tag_name") if isinstance(payload, dict) else None
        if not isinstance(tag, str) or not tag.strip():
            return None
        return tag.strip().lstrip("v")

    def check(self, current: str, *, force: bool = False) -> UpdateInfo | None:
        """Return release info when a check ran and succeeded, otherwise ``None``."""

        now = datetime.now(timezone.utc)
        if not force and not self.due(now):
            return None
        latest = self.fetch_latest()
        self._record(now, latest)
        if latest is None:
            return None
        return UpdateInfo(current=current, latest=latest)
