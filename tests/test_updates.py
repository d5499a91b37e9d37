"""Tests for the release update check."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import requests
import yaml

from projkit_core.paths import AppPaths
from projkit_core.updates import UpdateChecker, UpdateInfo, version_key


class FakeResponse:
    def __init__(self, payload: object, status_error: Exception | None = None) -> None:
        self.payload = payload
        self.status_error = status_error

    def raise_for_status(self) -> None:
        if self.status_error is not None:
            raise self.status_error

    def json(self) -> object:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[tuple[str, float]] = []

    def get(self, url: str, timeout: float) -> FakeResponse:
        self.requests.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def _checker(tmp_path: Path, session: FakeSession) -> UpdateChecker:
    return UpdateChecker(AppPaths.under(tmp_path), url="https://example.test/latest", session=session)


def test_version_key_orders_semver() -> None:
    assert version_key("1.10.0") > version_key("1.9.3")
    assert version_key("v2.0.0-beta.1") == (2, 0, 0)
    assert version_key("garbage") == (0,)
    assert UpdateInfo(current="0.1.0", latest="0.2.0").available
    assert not UpdateInfo(current="0.2.0", latest="0.2.0").available


def test_check_reads_tag_and_records_schedule(tmp_path: Path) -> None:
    session = FakeSession(FakeResponse({"tag_name": "v0.4.2"}))
    checker = _checker(tmp_path, session)

    info = checker.check("0.1.0")

    assert info == UpdateInfo(current="0.1.0", latest="0.4.2")
    assert session.requests == [("https://example.test/latest", 5.0)]
    recorded = yaml.safe_load(checker.schedule_path.read_text())
    assert recorded["latest"] == "0.4.2"
    assert not checker.due()


def test_check_is_skipped_until_interval_passes(tmp_path: Path) -> None:
    session = FakeSession(FakeResponse({"tag_name": "v0.4.2"}))
    checker = _checker(tmp_path, session)
    checker.check("0.1.0")

    assert checker.check("0.1.0") is None
    assert len(session.requests) == 1
    assert checker.check("0.1.0", force=True) is not None
    assert checker.due(datetime.now(timezone.utc) + timedelta(days=6))


def test_network_errors_are_swallowed(tmp_path: Path) -> None:
    session = FakeSession(error=requests.ConnectionError("offline"))
    assert _checker(tmp_path, session).check("0.1.0") is None


def test_http_errors_and_bad_payloads_return_none(tmp_path: Path) -> None:
    failing = FakeSession(FakeResponse({}, status_error=requests.HTTPError("404")))
    assert _checker(tmp_path / "a", failing).fetch_latest() is None

    not_json = FakeSession(FakeResponse(ValueError("not json")))
    assert _checker(tmp_path / "b", not_json).fetch_latest() is None

    no_tag = FakeSession(FakeResponse({"name": "release"}))
    assert _checker(tmp_path / "c", no_tag).fetch_latest() is None


def test_corrupt_schedule_means_check_is_due(tmp_path: Path) -> None:
    checker = _checker(tmp_path, FakeSession())
    checker.schedule_path.parent.mkdir(parents=True)
    checker.schedule_path.write_text("last_check: [not a date\n")
    assert checker.due()
