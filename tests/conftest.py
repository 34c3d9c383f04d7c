"""Shared fixtures and strict test-accounting guardrails."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple, Union
from unittest.mock import AsyncMock, MagicMock

import pytest

from djangodocs.cache import MemoryStore, SnapshotCache

BASE = "https://docs.djangoproject.com/en/6.0"

# Page body, or (status_code, reason, body).
Page = Union[str, Tuple[int, str, str]]


def make_response(text: str = "", status_code: int = 200, reason: str = "OK"):
    response = MagicMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.reason_phrase = reason
    response.text = text
    return response


def make_client(pages: Dict[str, Page]):
    """AsyncMock httpx client answering from ``pages``; unknown URLs give 404."""

    def _get(url, *args, **kwargs):
        page = pages.get(url)
        if page is None:
            return make_response("", 404, "Not Found")
        if isinstance(page, tuple):
            status_code, reason, body = page
            return make_response(body, status_code, reason)
        return make_response(page)

    client = AsyncMock()
    client.get = AsyncMock(side_effect=_get)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int = 1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> SnapshotCache:
    return SnapshotCache(MemoryStore(), clock=clock)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.delenv("DJANGODOCS_SITEMAP_URL", raising=False)
    monkeypatch.delenv("DJANGODOCS_HTTP_TIMEOUT", raising=False)
    monkeypatch.setenv("DJANGODOCS_CACHE_DIR", str(tmp_path / "snapshots"))


@dataclass
class _TestAccounting:
    deselected: int = 0
    skipped: int = 0
    xfailed: int = 0
    xpassed: int = 0


_ACCOUNTING = _TestAccounting()


def pytest_deselected(items):  # pragma: no cover - pytest hook
    _ACCOUNTING.deselected += len(items)


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in {"setup", "call"}:
        return

    if getattr(report, "wasxfail", False):
        if report.outcome == "skipped":
            _ACCOUNTING.xfailed += 1
        elif report.outcome == "passed":
            _ACCOUNTING.xpassed += 1
        return

    if report.outcome == "skipped":
        _ACCOUNTING.skipped += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    violations = [
        f"{name}={count}"
        for name, count in (
            ("deselected", _ACCOUNTING.deselected),
            ("skipped", _ACCOUNTING.skipped),
            ("xfailed", _ACCOUNTING.xfailed),
            ("xpassed", _ACCOUNTING.xpassed),
        )
        if count
    ]
    if not violations:
        return

    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep(
            "=",
            f"Test accounting violations detected ({', '.join(violations)})",
        )
        reporter.write_line("Every collected test must run and pass.")

    session.exitstatus = 1
