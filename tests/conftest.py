"""Shared fixtures for the test suite."""

import json
from pathlib import Path

import pytest
import requests

from pacman_mirror_scoring.models import MirrorRecord
from pacman_mirror_scoring.status import parse_status

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FakeResponse:
    """Just enough of requests.Response for the status fetch and the probes."""

    def __init__(self, status_code=200, headers=None, payload=None, json_error=None, body=b""):
        self.status_code = status_code
        self.headers = headers if headers is not None else {}
        self._payload = payload
        self._json_error = json_error
        self.body = body
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


@pytest.fixture
def status_data():
    with open(FIXTURES_DIR / "mirrors_status.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def catalog(status_data):
    return parse_status(status_data)


@pytest.fixture
def make_mirror():
    """Factory for a mirror that passes the sync filter unless overridden."""
    def factory(url="https://mirror.example.org/archlinux/", **kwargs):
        values = dict(
            protocol="https",
            completion_pct=1.0,
            delay=60,
            score=1.0,
            active=True,
            country="Germany",
            country_code="DE",
        )
        values.update(kwargs)
        return MirrorRecord(url=url, **values)
    return factory
