# Shared fixtures for the dufs test-suite.
# Created: 2026-10-16

import json
import re

import pytest
from fastapi.testclient import TestClient

from dufs.config import Settings
from dufs.server import create_app

_DATA_RE = re.compile(r"const DATA = (.*?);\n")


def extract_data(html: str) -> dict:
    """Pull the JSON payload back out of a rendered index page."""
    match = _DATA_RE.search(html)
    assert match, "index page has no DATA payload"
    return json.loads(match.group(1))


@pytest.fixture
def root(tmp_path):
    served = tmp_path / "srv"
    served.mkdir()
    return served


@pytest.fixture
def make_client(root):
    def _make(**overrides) -> TestClient:
        settings = Settings(path=root, **overrides)
        return TestClient(create_app(settings))

    return _make


@pytest.fixture
def client(make_client):
    return make_client()
