import json
import os
from unittest.mock import MagicMock

import pytest

TEST_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(TEST_DIR, 'data')


def load_payload(name: str) -> dict:
    with open(os.path.join(DATA_DIR, name), 'r', encoding='utf-8') as f:
        return json.load(f)


def make_response(status_code: int = 200, payload=None, json_error: Exception = None) -> MagicMock:
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def allocators_payload() -> dict:
    return load_payload('allocators.json')


@pytest.fixture
def proxies_payload() -> dict:
    return load_payload('proxies.json')


class FakeClient:
    """Stands in for OrchestratorClient and records which resources were fetched."""

    def __init__(self, allocators=None, proxies=None, allocators_error=None, proxies_error=None):
        self.allocators = allocators
        self.proxies = proxies
        self.allocators_error = allocators_error
        self.proxies_error = proxies_error
        self.calls = []

    def fetch_allocators(self):
        self.calls.append('allocators')
        if self.allocators_error:
            raise self.allocators_error
        return self.allocators

    def fetch_proxies(self):
        self.calls.append('proxies')
        if self.proxies_error:
            raise self.proxies_error
        return self.proxies
