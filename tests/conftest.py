"""
Pytest configuration and shared fixtures for test suite

Provides the Flask app and client, a clean session cache per test, and a
fake portal that answers load.php requests by action.
"""
import sys
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import requests

# Add parent directory to path so we can import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from models import PortalConfig
from services.cache_service import reset_session_cache


def make_response(payload=None, status_code=200, json_error=False):
    """Build a mock requests.Response"""
    response = Mock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


class FakePortal:
    """
    Answers patched requests.get calls by the "action" query parameter.

    Register a payload (wrapped as {"js": payload}), a prepared response, or
    an exception to raise per action. Every call is recorded.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, action, payload=None, response=None, error=None):
        self.routes[action] = (payload, response, error)
        return self

    def __call__(self, url, params=None, headers=None, timeout=None):
        params = params or {}
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        action = params.get("action")
        if action not in self.routes:
            raise requests.exceptions.ConnectionError(f"No route for action {action}")
        payload, response, error = self.routes[action]
        if error is not None:
            raise error
        if response is not None:
            return response
        return make_response({"js": payload})

    def actions(self):
        return [call["params"].get("action") for call in self.calls]

    def calls_for(self, action):
        return [call for call in self.calls if call["params"].get("action") == action]


@pytest.fixture(autouse=True)
def clean_session_cache():
    """Every test starts without cached tokens"""
    reset_session_cache()
    yield
    reset_session_cache()


@pytest.fixture
def portal_config():
    """A typical portal configuration"""
    return PortalConfig(portal_url="http://x.com/c", mac="00:1a:79:00:00:01", device_type="MAG250")


@pytest.fixture
def fake_portal():
    """Fake portal with a working handshake and profile exchange"""
    portal = FakePortal()
    portal.on("handshake", {"token": "abc"})
    portal.on("get_profile", {"id": 1})
    with patch("requests.get", side_effect=portal):
        yield portal


@pytest.fixture(scope="function")
def app():
    """Create Flask app configured for testing"""
    import app as app_module

    flask_app = app_module.app
    flask_app.config["TESTING"] = True
    yield flask_app


@pytest.fixture(scope="function")
def client(app):
    """
    Flask test client for making HTTP requests

    Use client.get() to call the addon endpoints.
    """
    return app.test_client()
