"""
Authentication Service - obtains and caches portal tokens

A portal token is only usable after two steps, in order:
1. handshake: anonymous request returning a fresh token
2. get_profile: binds that token to the device MAC ("logs it in")

Tokens are cached per (portal URL, MAC) for the session TTL so that
catalog, meta and stream requests do not repeat the exchange.
"""

import logging
import secrets
import threading
from contextlib import contextmanager
from typing import Dict, Optional

import requests

from error_handling import AuthenticationError
from models import PortalConfig, SessionKey
from services.cache_service import SessionCache, get_session_cache
from services.portal_client import PortalResponseError, StalkerPortalClient

logger = logging.getLogger(__name__)

DEVICE_ID_LENGTH = 13
HEX_DIGITS = "0123456789ABCDEF"


def generate_device_id() -> str:
    """Random 13-digit upper-case hex device identifier"""
    return "".join(secrets.choice(HEX_DIGITS) for _ in range(DEVICE_ID_LENGTH))


class AuthService:
    """Performs the handshake/profile exchange and owns the session cache writes"""

    def __init__(self, cache: Optional[SessionCache] = None):
        self._cache = cache
        # key -> [lock, number of callers holding or waiting on it]
        self._key_locks: Dict[SessionKey, list] = {}
        self._locks_guard = threading.Lock()

    @property
    def cache(self) -> SessionCache:
        return self._cache if self._cache is not None else get_session_cache()

    @contextmanager
    def _key_lock(self, key: SessionKey):
        """Hold the login lock for a key; the lock is dropped once no caller uses it"""
        with self._locks_guard:
            entry = self._key_locks.get(key)
            if entry is None:
                entry = self._key_locks[key] = [threading.Lock(), 0]
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._key_locks[key]

    def authenticate(self, config: PortalConfig) -> str:
        """
        Get a logged-in token for the config's portal and device.

        Returns the cached token when fresh. Concurrent callers for the same
        portal and MAC wait for a single in-flight exchange.

        Raises:
            AuthenticationError: handshake or profile exchange failed
        """
        key = config.session_key
        token = self.cache.get_token(key)
        if token:
            return token

        with self._key_lock(key):
            # Another caller may have finished the exchange while we waited
            token = self.cache.get_token(key)
            if token:
                return token

            token = self._login(config)
            self.cache.cache_token(key, token)
            return token

    def _login(self, config: PortalConfig) -> str:
        client = StalkerPortalClient(config.portal_url, config.device_type)

        try:
            token = client.handshake()
        except (requests.exceptions.RequestException, PortalResponseError) as e:
            logger.error(f"Handshake failed for portal {client.host}: {e}")
            raise AuthenticationError(
                f"Authentication failed at handshake with {client.host}. Check the portal URL.",
                portal=client.host,
                step="handshake",
            ) from e

        client.token = token
        try:
            client.get_profile(
                mac=config.wire_mac,
                device_id=generate_device_id(),
                metrics_mac=config.mac,
                login=config.username,
                password=config.password,
            )
        except (requests.exceptions.RequestException, PortalResponseError) as e:
            logger.error(f"Profile exchange failed for portal {client.host} (mac={config.wire_mac}): {e}")
            raise AuthenticationError(
                f"Authentication failed at profile exchange with {client.host}. Check the MAC and credentials.",
                portal=client.host,
                step="get_profile",
            ) from e

        logger.info(f"Authenticated with portal {client.host} as {config.wire_mac}")
        return token


# Global authenticator instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get or create the global authenticator instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
