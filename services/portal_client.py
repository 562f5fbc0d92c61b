"""
Stalker Portal API client - handles communication with MAG/STB portals
"""

import json
import logging
import os
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

STB_USER_AGENT = "Mozilla/5.0 (QtEmbedded; U; Linux;)"

# Firmware description sent with get_profile, as reported by a MAG250
STB_FIRMWARE_VERSION = (
    "ImageDescription: 0.2.18-r14-pub-250; ImageDate: 18 Nov 2013 21:30:18 GMT+0200; "
    "PORTAL version: 5.1.0; API Version: JS API version: 330; STB API version: 134; "
    "Player Engine version: 0x566"
)

# Serial number reported in the profile metrics
# TODO: decide whether portals validate "sn" and derive a stable per-device serial if so
METRICS_SERIAL_NUMBER = "123456789"

# (connect, read) timeout for every portal request
PORTAL_CONNECT_TIMEOUT = int(os.getenv("PORTAL_CONNECT_TIMEOUT", "10"))
PORTAL_READ_TIMEOUT = int(os.getenv("PORTAL_READ_TIMEOUT", "30"))


class PortalResponseError(ValueError):
    """The portal answered without the expected {"js": ...} envelope"""

    pass


class StalkerPortalClient:
    """Service for interacting with the Stalker portal load.php API"""

    def __init__(self, portal_url, device_type, token=None):
        self.portal_url = portal_url
        self.device_type = device_type
        self.token = token
        self.load_url = f"{portal_url}server/load.php"

    @property
    def host(self):
        """Portal host, for log and error messages"""
        return urlparse(self.portal_url).netloc or self.portal_url

    def _headers(self):
        headers = {
            "User-Agent": STB_USER_AGENT,
            "Accept": "*/*",
            "Connection": "Keep-Alive",
            "X-User-Agent": f"Model: {self.device_type}; Firmware: 1.0; ImageDesc: 1.0;",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _make_request(self, request_type, action, params=None, unwrap=True):
        """
        Make a load.php request and unwrap the "js" payload

        With ``unwrap=False`` only the HTTP status is checked and None is returned.

        Raises:
            requests.RequestException: transport error, timeout or HTTP error status
            PortalResponseError: body is not a JSON {"js": ...} envelope
        """
        request_params = {"type": request_type, "action": action}
        if params:
            request_params.update(params)

        logger.debug(f"Making request to {self.host} with type={request_type} action={action}")

        response = requests.get(
            self.load_url,
            params=request_params,
            headers=self._headers(),
            timeout=(PORTAL_CONNECT_TIMEOUT, PORTAL_READ_TIMEOUT),
        )
        response.raise_for_status()
        if not unwrap:
            return None

        try:
            envelope = response.json()
        except ValueError as e:
            raise PortalResponseError(f"{action}: response is not JSON") from e

        if not isinstance(envelope, dict) or "js" not in envelope:
            raise PortalResponseError(f"{action}: response has no 'js' payload")

        return envelope["js"]

    def handshake(self):
        """Perform the anonymous handshake and return the issued token"""
        payload = self._make_request("stb", "handshake", {"token": "", "JsHttpRequest": "1-xml"})
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token or not isinstance(token, str):
            raise PortalResponseError("handshake: response carries no token")
        return token

    def get_profile(self, mac, device_id, metrics_mac=None, login=None, password=None):
        """Bind the current token to the device; the payload is not used"""
        params = {
            "hd": "1",
            "ver": STB_FIRMWARE_VERSION,
            "mac": mac,
            "device_id": device_id,
            "device_id2": device_id,
            "auth_second_step": "1",
            "metrics": json.dumps(
                {"mac": metrics_mac or mac, "sn": METRICS_SERIAL_NUMBER, "model": self.device_type}
            ),
        }
        if login and password:
            params["login"] = login
            params["password"] = password
        self._make_request("stb", "get_profile", params, unwrap=False)

    def get_all_channels(self):
        """Get all live channels"""
        return self._data_list(self._make_request("itv", "get_all_channels"), "get_all_channels")

    def get_ordered_list(self, page=1, series=False):
        """Get a page of VOD items, or of series when ``series`` is set"""
        params = {
            "sortby": "added",
            "not_ended": "0",
            "p": str(page),
            "fav": "0",
            "JsHttpRequest": "1-xml",
        }
        if series:
            params.update(
                {"movie_id": "0", "season_id": "0", "episode_id": "0", "category": "*", "genre": "*"}
            )
        return self._data_list(self._make_request("vod", "get_ordered_list", params), "get_ordered_list")

    def get_short_epg(self, channel_id):
        """Get the short EPG listing for a channel"""
        payload = self._make_request("itv", "get_short_epg", {"ch_id": channel_id})
        if not isinstance(payload, dict) or not isinstance(payload.get("epg"), list):
            raise PortalResponseError("get_short_epg: response has no 'epg' list")
        return payload["epg"]

    def get_seasons(self, series_id):
        """Get the season/episode tree of a series"""
        return self._data_list(
            self._make_request("vod", "get_seasons", {"series_id": series_id}), "get_seasons"
        )

    def create_link(self, link_type, cmd):
        """Ask the portal for a playable link; returns the raw "cmd" value"""
        params = {
            "cmd": cmd,
            "series": "0",
            "forced_storage": "undefined",
            "disable_ad": "0",
            "download": "0",
            "JsHttpRequest": "1-xml",
        }
        payload = self._make_request(link_type, "create_link", params)
        if not isinstance(payload, dict):
            raise PortalResponseError("create_link: response payload is not an object")
        return payload.get("cmd")

    @staticmethod
    def _data_list(payload, action):
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise PortalResponseError(f"{action}: response has no 'data' list")
        return payload["data"]
