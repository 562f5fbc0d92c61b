"""
Meta Service - item details, with the short EPG as description for live channels
"""

import logging
from typing import Any, Dict, Optional

import requests

from error_handling import MetadataFetchError, ValidationError
from models import ContentKind, PortalConfig, parse_item_id
from services.auth_service import AuthService, get_auth_service
from services.portal_client import PortalResponseError, StalkerPortalClient

logger = logging.getLogger(__name__)

NO_EPG_DESCRIPTION = "No EPG available"
UNKNOWN_NAME = "Unknown"


def format_epg(entries) -> str:
    """One "<start> - <name>" line per programme"""
    lines = [f"{entry.get('start')} - {entry.get('name')}" for entry in entries if isinstance(entry, dict)]
    return "\n".join(lines) or NO_EPG_DESCRIPTION


class MetaService:
    """Builds meta objects for catalog items"""

    def __init__(self, auth: Optional[AuthService] = None):
        self.auth = auth or get_auth_service()

    def get_meta(self, config: PortalConfig, item_id: str) -> Dict[str, Any]:
        """
        Get the meta object for an item id.

        Live channels get their short EPG as description; EPG failures fall
        back to a placeholder. VOD and series ids are returned without extra
        lookups.

        Raises:
            ValidationError: item id is malformed
            AuthenticationError: no token could be obtained
        """
        try:
            kind, native_id, _ = parse_item_id(item_id)
        except ValueError as e:
            raise ValidationError(str(e))

        token = self.auth.authenticate(config)
        meta: Dict[str, Any] = {"id": item_id, "type": kind.media_type, "name": UNKNOWN_NAME}

        if kind == ContentKind.TV:
            client = StalkerPortalClient(config.portal_url, config.device_type, token=token)
            try:
                meta["description"] = self._epg_description(client, native_id)
            except MetadataFetchError as e:
                logger.warning(f"EPG unavailable for channel {native_id} from {e.portal}: {e}")
                meta["description"] = NO_EPG_DESCRIPTION

        return meta

    @staticmethod
    def _epg_description(client: StalkerPortalClient, channel_id: str) -> str:
        try:
            entries = client.get_short_epg(channel_id)
        except (requests.exceptions.RequestException, PortalResponseError) as e:
            raise MetadataFetchError(str(e), portal=client.host, step="get_short_epg") from e
        return format_epg(entries)
