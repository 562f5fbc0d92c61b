"""
Catalog Service - translates portal listings into normalized catalog items
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from error_handling import CatalogFetchError
from models import DEFAULT_GENRE, ContentKind, NormalizedItem, PortalConfig, make_item_id
from services.auth_service import AuthService, get_auth_service
from services.portal_client import PortalResponseError, StalkerPortalClient

logger = logging.getLogger(__name__)

# Portal record field holding the poster path, per kind
POSTER_FIELDS = {
    ContentKind.TV: "logo",
    ContentKind.VOD: "screenshot_uri",
    ContentKind.SERIES: "screenshot_uri",
}

# Portal record field holding the genre, per kind
GENRE_FIELDS = {
    ContentKind.TV: "tv_genre_id",
    ContentKind.VOD: "genre",
    ContentKind.SERIES: "genre",
}


def resolve_poster(portal_url: str, path: Optional[str], kind: ContentKind) -> str:
    """Turn a portal-relative image path into a URL, or fall back to the kind's placeholder"""
    if not path:
        return kind.placeholder_poster
    path = str(path)
    if path.startswith(("http://", "https://")):
        return path
    return f"{portal_url}{path.lstrip('/')}"


def translate_record(record: Dict[str, Any], kind: ContentKind, portal_url: str) -> Optional[NormalizedItem]:
    """Map one portal record to a NormalizedItem; records without an id are dropped"""
    native_id = record.get("id")
    if native_id is None or native_id == "":
        return None

    genre = record.get(GENRE_FIELDS[kind])
    return NormalizedItem(
        id=make_item_id(kind, native_id),
        type=kind.media_type,
        name=record.get("name") or "",
        poster=resolve_poster(portal_url, record.get(POSTER_FIELDS[kind]), kind),
        description=record.get("description") or kind.default_description,
        genres=[str(genre) if genre else DEFAULT_GENRE],
    )


class CatalogService:
    """Lists live channels, VOD and series from a portal"""

    def __init__(self, auth: Optional[AuthService] = None):
        self.auth = auth or get_auth_service()

    def list_catalog(self, config: PortalConfig, kind: ContentKind, page: int = 1) -> List[NormalizedItem]:
        """
        List one catalog of the portal.

        Authentication failures propagate. Any listing failure is logged and
        yields an empty list, so one broken catalog never breaks the others.

        Raises:
            AuthenticationError: no token could be obtained
        """
        token = self.auth.authenticate(config)
        client = StalkerPortalClient(config.portal_url, config.device_type, token=token)

        try:
            records = self._fetch(client, kind, page)
        except CatalogFetchError as e:
            logger.warning(f"Catalog {kind.value} unavailable from {e.portal} at {e.step}: {e}")
            return []

        items = []
        for record in records:
            if not isinstance(record, dict):
                continue
            item = translate_record(record, kind, config.portal_url)
            if item is None:
                logger.debug(f"Skipping {kind.value} record without id from {client.host}")
                continue
            items.append(item)

        logger.debug(f"Listed {len(items)} {kind.value} items from {client.host}")
        return items

    @staticmethod
    def _fetch(client: StalkerPortalClient, kind: ContentKind, page: int) -> List[Any]:
        action = "get_all_channels" if kind == ContentKind.TV else "get_ordered_list"
        try:
            if kind == ContentKind.TV:
                return client.get_all_channels()
            return client.get_ordered_list(page=page, series=kind == ContentKind.SERIES)
        except (requests.exceptions.RequestException, PortalResponseError) as e:
            raise CatalogFetchError(str(e), portal=client.host, step=action) from e
