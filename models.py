"""
Data model for the Stalker portal client

Plain dataclasses describing:
- PortalConfig: one portal + device identity, as configured per install
- NormalizedItem: a catalog entry translated from the portal's records
- StreamDescriptor: a resolved, directly playable stream
- ContentKind: the three portal content families (tv, vod, series)
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

ID_PREFIX = "stalker"
DEFAULT_DEVICE_TYPE = "MAG250"
DEFAULT_GENRE = "General"


class ContentKind(Enum):
    """Portal content families and how each one is presented in listings"""

    TV = "tv"
    VOD = "vod"
    SERIES = "series"

    @property
    def media_type(self) -> str:
        """Media-center type for this kind (VOD items are listed as movies)"""
        return {"tv": "tv", "vod": "movie", "series": "series"}[self.value]

    @property
    def placeholder_poster(self) -> str:
        return {
            "tv": "https://via.placeholder.com/300x450?text=TV",
            "vod": "https://via.placeholder.com/300x450?text=VOD",
            "series": "https://via.placeholder.com/300x450?text=Series",
        }[self.value]

    @property
    def default_description(self) -> str:
        return {"tv": "Live channel", "vod": "Video on demand", "series": "Series"}[self.value]


def normalize_portal_url(url: str) -> str:
    """Ensure the portal URL ends with a single trailing slash"""
    url = url.strip()
    return url if url.endswith("/") else f"{url}/"


@dataclass(frozen=True)
class SessionKey:
    """Identifies one authenticated session: a portal and a device MAC"""

    portal_url: str
    mac: str

    def __str__(self) -> str:
        return f"{self.portal_url}_{self.mac}"


@dataclass(frozen=True)
class PortalConfig:
    """Connection settings for one portal and one emulated device"""

    portal_url: str
    mac: str
    device_type: str = DEFAULT_DEVICE_TYPE
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "portal_url", normalize_portal_url(self.portal_url))

    @property
    def wire_mac(self) -> str:
        """MAC address as the portal expects it on the wire"""
        return self.mac.upper()

    @property
    def session_key(self) -> SessionKey:
        return SessionKey(self.portal_url, self.wire_mac)

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


@dataclass
class SessionCacheEntry:
    """A cached portal token and when it was stored"""

    key: SessionKey
    token: str
    cached_at: float = field(default_factory=time.time)

    def is_expired(self, ttl: float, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return now - self.cached_at >= ttl


def make_item_id(kind: ContentKind, native_id: Any) -> str:
    """Build a namespaced item id, e.g. ``stalker:tv:7``"""
    return f"{ID_PREFIX}:{kind.value}:{native_id}"


def parse_item_id(item_id: str) -> Tuple[ContentKind, str, List[str]]:
    """
    Split a namespaced item id into its kind, native portal id and any
    trailing segments (used for ``stalker:series:<id>:<season>:<episode>``).

    Raises:
        ValueError: if the id is not a ``stalker:<kind>:<id>`` id
    """
    parts = (item_id or "").split(":")
    if len(parts) < 3 or parts[0] != ID_PREFIX or not parts[2]:
        raise ValueError(f"Invalid item id: {item_id!r}")
    try:
        kind = ContentKind(parts[1])
    except ValueError:
        raise ValueError(f"Unknown content kind in item id: {item_id!r}")
    return kind, parts[2], parts[3:]


@dataclass
class NormalizedItem:
    """A catalog entry in the shape the media center lists"""

    id: str
    type: str
    name: str
    poster: str
    description: str
    genres: List[str] = field(default_factory=lambda: [DEFAULT_GENRE])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "poster": self.poster,
            "description": self.description,
            "genres": list(self.genres),
        }


@dataclass(frozen=True)
class EpisodeSelection:
    """1-based season and episode positions in a series' season tree"""

    season: int = 1
    episode: int = 1


@dataclass
class StreamDescriptor:
    """A directly playable stream URL"""

    url: str
    title: str

    def __post_init__(self):
        if not self.url:
            raise ValueError("StreamDescriptor requires a non-empty url")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "behaviorHints": {"notWebReady": False, "proxyHeaders": {"request": {}}},
        }
