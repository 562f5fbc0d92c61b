"""
Stream Service - resolves catalog items to playable URLs

Live channels and VOD map directly to a portal command ("ch<id>" and
"movie<id>"). Series first need an episode: the portal's season tree is
fetched and the selected episode's command is used. The command is then
passed to create_link, whose answer is either a bare URL or a player
invocation followed by the URL ("ffmpeg http://...").
"""

import logging
from typing import Any, List, Optional, Tuple

import requests

from error_handling import EpisodeNotFoundError, StreamResolutionError, ValidationError
from models import ContentKind, EpisodeSelection, PortalConfig, StreamDescriptor, parse_item_id
from services.auth_service import AuthService, get_auth_service
from services.portal_client import PortalResponseError, StalkerPortalClient

logger = logging.getLogger(__name__)

# create_link request type per kind; series episodes go through "itv" like live channels
LINK_TYPES = {
    ContentKind.TV: "itv",
    ContentKind.VOD: "vod",
    ContentKind.SERIES: "itv",
}


def extract_stream_url(link_cmd: Any) -> str:
    """
    Extract the URL from a create_link "cmd" value.

    Raises:
        StreamResolutionError: the value is empty or not a string
    """
    if not isinstance(link_cmd, str) or not link_cmd.strip():
        raise StreamResolutionError("create_link returned no stream URL", step="create_link")

    link_cmd = link_cmd.strip()
    parts = link_cmd.split(" ")
    if len(parts) > 1 and parts[1]:
        return parts[1]
    return link_cmd


def select_episode_cmd(seasons: List[Any], selection: EpisodeSelection) -> str:
    """
    Pick the command of the selected episode from a season tree.

    Raises:
        EpisodeNotFoundError: the season or episode does not exist
    """
    if selection.season < 1 or selection.season > len(seasons):
        raise EpisodeNotFoundError(f"Season {selection.season} not found", step="get_seasons")

    season = seasons[selection.season - 1]
    episodes = season.get("episodes") if isinstance(season, dict) else None
    if not isinstance(episodes, list) or selection.episode < 1 or selection.episode > len(episodes):
        raise EpisodeNotFoundError(
            f"Episode {selection.episode} of season {selection.season} not found", step="get_seasons"
        )

    episode = episodes[selection.episode - 1]
    cmd = episode.get("cmd") if isinstance(episode, dict) else None
    if not cmd:
        raise StreamResolutionError(
            f"Episode {selection.episode} of season {selection.season} has no command", step="get_seasons"
        )
    return cmd


def selection_from_segments(segments: List[str]) -> Optional[EpisodeSelection]:
    """Read ``<season>:<episode>`` trailing id segments, if present"""
    if not segments:
        return None
    try:
        season = int(segments[0])
        episode = int(segments[1]) if len(segments) > 1 else 1
    except ValueError:
        raise ValidationError(f"Invalid season/episode in item id: {':'.join(segments)}")
    return EpisodeSelection(season=season, episode=episode)


class StreamService:
    """Resolves item ids to stream descriptors"""

    def __init__(self, auth: Optional[AuthService] = None):
        self.auth = auth or get_auth_service()

    def resolve_stream(
        self, config: PortalConfig, item_id: str, selection: Optional[EpisodeSelection] = None
    ) -> List[StreamDescriptor]:
        """
        Resolve an item to zero or one playable streams.

        Resolution failures (portal errors, missing URL, unknown episode) are
        logged and yield an empty list.

        Raises:
            ValidationError: item id is malformed
            AuthenticationError: no token could be obtained
        """
        try:
            kind, native_id, extra = parse_item_id(item_id)
        except ValueError as e:
            raise ValidationError(str(e))

        if kind == ContentKind.SERIES and selection is None:
            selection = selection_from_segments(extra)

        token = self.auth.authenticate(config)
        client = StalkerPortalClient(config.portal_url, config.device_type, token=token)

        try:
            link_type, cmd = self._command_for(client, kind, native_id, selection)
            url = self._create_link(client, link_type, cmd)
        except StreamResolutionError as e:
            logger.warning(
                f"Stream unavailable for {item_id} from {e.portal or client.host} at {e.step or 'create_link'}: {e}"
            )
            return []

        logger.debug(f"Resolved {item_id} via {link_type} cmd={cmd}")
        return [StreamDescriptor(url=url, title=f"{config.device_type} Stream")]

    def _command_for(
        self,
        client: StalkerPortalClient,
        kind: ContentKind,
        native_id: str,
        selection: Optional[EpisodeSelection],
    ) -> Tuple[str, str]:
        if kind == ContentKind.TV:
            return LINK_TYPES[kind], f"ch{native_id}"
        if kind == ContentKind.VOD:
            return LINK_TYPES[kind], f"movie{native_id}"

        try:
            seasons = client.get_seasons(native_id)
        except (requests.exceptions.RequestException, PortalResponseError) as e:
            raise StreamResolutionError(str(e), portal=client.host, step="get_seasons") from e
        return LINK_TYPES[kind], select_episode_cmd(seasons, selection or EpisodeSelection())

    @staticmethod
    def _create_link(client: StalkerPortalClient, link_type: str, cmd: str) -> str:
        try:
            link_cmd = client.create_link(link_type, cmd)
        except (requests.exceptions.RequestException, PortalResponseError) as e:
            raise StreamResolutionError(str(e), portal=client.host, step="create_link") from e
        return extract_stream_url(link_cmd)
