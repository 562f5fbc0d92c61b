"""
Addon routes - manifest, catalog, meta and stream endpoints

The per-install configuration travels in the first path segment as
URL-encoded JSON (portalUrl, mac, deviceType, username, password). Routes
only decode it and forward the services' results.
"""
import logging

from flask import Blueprint, jsonify, request

from error_handling import handle_errors
from models import ContentKind
from schemas import load_episode_selection, load_portal_config
from services.catalog_service import CatalogService
from services.meta_service import MetaService
from services.stream_service import StreamService

logger = logging.getLogger(__name__)

# Create blueprint
addon_bp = Blueprint("addon", __name__)

MANIFEST = {
    "id": "org.stremio.stalker.emulator",
    "version": "0.0.1",
    "name": "Stalker Emulator IPTV",
    "description": "Stalker/MAG portal emulator. Supports Live TV, VOD and series. Configure portal, MAC and device type.",
    "resources": ["catalog", "meta", "stream"],
    "types": ["tv", "movie", "series"],
    "idPrefixes": ["stalker:"],
    "catalogs": [
        {"type": "tv", "id": "live", "name": "Live Channels"},
        {"type": "movie", "id": "vod", "name": "VOD"},
        {"type": "series", "id": "series", "name": "Series"},
    ],
    "behaviorHints": {"configurable": True, "configurationRequired": True},
    "config": [
        {"key": "portalUrl", "type": "text", "title": "Portal URL (e.g. http://portal.com/stalker_portal/c/)", "required": True},
        {"key": "mac", "type": "text", "title": "MAC Address (e.g. 00:1A:79:XX:XX:XX)", "required": True},
        {"key": "deviceType", "type": "text", "title": "Device Type (e.g. MAG250, MAG254, MAG322)", "default": "MAG250"},
        {"key": "username", "type": "text", "title": "Username (optional, if the portal uses one)"},
        {"key": "password", "type": "password", "title": "Password (optional, if the portal uses one)"},
    ],
}

# (media type, catalog id) -> portal content kind
CATALOG_KINDS = {
    ("tv", "live"): ContentKind.TV,
    ("movie", "vod"): ContentKind.VOD,
    ("series", "series"): ContentKind.SERIES,
}

# Initialize services
catalog_service = CatalogService()
meta_service = MetaService()
stream_service = StreamService()


# ============================================================================
# Manifest
# ============================================================================


@addon_bp.route("/manifest.json")
def manifest():
    """Addon manifest (unconfigured install)"""
    return jsonify(MANIFEST)


@addon_bp.route("/<path:config>/manifest.json")
def configured_manifest(config):
    """Addon manifest for a configured install"""
    manifest_data = dict(MANIFEST)
    manifest_data["behaviorHints"] = {"configurable": True, "configurationRequired": False}
    return jsonify(manifest_data)


# ============================================================================
# Catalog / Meta / Stream
# ============================================================================


@addon_bp.route("/<path:config>/catalog/<media_type>/<catalog_id>.json")
@handle_errors(default_message="Error fetching catalog")
def catalog(config, media_type, catalog_id):
    """List one of the portal catalogs"""
    portal_config = load_portal_config(config)

    kind = CATALOG_KINDS.get((media_type, catalog_id))
    if kind is None:
        logger.debug(f"Unknown catalog requested: type={media_type} id={catalog_id}")
        return jsonify({"metas": []})

    items = catalog_service.list_catalog(portal_config, kind)
    return jsonify({"metas": [item.to_dict() for item in items]})


@addon_bp.route("/<path:config>/meta/<media_type>/<item_id>.json")
@handle_errors(default_message="Error fetching meta")
def meta(config, media_type, item_id):
    """Meta details for one item (short EPG for live channels)"""
    portal_config = load_portal_config(config)
    return jsonify({"meta": meta_service.get_meta(portal_config, item_id)})


@addon_bp.route("/<path:config>/stream/<media_type>/<item_id>.json")
@handle_errors(default_message="Error resolving stream")
def stream(config, media_type, item_id):
    """
    Resolve an item to a playable stream.

    For series, the episode comes from ?season=&episode= or from an id of the
    form stalker:series:<id>:<season>:<episode>; the first episode otherwise.
    """
    portal_config = load_portal_config(config)

    selection = None
    if "season" in request.args or "episode" in request.args:
        selection = load_episode_selection(request.args.to_dict())

    streams = stream_service.resolve_stream(portal_config, item_id, selection)
    return jsonify({"streams": [s.to_dict() for s in streams]})
