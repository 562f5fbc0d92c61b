"""
Marshmallow schemas for addon input validation

Validates the per-install portal configuration carried in addon URLs and
the optional series episode selection, and turns them into model objects.
"""
import json
import re

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, pre_load, validate, validates

from error_handling import ValidationError as RequestValidationError
from models import DEFAULT_DEVICE_TYPE, EpisodeSelection, PortalConfig

MAC_PATTERN = re.compile(r"^([0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}$")

# ============================================================================
# Portal Configuration Schema
# ============================================================================


class PortalConfigSchema(Schema):
    """Schema for the addon configuration (portal, MAC, device type, login)"""

    portal_url = fields.Str(required=True, data_key="portalUrl", validate=validate.Length(min=1, max=500))
    mac = fields.Str(required=True, validate=validate.Length(max=17))
    device_type = fields.Str(
        data_key="deviceType", load_default=DEFAULT_DEVICE_TYPE, validate=validate.Length(min=1, max=50)
    )
    username = fields.Str(load_default=None, allow_none=True)
    password = fields.Str(load_default=None, allow_none=True)

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def strip_blank_values(self, data, **kwargs):
        """Treat blank form fields as missing"""
        if not isinstance(data, dict):
            return data
        cleaned = {}
        for key, value in data.items():
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            cleaned[key] = value
        return cleaned

    @validates("portal_url")
    def validate_portal_url(self, value, **kwargs):
        """Portal URL must be an http(s) URL"""
        if not re.match(r"^https?://[^/\s]+", value):
            raise ValidationError("Portal URL must start with http:// or https://")

    @validates("mac")
    def validate_mac(self, value, **kwargs):
        """MAC must look like 00:1A:79:XX:XX:XX"""
        if not MAC_PATTERN.match(value):
            raise ValidationError("Invalid MAC address format")

    @post_load
    def make_config(self, data, **kwargs):
        return PortalConfig(**data)


# ============================================================================
# Episode Selection Schema
# ============================================================================


class EpisodeSelectionSchema(Schema):
    """Schema for the season/episode query parameters of a series stream"""

    season = fields.Int(load_default=1, validate=validate.Range(min=1))
    episode = fields.Int(load_default=1, validate=validate.Range(min=1))

    class Meta:
        unknown = EXCLUDE

    @post_load
    def make_selection(self, data, **kwargs):
        return EpisodeSelection(**data)


# ============================================================================
# Validation Helpers
# ============================================================================


def load_portal_config(raw):
    """
    Decode and validate the configuration segment of an addon URL

    Args:
        raw: JSON object text (already URL-decoded by the router), or a dict

    Returns:
        PortalConfig

    Raises:
        error_handling.ValidationError: if the config is not valid JSON or
            fails schema validation (details carry the field messages)
    """
    data = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError:
            raise RequestValidationError("Configuration is not valid JSON")

    if not isinstance(data, dict):
        raise RequestValidationError("Configuration must be a JSON object")

    try:
        return PortalConfigSchema().load(data)
    except ValidationError as err:
        error = RequestValidationError("Incomplete or invalid configuration")
        error.details = err.messages
        raise error


def load_episode_selection(params):
    """Validate season/episode parameters, defaulting to the first episode"""
    try:
        return EpisodeSelectionSchema().load(params or {})
    except ValidationError as err:
        error = RequestValidationError("Invalid season/episode selection")
        error.details = err.messages
        raise error
