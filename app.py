#!/usr/bin/env python3
"""
Stalker Portal Addon - media-center addon emulating a MAG set-top box

Application entry point with blueprint registration:
  - routes/addon.py - manifest, catalog, meta and stream endpoints
"""

import logging
import os

from flask import Flask
from flask_cors import CORS

from error_handling import register_error_handlers

# Initialize Flask app
app = Flask(__name__)
app.json.sort_keys = False

# The config path segment carries a portal URL ("http://...")
app.url_map.merge_slashes = False

# Media-center clients fetch addon resources cross-origin
CORS(app)

# Register error handlers
register_error_handlers(app)

# Setup logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# ============================================================================
# Register Blueprints
# ============================================================================

from routes.addon import addon_bp

app.register_blueprint(addon_bp)


# ============================================================================
# Application Entry Point
# ============================================================================


if __name__ == "__main__":
    port = int(os.getenv("PORT", 7000))
    debug = os.getenv("DEBUG", "False").lower() == "true"

    logger.info(f"Starting Stalker addon on port {port}")

    app.run(host="0.0.0.0", port=port, debug=debug, threaded=True)
