"""
Error taxonomy and standardized error handling for the addon

Provides:
- Portal error classes raised by the services
- Consistent error response format
- Error handler decorator for addon routes
- Flask error handlers for common HTTP errors
"""
import logging
import traceback
from functools import wraps

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


# ============================================================================
# Portal Error Classes (for raising)
# ============================================================================


class PortalError(Exception):
    """Base class for failures talking to a Stalker portal"""

    def __init__(self, message, portal=None, step=None):
        super().__init__(message)
        self.portal = portal
        self.step = step


class AuthenticationError(PortalError):
    """Handshake or profile exchange failed; no token is available (502)"""

    pass


class CatalogFetchError(PortalError):
    """A catalog listing request failed (recovered as an empty listing)"""

    pass


class MetadataFetchError(PortalError):
    """An EPG request failed (recovered as a placeholder description)"""

    pass


class StreamResolutionError(PortalError):
    """Link creation failed or returned no playable URL"""

    pass


class EpisodeNotFoundError(StreamResolutionError):
    """The requested season/episode is not in the series' season tree"""

    pass


class ValidationError(ValueError):
    """Raise when addon configuration or an item id is invalid (400)"""

    pass


# ============================================================================
# Error Response Format
# ============================================================================


def error_response(message, status_code=400, details=None):
    """
    Create a standardized error response

    Args:
        message: User-friendly error message
        status_code: HTTP status code
        details: Optional additional details (dict)

    Returns:
        tuple: (response, status_code)
    """
    response = {"success": False, "error": message}

    if details:
        response["details"] = details

    return jsonify(response), status_code


# ============================================================================
# Error Handler Decorator
# ============================================================================


def handle_errors(default_message="An error occurred", log_errors=True, include_traceback_in_dev=False):
    """
    Decorator to handle exceptions in addon route handlers

    Usage:
        @addon_bp.route('/<config>/meta/<media_type>/<item_id>.json')
        @handle_errors(default_message="Error fetching meta")
        def meta(config, media_type, item_id):
            ...

    Args:
        default_message: Fallback message if exception has no message
        log_errors: If True, logs errors to logger
        include_traceback_in_dev: If True and app.debug=True, includes traceback

    Returns:
        Decorated function that catches and handles exceptions
    """

    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except HTTPException:
                raise

            except AuthenticationError as e:
                # Portal rejected us or is unreachable (502)
                if log_errors:
                    logger.warning(f"Authentication failed in {f.__name__}: {e}")
                details = {"portal": e.portal, "step": e.step} if e.portal else None
                return error_response(str(e) or "Portal authentication failed", 502, details)

            except PortalError as e:
                # Recoverable portal errors should be handled by the services
                if log_errors:
                    logger.warning(f"Portal error in {f.__name__}: {e}")
                return error_response(str(e) or "Portal request failed", 502)

            except ValidationError as e:
                if log_errors:
                    logger.warning(f"Validation error in {f.__name__}: {e}")
                message = str(e) if str(e) else "Validation error"
                details = e.details if hasattr(e, "details") else None
                return error_response(message, 400, details)

            except ValueError as e:
                if log_errors:
                    logger.warning(f"Value error in {f.__name__}: {e}")
                return error_response(str(e) if str(e) else default_message, 400)

            except Exception as exc:
                # Unexpected errors (500)
                if log_errors:
                    logger.error(f"Unexpected error in {f.__name__}", exc_info=True)

                from flask import current_app

                if current_app.config.get("DEBUG") and include_traceback_in_dev:
                    details = {"exception_type": type(exc).__name__, "traceback": traceback.format_exc()}
                    return error_response(str(exc), 500, details)

                return error_response(default_message or "An internal error occurred", 500)

        return wrapper

    return decorator


# ============================================================================
# Flask Error Handlers (register these in app.py)
# ============================================================================


def register_error_handlers(app):
    """
    Register global error handlers for the Flask app

    Call this in app.py after creating the Flask app:
        register_error_handlers(app)
    """

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors"""
        return error_response("Resource not found", 404)

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 errors"""
        return error_response("Bad request", 400)

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors"""
        logger.error(f"Internal server error: {error}", exc_info=True)

        if app.config.get("DEBUG"):
            return error_response(str(error), 500)
        else:
            return error_response("An internal error occurred", 500)
