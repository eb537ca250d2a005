"""Bearer token guard for protected routes."""
from functools import wraps

from flask import current_app, g, request


def get_services():
    """Services of the running application."""
    return current_app.extensions["services"]


def _bearer_token():
    header = request.headers.get("Authorization", "").strip()
    if header.lower().startswith("bearer "):
        header = header[7:].strip()
    return header or None


def token_required(view):
    """Reject the request with 401 unless it carries a valid token.

    The caller's identity is available as ``g.identity`` inside the view.
    """
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.identity = get_services().auth.verify_token(_bearer_token())
        return view(*args, **kwargs)

    return wrapper
