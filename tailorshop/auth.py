from flask import request

from . import db
from .models import User

ACTOR_HEADER = "X-User-Id"


def current_actor():
    """Return the active ``User`` named by the ``X-User-Id`` header, or None."""

    raw = (request.headers.get(ACTOR_HEADER) or "").strip()
    if not raw.isdigit():
        return None
    user = db.session.get(User, int(raw))
    if user is None or not user.active:
        return None
    return user
