from flask import Blueprint, jsonify

from . import db

bp = Blueprint("main", __name__)


# Small health check
@bp.get("/healthz")
def healthz():
    db.session.execute(db.text("SELECT 1"))
    return jsonify({"ok": True})
