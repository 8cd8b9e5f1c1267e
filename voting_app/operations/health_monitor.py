# voting_app/operations/health_monitor.py
# Liveness/readiness checks: database reachability and upload storage

import os
import shutil
from typing import Dict

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from voting_app.extensions import db

bp = Blueprint('health', __name__)


def _check_db() -> Dict:
    try:
        db.session.execute(text("SELECT 1"))
        return {"ok": True, "detail": "database reachable"}
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Health check database failure: %s", e)
        return {"ok": False, "detail": "database unreachable"}


def _check_uploads() -> Dict:
    folder = current_app.config['UPLOAD_FOLDER']
    min_free_gb = current_app.config.get('MIN_FREE_DISK_GB', 0.1)
    try:
        os.makedirs(folder, exist_ok=True)
        free_gb = shutil.disk_usage(folder).free / (1024 ** 3)
    except OSError as e:
        current_app.logger.error("Health check upload folder failure: %s", e)
        return {"ok": False, "detail": "upload folder unavailable"}
    writable = os.access(folder, os.W_OK)
    return {
        "ok": writable and free_gb >= min_free_gb,
        "writable": writable,
        "free_gb": round(free_gb, 2),
        "min_required_gb": min_free_gb,
    }


def check_health() -> Dict:
    """Aggregate overall system health."""
    database = _check_db()
    uploads = _check_uploads()
    return {"db": database, "uploads": uploads, "overall_ok": database["ok"] and uploads["ok"]}


@bp.get("/health")
def health():
    res = check_health()
    return jsonify(res), 200 if res["overall_ok"] else 503
