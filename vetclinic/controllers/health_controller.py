"""
Health controller - liveness endpoint for monitoring.
"""

import logging

from flask import Blueprint, jsonify

from vetclinic.core.extensions import get_services
from vetclinic.core.limiter_config import limiter

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("", methods=["GET"])
@limiter.exempt
def health_check():
    """
    Report whether the service and its database are reachable.

    Returns:
        200 {"status": "ok", "database": "ok"} when the database answers
        503 {"status": "error", "database": "unavailable"} otherwise

    Note:
        - No authentication required (monitoring endpoint)
    """
    if get_services().database.ping():
        return jsonify({"status": "ok", "database": "ok"}), 200

    logger.error(
        "Health check: database unreachable",
        extra={"context": {"endpoint": "/health"}},
    )
    return jsonify({"status": "error", "database": "unavailable"}), 503
