"""
Authentication helpers for the API.

Every request is authenticated by bearer token: Flask-Login's ``request_loader``
reads ``Authorization: Bearer <token>``, validates it with the application's
TokenService and exposes the resulting Principal as ``current_user``.
There is no session cookie and no ``user_loader``; the account behind the
token is re-read from the database on every request.

DECORATOR GUIDE:
- @login_required (Flask-Login): any authenticated principal
- @staff_required: veterinarian (staff) principals only

Examples:
    @client_bp.route("", methods=["POST"])
    @staff_required
    def register_client():
        ...
"""

import logging
from functools import wraps
from typing import Optional

from flask import Flask
from flask_login import LoginManager, current_user

from vetclinic.core.api_utils import error_response
from vetclinic.core.exceptions import PermissionDeniedError
from vetclinic.domain.entities import Principal

logger = logging.getLogger(__name__)

login_manager = LoginManager()


def _bearer_token(request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[len("Bearer "):].strip()
    return token or None


@login_manager.request_loader
def load_principal_from_request(request) -> Optional[Principal]:
    """Load the principal from the Authorization header Bearer token.

    The token only proves who signed in. Role and linked record come from
    the stored account, so a token stops working once its account is gone.
    """
    token = _bearer_token(request)
    if token is None:
        return None

    # Imported lazily: extensions pulls in the database layer
    from vetclinic.core.extensions import get_services
    from vetclinic.repositories.user_repo import UserRepository

    services = get_services()
    claims = services.token_service.validate(token)
    if claims is None:
        logger.info(
            "Rejected bearer token",
            extra={"context": {"path": request.path, "reason": "invalid_or_expired"}},
        )
        return None

    db = services.database.session()
    try:
        account = UserRepository(db).get_by_email(claims.email)
    finally:
        db.close()

    if account is None:
        logger.info(
            "Rejected bearer token",
            extra={"context": {"path": request.path, "reason": "unknown_account"}},
        )
        return None
    return account.to_principal()


@login_manager.unauthorized_handler
def unauthorized():
    """Return 401 JSON instead of redirecting to a login page."""
    return error_response("Authentication required", "unauthorized", 401)


def init_auth(app: Flask) -> None:
    # Stateless bearer auth: nothing is kept in the Flask session
    login_manager.session_protection = None
    login_manager.init_app(app)


def get_principal() -> Optional[Principal]:
    """Return the authenticated principal of the current request, if any."""
    if current_user and getattr(current_user, "is_authenticated", False):
        return current_user._get_current_object()
    return None


def staff_required(f):
    """Decorator for staff-only endpoints.

    Returns 401 when unauthenticated and 403 when the principal is an owner.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = get_principal()
        if principal is None:
            return login_manager.unauthorized()
        if not principal.is_staff:
            logger.warning(
                "Staff-only endpoint denied",
                extra={"context": {"principal": principal.email, "endpoint": f.__name__}},
            )
            raise PermissionDeniedError()
        return f(*args, **kwargs)

    return decorated_function
