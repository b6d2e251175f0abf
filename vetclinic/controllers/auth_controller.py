from typing import Any, Dict

from flask import Blueprint
from flask_login import login_required
from sqlalchemy.orm import Session

from vetclinic.core.api_utils import api_response, get_json_body
from vetclinic.core.auth import get_principal
from vetclinic.core.extensions import get_services
from vetclinic.core.limiter_config import LOGIN_RATE_LIMIT, limiter
from vetclinic.db.session import UnitOfWork
from vetclinic.domain.entities import Principal
from vetclinic.repositories.client_repo import ClientRepository
from vetclinic.repositories.user_repo import UserRepository
from vetclinic.repositories.veterinarian_repo import VeterinarianRepository
from vetclinic.schemas.dtos import LoginRequest, PrincipalResponse, RegisterRequest
from vetclinic.services.user_service import UserService

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _user_service(db: Session) -> UserService:
    return UserService(
        UserRepository(db),
        ClientRepository(db),
        VeterinarianRepository(db),
        UnitOfWork(db),
        token_service=get_services().token_service,
    )


def _token_payload(principal: Principal, token: str) -> Dict[str, Any]:
    return {
        "token": token,
        "token_type": "Bearer",
        "expires_in_hours": get_services().config.jwt_expiration_hours,
        "user": PrincipalResponse.from_domain(principal).to_dict(),
    }


@auth_bp.route("/register", methods=["POST"])
def register():
    """Create a CLIENT or VETERINARIAN account and log it in.

    Expected JSON body: {"email", "password", "role", ...} plus the fields
    of the client or veterinarian record the role requires.
    """
    register_request = RegisterRequest.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        principal, token = _user_service(db).register(register_request)
        return api_response(
            True, "Account registered", _token_payload(principal, token), 201
        )
    finally:
        db.close()


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(LOGIN_RATE_LIMIT)
def login():
    """Exchange email and password for a bearer token."""
    login_request = LoginRequest.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        principal, token = _user_service(db).authenticate(login_request)
        return api_response(True, "Login successful", _token_payload(principal, token))
    finally:
        db.close()


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return api_response(
        True,
        "Authenticated",
        PrincipalResponse.from_domain(get_principal()).to_dict(),
    )
