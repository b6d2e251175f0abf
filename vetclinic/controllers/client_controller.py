"""
Client controller for handling HTTP requests following SOLID principles.

This controller:
- Handles HTTP concerns only (Single Responsibility)
- Builds repositories and services from the request session
- Leaves error rendering to the application error handlers
"""

from flask import Blueprint, request
from flask_login import login_required
from sqlalchemy.orm import Session

from vetclinic.core.api_utils import api_response, get_json_body, parse_page_request
from vetclinic.core.auth import get_principal, staff_required
from vetclinic.core.extensions import get_services
from vetclinic.db.session import UnitOfWork
from vetclinic.repositories.client_repo import ClientRepository
from vetclinic.repositories.pet_repo import PetRepository
from vetclinic.schemas.dtos import (
    ClientCreateRequest,
    ClientPatch,
    ClientResponse,
    PetResponse,
    page_to_dict,
)
from vetclinic.services.client_service import ClientService
from vetclinic.services.pet_service import PetService

client_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


def _client_service(db: Session) -> ClientService:
    return ClientService(
        ClientRepository(db),
        PetRepository(db),
        UnitOfWork(db),
        image_storage=get_services().image_storage,
    )


@client_bp.route("", methods=["GET"])
@login_required
def list_clients():
    """Paginated client list; owners only see their own record."""
    services = get_services()
    page_request = parse_page_request(services.config.max_page_size)
    db = services.database.session()
    try:
        page = _client_service(db).list_clients(get_principal(), page_request)
        return api_response(
            True, "Clients retrieved", page_to_dict(page, ClientResponse.from_domain)
        )
    finally:
        db.close()


@client_bp.route("/search", methods=["GET"])
@login_required
def search_clients():
    """Clients whose surname contains ``?surname=``."""
    db = get_services().database.session()
    try:
        clients = _client_service(db).search_by_surname(
            get_principal(), request.args.get("surname", "")
        )
        return api_response(
            True,
            f"Found {len(clients)} clients",
            [ClientResponse.from_domain(c).to_dict() for c in clients],
        )
    finally:
        db.close()


@client_bp.route("", methods=["POST"])
@staff_required
def register_client():
    create_request = ClientCreateRequest.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        client = _client_service(db).register_client(get_principal(), create_request)
        return api_response(
            True, "Client registered", ClientResponse.from_domain(client).to_dict(), 201
        )
    finally:
        db.close()


@client_bp.route("/<int:client_id>", methods=["GET"])
@login_required
def get_client(client_id: int):
    db = get_services().database.session()
    try:
        client = _client_service(db).get_client(get_principal(), client_id)
        return api_response(
            True, "Client retrieved", ClientResponse.from_domain(client).to_dict()
        )
    finally:
        db.close()


@client_bp.route("/<int:client_id>", methods=["PATCH", "PUT"])
@staff_required
def update_client(client_id: int):
    patch = ClientPatch.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        client = _client_service(db).update_client(get_principal(), client_id, patch)
        return api_response(
            True, "Client updated", ClientResponse.from_domain(client).to_dict()
        )
    finally:
        db.close()


@client_bp.route("/<int:client_id>", methods=["DELETE"])
@staff_required
def delete_client(client_id: int):
    """Delete a client together with its pets, appointments and treatments."""
    db = get_services().database.session()
    try:
        _client_service(db).delete_client(get_principal(), client_id)
        return api_response(True, "Client deleted")
    finally:
        db.close()


@client_bp.route("/<int:client_id>/pets", methods=["GET"])
@login_required
def client_pets(client_id: int):
    db = get_services().database.session()
    try:
        pet_service = PetService(
            PetRepository(db), ClientRepository(db), UnitOfWork(db)
        )
        pets = pet_service.pets_for_client(get_principal(), client_id)
        return api_response(
            True,
            "Pets retrieved",
            [PetResponse.from_domain(p).to_dict() for p in pets],
        )
    finally:
        db.close()
