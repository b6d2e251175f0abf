"""
Per-application collaborators built once by ``create_app()``.

They live in ``app.extensions`` so controllers reach them through
``current_app`` instead of module-level singletons.
"""

from dataclasses import dataclass

from flask import current_app

from vetclinic.core.config import AppConfig
from vetclinic.core.security import TokenService
from vetclinic.db.session import Database
from vetclinic.domain.interfaces import IImageStorage

EXTENSION_KEY = "vetclinic"


@dataclass
class ClinicServices:
    config: AppConfig
    database: Database
    token_service: TokenService
    image_storage: IImageStorage


def get_services() -> ClinicServices:
    return current_app.extensions[EXTENSION_KEY]
