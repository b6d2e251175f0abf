"""Management commands for the veterinary clinic backend."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from vetclinic.core.config import AppConfig
from vetclinic.core.exceptions import ClinicError
from vetclinic.core.security import generate_rsa_key_pair
from vetclinic.db.session import Database, UnitOfWork
from vetclinic.repositories.client_repo import ClientRepository
from vetclinic.repositories.user_repo import UserRepository
from vetclinic.repositories.veterinarian_repo import VeterinarianRepository
from vetclinic.schemas.dtos import RegisterRequest
from vetclinic.services.user_service import UserService

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def _database() -> Database:
    config = AppConfig.from_env()
    return Database(config.database_url, echo=config.sql_echo)


@click.group()
def cli() -> None:
    """Entry point for management commands."""


@cli.command("init-db")
def init_db() -> None:
    """Create every table that does not exist yet."""
    database = _database()
    try:
        database.create_tables()
        logging.info("Database tables created.")
    finally:
        database.dispose()


@cli.command("generate-keys")
@click.option(
    "--out-dir",
    default="keys",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory that receives private.pem and public.pem.",
)
@click.option("--key-size", default=2048, show_default=True, type=int)
@click.option("--force", is_flag=True, help="Overwrite existing key files.")
def generate_keys(out_dir: str, key_size: int, force: bool) -> None:
    """Write a fresh RSA key pair for signing access tokens."""
    target = Path(out_dir)
    private_path = target / "private.pem"
    public_path = target / "public.pem"
    if not force and (private_path.exists() or public_path.exists()):
        raise click.ClickException(
            f"Key files already exist in '{target}'. Use --force to overwrite."
        )

    private_pem, public_pem = generate_rsa_key_pair(key_size=key_size)
    target.mkdir(parents=True, exist_ok=True)
    private_path.write_text(private_pem, encoding="utf-8")
    private_path.chmod(0o600)
    public_path.write_text(public_pem, encoding="utf-8")

    logging.info("Wrote %s and %s", private_path, public_path)
    logging.info(
        "Set JWT_PRIVATE_KEY_PATH=%s and JWT_PUBLIC_KEY_PATH=%s", private_path, public_path
    )


@cli.command("create-staff")
@click.option("--email", required=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--name", required=True)
@click.option("--surname", required=True)
@click.option("--license-number", required=True)
@click.option("--specialty", default=None)
def create_staff(
    email: str,
    password: str,
    name: str,
    surname: str,
    license_number: str,
    specialty: str | None,
) -> None:
    """Create a veterinarian together with its staff login."""
    database = _database()
    database.create_tables()
    session = database.session()
    try:
        service = UserService(
            UserRepository(session),
            ClientRepository(session),
            VeterinarianRepository(session),
            UnitOfWork(session),
        )
        principal = service.create_account(
            RegisterRequest(
                email=email,
                password=password,
                role="VETERINARIAN",
                name=name,
                surname=surname,
                license_number=license_number,
                specialty=specialty,
            )
        )
    except ClinicError as e:
        details = getattr(e, "errors", None)
        raise click.ClickException(f"{e.message} {details or ''}".strip()) from e
    finally:
        session.close()
        database.dispose()

    logging.info(
        "Created staff account %s (veterinarian id=%s).",
        principal.email,
        principal.veterinarian_id,
    )


if __name__ == "__main__":
    cli()
