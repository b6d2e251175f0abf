from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .session import Base


class Client(Base):
    """Pet owner. Deleting a client deletes its pets and their history."""

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    national_id: Mapped[str] = mapped_column(String(9), nullable=False, unique=True)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    pets: Mapped[List["Pet"]] = relationship(
        back_populates="client", cascade="all, delete-orphan", order_by="Pet.id"
    )

    def __repr__(self):
        return f"<Client(id={self.id}, national_id='{self.national_id}')>"


class Pet(Base):
    """Patient. Always belongs to exactly one client."""

    __tablename__ = "pets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    species: Mapped[str] = mapped_column(String(50), nullable=False)
    breed: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    image_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )

    client: Mapped["Client"] = relationship(back_populates="pets")
    appointments: Mapped[List["Appointment"]] = relationship(
        back_populates="pet", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Pet(id={self.id}, name='{self.name}', client_id={self.client_id})>"


class Veterinarian(Base):
    """Staff member. Appointments survive its deletion with a null reference."""

    __tablename__ = "veterinarians"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    license_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True
    )
    specialty: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(100), nullable=False)

    # No delete cascade: appointments are nulled, never removed
    appointments: Mapped[List["Appointment"]] = relationship(
        back_populates="veterinarian", passive_deletes=True
    )

    def __repr__(self):
        return f"<Veterinarian(id={self.id}, license_number='{self.license_number}')>"


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    diagnosis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    pet_id: Mapped[int] = mapped_column(
        ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    veterinarian_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("veterinarians.id", ondelete="SET NULL"), nullable=True, index=True
    )

    pet: Mapped["Pet"] = relationship(back_populates="appointments")
    veterinarian: Mapped[Optional["Veterinarian"]] = relationship(
        back_populates="appointments"
    )
    treatments: Mapped[List["Treatment"]] = relationship(
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="Treatment.id",
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, pet_id={self.pet_id}, scheduled_at={self.scheduled_at})>"


class Treatment(Base):
    """Billable line of an appointment."""

    __tablename__ = "treatments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    medication: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    price: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False), nullable=False
    )
    observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    appointment_id: Mapped[int] = mapped_column(
        ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )

    appointment: Mapped["Appointment"] = relationship(back_populates="treatments")

    def __repr__(self):
        return f"<Treatment(id={self.id}, appointment_id={self.appointment_id}, price={self.price})>"


class User(Base):
    """Login account linked to exactly one client or veterinarian record."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"), unique=True, nullable=True
    )
    veterinarian_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("veterinarians.id", ondelete="CASCADE"), unique=True, nullable=True
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
