# Controllers package initialization
# Each module exposes one Blueprint registered by create_app()

from . import (
    appointment_controller,
    auth_controller,
    client_controller,
    dashboard_controller,
    health_controller,
    pet_controller,
    treatment_controller,
    veterinarian_controller,
)

__all__ = [
    "appointment_controller",
    "auth_controller",
    "client_controller",
    "dashboard_controller",
    "health_controller",
    "pet_controller",
    "treatment_controller",
    "veterinarian_controller",
]
