"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.booking.app.command import (
    cancel_booking_use_case,
    create_booking_use_case,
    expire_stale_holds_use_case,
    process_payment_use_case,
)
from src.service.shared_kernel.driving_adapter.auth import role_auth


WIRE_MODULES: list[ModuleType] = [
    create_booking_use_case,
    process_payment_use_case,
    cancel_booking_use_case,
    expire_stale_holds_use_case,
    role_auth,
]
