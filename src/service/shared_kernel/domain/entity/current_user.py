from enum import StrEnum

import attrs


class UserRole(StrEnum):
    CUSTOMER = 'customer'
    ADMIN = 'admin'


@attrs.define(frozen=True)
class CurrentUser:
    """Caller identity rebuilt from the JWT payload (no DB query)"""

    id: int
    role: UserRole = UserRole.CUSTOMER
    email: str | None = None
