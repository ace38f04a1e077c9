from typing import Optional

import attrs


@attrs.define(frozen=True)
class UserContact:
    id: int
    email: str
    name: str
    phone: Optional[str] = None
