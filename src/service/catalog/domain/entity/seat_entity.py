from enum import StrEnum

import attrs


class SeatTier(StrEnum):
    STANDARD = 'standard'
    PREMIUM = 'premium'
    VIP = 'vip'


@attrs.define(frozen=True)
class Seat:
    id: int
    screen_id: int
    row: str
    number: int
    tier: str = SeatTier.STANDARD
    is_active: bool = True

    @property
    def label(self) -> str:
        return f'{self.row}{self.number}'
