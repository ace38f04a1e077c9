from abc import ABC, abstractmethod

from src.service.booking.domain.entity.user_contact_entity import UserContact


class IUserContactQueryRepo(ABC):
    @abstractmethod
    async def get_contact(self, *, user_id: int) -> UserContact | None:
        """E-mail, phone and name used to address notifications"""
        pass
