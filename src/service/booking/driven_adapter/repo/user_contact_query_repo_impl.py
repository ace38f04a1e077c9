from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_user_contact_query_repo import IUserContactQueryRepo
from src.service.booking.domain.entity.user_contact_entity import UserContact
from src.service.booking.driven_adapter.model.user_model import UserModel


class UserContactQueryRepoImpl(IUserContactQueryRepo):
    def __init__(self, session: AsyncSession):
        self.session = session

    @Logger.io
    async def get_contact(self, *, user_id: int) -> UserContact | None:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        user_model = result.scalar_one_or_none()

        if not user_model:
            return None

        return UserContact(
            id=user_model.id,
            email=user_model.email,
            name=user_model.name,
            phone=user_model.phone,
        )
