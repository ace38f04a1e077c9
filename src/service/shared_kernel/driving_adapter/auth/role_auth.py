from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError
from src.service.shared_kernel.domain.entity.current_user import CurrentUser, UserRole
from src.service.shared_kernel.driving_adapter.auth.jwt_auth import JwtAuth


bearer_scheme = HTTPBearer(auto_error=False)


@inject
async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
) -> CurrentUser:
    return jwt_auth.get_current_user_info_from_jwt(
        credentials.credentials if credentials else None
    )


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != UserRole.ADMIN:
        raise ForbiddenError('Only administrators can perform this action')
    return current_user
