"""
JWT bearer authentication

Tokens are issued by the account service; this side only verifies them with the
shared SECRET_KEY and rebuilds the caller identity from the claims.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict

from fastapi import HTTPException, status
import jwt

from src.platform.config.core_setting import settings
from src.service.shared_kernel.domain.entity.current_user import CurrentUser, UserRole


class JwtAuth:
    def __init__(self) -> None:
        self.secret = settings.SECRET_KEY.get_secret_value()
        self.algorithm = settings.ALGORITHM
        self.token_expire_days = 7

    def create_jwt_token(self, user: CurrentUser) -> str:
        payload = {
            'sub': str(user.id),
            'exp': datetime.now(timezone.utc) + timedelta(days=self.token_expire_days),
            'iat': datetime.now(timezone.utc),
            'user_id': user.id,
            'email': user.email,
            'role': user.role.value,
        }

        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
            return payload
        except jwt.PyJWTError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid token')

    def get_current_user_info_from_jwt(self, token: str | None) -> CurrentUser:
        if not token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail='Not authenticated'
            )

        payload = self.decode_jwt_token(token)

        user_id = payload.get('user_id')
        role = payload.get('role')
        if not isinstance(user_id, int) or role not in UserRole._value2member_map_:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid token')

        return CurrentUser(id=user_id, role=UserRole(role), email=payload.get('email'))
