from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError
from src.service.settlement.domain.entity.user_entity import User
from src.service.settlement.domain.enum.user_role import UserRole
from src.service.settlement.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


bearer_scheme = HTTPBearer(auto_error=False)


class RoleAuthStrategy:
    @staticmethod
    def is_organizer(user: User) -> bool:
        return user.role == UserRole.ORGANIZER

    @staticmethod
    def can_withdraw(user: User) -> bool:
        return user.can_withdraw


@inject
async def get_current_user(
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
    token: Optional[str] = Cookie(None, alias='fastapiusersauth'),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """Cookie first, then Authorization: Bearer"""
    if not token and credentials is not None:
        token = credentials.credentials
    return jwt_auth.get_current_user_info_from_jwt(token)


async def require_organizer(current_user: User = Depends(get_current_user)) -> User:
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        'auth.require_organizer',
        attributes={'user.id': current_user.id, 'user.role': current_user.role.value},
    ):
        if not RoleAuthStrategy.is_organizer(current_user):
            raise ForbiddenError('Only organizers can perform this action')
        return current_user


async def require_withdrawal_role(current_user: User = Depends(get_current_user)) -> User:
    if not RoleAuthStrategy.can_withdraw(current_user):
        raise ForbiddenError('Users cannot withdraw funds, buy a ticket instead')
    return current_user
