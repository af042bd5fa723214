"""회원가입 / 로그인 유스케이스"""
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from domain.entities.user import UserEntity
from domain.exceptions import InvalidCredentialsError, InactiveUserError, EmailAlreadyRegisteredError
from application.ports.user_repository import UserRepository


@dataclass
class SignupInput:
    email: str
    password: str
    name: str
    phone: Optional[str] = None


@dataclass
class LoginInput:
    email: str
    password: str


class SignupUseCase:
    def __init__(self, user_repo: UserRepository, hash_password_fn):
        self._user_repo = user_repo
        self._hash_password = hash_password_fn

    async def execute(self, input: SignupInput) -> UserEntity:
        if await self._user_repo.get_by_email(input.email) is not None:
            raise EmailAlreadyRegisteredError()
        user = await self._user_repo.create(email=input.email,
                                            password_hash=self._hash_password(input.password),
                                            name=input.name, phone=input.phone)
        logger.info(f"새 사용자 가입: {user.email}")
        return user


class LoginUseCase:
    def __init__(self, user_repo: UserRepository, verify_password_fn):
        self._user_repo = user_repo
        self._verify_password = verify_password_fn

    async def execute(self, input: LoginInput) -> UserEntity:
        user = await self._user_repo.get_by_email(input.email)
        if user is None:
            raise InvalidCredentialsError()
        if not self._verify_password(input.password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise InactiveUserError()
        await self._user_repo.update_last_login(user.id)
        logger.info(f"사용자 로그인: {user.email}")
        return user
