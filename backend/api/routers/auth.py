"""인증 라우터"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from infrastructure.persistence.database import get_session
from infrastructure.persistence.models.user import User
from infrastructure.persistence.repositories.user_repository import SqlUserRepository
from api.schemas.auth import UserSignupRequest, UserLoginRequest, TokenResponse, UserResponse
from api.dependencies import get_current_active_user
from application.use_cases.login import SignupUseCase, SignupInput, LoginUseCase, LoginInput
from domain.entities.user import UserEntity
from infrastructure.auth.password_service import hash_password, verify_password
from infrastructure.auth.jwt_service import create_access_token

router = APIRouter(prefix="/api/auth", tags=["인증"])


def _user_response(user: UserEntity) -> UserResponse:
    return UserResponse(id=user.id, email=user.email, name=user.name, phone=user.phone,
                        role=user.role, balance=float(user.balance), is_active=user.is_active)


def _token_response(user: UserEntity) -> TokenResponse:
    return TokenResponse(access_token=create_access_token({"sub": user.id}),
                         expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
                         user=_user_response(user))


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: UserSignupRequest, session: AsyncSession = Depends(get_session)):
    use_case = SignupUseCase(SqlUserRepository(session), hash_password)
    user = await use_case.execute(SignupInput(email=request.email, password=request.password,
                                              name=request.name, phone=request.phone))
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(request: UserLoginRequest, session: AsyncSession = Depends(get_session)):
    use_case = LoginUseCase(SqlUserRepository(session), verify_password)
    user = await use_case.execute(LoginInput(email=request.email, password=request.password))
    return _token_response(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_active_user)):
    return UserResponse(id=current_user.id, email=current_user.email, name=current_user.name,
                        phone=current_user.phone, role=current_user.role.value,
                        balance=float(current_user.balance), is_active=current_user.is_active,
                        created_at=current_user.created_at)
