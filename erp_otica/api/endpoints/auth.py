# erp_otica/api/endpoints/auth.py

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger

from erp_otica.core import security
from erp_otica.core.config import settings
from erp_otica.core.rate_limit import LOGIN_RATE_LIMIT, LOGIN_RATE_LIMIT_MESSAGE, limiter
from erp_otica.models.api_common import DetailResponse
from erp_otica.modules.people.models import Token, UserAPI, UserRegisterAPI
from erp_otica.modules.people.repository import UserRepository, get_user_repository
from erp_otica.modules.people.services import UserService, get_user_service

router = APIRouter()

@router.post(
    "/register",
    response_model=UserAPI,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": DetailResponse}},
    tags=["Authentication"],
)
async def register_user(
    payload: UserRegisterAPI,
    user_service: Annotated[UserService, Depends(get_user_service)],
    user_repo: Annotated[UserRepository, Depends(get_user_repository)],
):
    """Cadastra um novo usuário do sistema."""
    user = await user_service.register(payload, user_repo)
    return UserAPI.model_validate(user)

@router.post(
    "/login",
    response_model=Token,
    responses={401: {"model": DetailResponse}, 429: {"model": DetailResponse}},
    tags=["Authentication"],
)
@limiter.limit(LOGIN_RATE_LIMIT, error_message=LOGIN_RATE_LIMIT_MESSAGE)
async def login_for_access_token(
    request: Request,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    user_service: Annotated[UserService, Depends(get_user_service)],
    user_repo: Annotated[UserRepository, Depends(get_user_repository)],
):
    """
    Authenticates using username (email) & password form data.
    Returns a JWT access token on success.
    """
    username = form_data.username.lower()
    log = logger.bind(api_endpoint="/auth/login", username=username)
    log.info("Login attempt received.")

    user = await user_service.authenticate(email=username, password=form_data.password, user_repo=user_repo)
    if not user:
        log.warning("Authentication failed: Incorrect email or password")
        raise security.CredentialsException

    log.success(f"Authentication successful for user: {username} (ID: {user.id})")
    lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = security.create_access_token(data={"sub": user.email, "uid": str(user.id)}, expires_delta=lifetime)
    return Token(access_token=access_token, expires_in=int(lifetime.total_seconds()))

@router.get("/me", response_model=UserAPI, tags=["Authentication"])
async def read_current_user(current_user: security.CurrentUser):
    return UserAPI.model_validate(current_user)
