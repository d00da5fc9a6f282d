# erp_otica/modules/people/services.py
from typing import Optional
from fastapi import HTTPException, status
from loguru import logger

from erp_otica.core.repository import DuplicateDocumentError
from erp_otica.core.security import get_password_hash, verify_password
from .repository import UserRepository
from .models import UserInDB, UserCreateInternal, UserRegisterAPI

class UserService:
    async def register(self, payload: UserRegisterAPI, user_repo: UserRepository) -> UserInDB:
        """Cadastra um usuário. O primeiro usuário do sistema vira admin."""
        email = payload.email.lower()
        log = logger.bind(service="UserService", email=email)

        if await user_repo.get_by_email(email):
            log.warning("Registration rejected: email already in use.")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered.")

        roles = ["admin"] if await user_repo.count() == 0 else ["seller"]
        user_in = UserCreateInternal(
            email=email,
            full_name=payload.full_name.strip(),
            hashed_password=get_password_hash(payload.password),
            roles=roles,
        )
        try:
            user = await user_repo.create(user_in)
        except DuplicateDocumentError as e: # índice único de email
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        log.success(f"User registered with roles {roles} (ID: {user.id})")
        return user

    async def authenticate(self, email: str, password: str, user_repo: UserRepository) -> Optional[UserInDB]:
        """Retorna o usuário se email/senha conferem e a conta está ativa."""
        user = await user_repo.get_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            return None
        if not user.is_active:
            logger.bind(email=email).warning("Login attempt for inactive user.")
            return None
        return user

async def get_user_service() -> UserService:
    return UserService()
