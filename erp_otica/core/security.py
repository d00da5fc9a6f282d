# erp_otica/core/security.py

from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Dict, Iterable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from loguru import logger
from passlib.context import CryptContext
from pydantic import BaseModel

from erp_otica.core.config import settings
from erp_otica.modules.people.models import UserInDB
from erp_otica.modules.people.repository import UserRepository, get_user_repository

class TokenData(BaseModel):
    username: Optional[str] = None # claim 'sub' (email)
    user_id: Optional[str] = None # claim 'uid'

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

def _unauthorized(detail: str, error_description: Optional[str] = None) -> HTTPException:
    challenge = "Bearer"
    if error_description:
        challenge += f' error="invalid_token", error_description="{error_description}"'
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail, headers={"WWW-Authenticate": challenge})

CredentialsException = _unauthorized("Could not validate credentials")
InactiveUserException = HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
PermissionException = HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operation not permitted")

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """False também para hash ausente ou corrompido no banco."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Stored password hash could not be verified: {e}")
        return False

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    if not data.get("sub"):
        raise ValueError("Missing 'sub' claim in token data for JWT creation")
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {**data, "iat": issued_at, "nbf": issued_at, "exp": issued_at + lifetime}
    logger.bind(subject=data["sub"]).info(f"Issuing access token valid for {lifetime}")
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> TokenData:
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired access token")
        raise _unauthorized("Token has expired", "The token has expired")
    except JWTError as e:
        logger.warning(f"Rejected malformed access token: {e}")
        raise CredentialsException from e
    if not claims.get("sub"):
        raise CredentialsException
    return TokenData(username=claims["sub"], user_id=claims.get("uid"))

async def get_current_user_from_token(token: Annotated[str, Depends(oauth2_scheme)]) -> TokenData:
    return decode_access_token(token)

async def get_current_active_user(
    token_data: Annotated[TokenData, Depends(get_current_user_from_token)],
    user_repo: Annotated[UserRepository, Depends(get_user_repository)],
) -> UserInDB:
    """Usuário dono do token; 401 se sumiu do banco, 403 se desativado."""
    log = logger.bind(username=token_data.username)
    try:
        user = await user_repo.get_by_email(token_data.username)
    except RuntimeError:
        log.exception("Could not load user for token")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to retrieve user data due to database error.")
    if user is None:
        log.warning("Token subject no longer exists")
        raise CredentialsException
    if not user.is_active:
        log.warning("Token belongs to an inactive user")
        raise InactiveUserException
    return user

CurrentUser = Annotated[UserInDB, Depends(get_current_active_user)]

def require_role(allowed_roles: Iterable[str]):
    """Ex.: `Depends(require_role(["admin"]))` nas rotas de exclusão."""
    allowed = frozenset(allowed_roles)

    async def _check_role(current_user: CurrentUser) -> UserInDB:
        if allowed.isdisjoint(current_user.roles):
            logger.bind(user_id=str(current_user.id)).warning(f"Role check failed: needs one of {sorted(allowed)}")
            raise PermissionException
        return current_user
    return _check_role
