# erp_otica/modules/people/models.py
from pydantic import BaseModel, Field, EmailStr, ConfigDict
from typing import List, Optional, Literal
from datetime import datetime
from bson import ObjectId

from erp_otica.models.api_common import MONGO_MODEL_CONFIG, PyObjectId

USER_ROLES = Literal["admin", "seller"]

# --- Internal/DB Models ---
class UserCreateInternal(BaseModel):
    email: EmailStr
    full_name: str
    hashed_password: str
    roles: List[USER_ROLES] = ["seller"]
    is_active: bool = True

class UserUpdateInternal(BaseModel):
    full_name: Optional[str] = None
    hashed_password: Optional[str] = None
    roles: Optional[List[USER_ROLES]] = None
    is_active: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")

class UserInDB(BaseModel):
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    email: EmailStr
    full_name: str
    hashed_password: str
    roles: List[USER_ROLES] = Field(default=["seller"])
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = MONGO_MODEL_CONFIG

# --- API Models ---
class UserAPI(BaseModel):
    id: PyObjectId
    email: EmailStr
    full_name: str
    roles: List[USER_ROLES]
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class UserRegisterAPI(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=3)

class Token(BaseModel):
    """Resposta do /auth/login."""
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int = Field(..., description="Validade do token em segundos.")
