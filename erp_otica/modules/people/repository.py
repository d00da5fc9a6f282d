# erp_otica/modules/people/repository.py
from typing import Optional
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from erp_otica.core.database import get_database
from erp_otica.core.repository import BaseRepository
from .models import UserInDB, UserCreateInternal, UserUpdateInternal

class UserRepository(BaseRepository[UserInDB, UserCreateInternal, UserUpdateInternal]):
    model = UserInDB
    collection_name = "users"

    async def create_indexes(self):
        await self.collection.create_index("email", unique=True)

    async def get_by_email(self, email: str) -> Optional[UserInDB]:
        return await self.get_by({"email": email.lower()})

async def get_user_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> UserRepository:
    return UserRepository(db)
