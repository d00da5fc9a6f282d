# erp_otica/modules/cash/models.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Literal
from datetime import datetime
from bson import ObjectId

from erp_otica.models.api_common import MONGO_MODEL_CONFIG, PyObjectId, UTCDatetime

CASH_ENTRY_TYPES = Literal["income", "expense"]
CASH_ORIGINS = Literal["manual", "sale", "boleto"]

# --- Internal/DB Models ---
class CashEntryInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    entry_type: CASH_ENTRY_TYPES
    amount: float
    description: str
    category: Optional[str] = None
    entry_date: datetime
    payment_method: Optional[str] = None
    origin: CASH_ORIGINS = "manual"
    sale_id: Optional[ObjectId] = None
    boleto_id: Optional[ObjectId] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = MONGO_MODEL_CONFIG

# --- API Models ---
class CashEntryCreateAPI(BaseModel):
    entry_type: CASH_ENTRY_TYPES
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=2)
    category: Optional[str] = None
    entry_date: Optional[UTCDatetime] = None
    payment_method: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: float) -> float:
        return round(v, 2)

class CashEntryAPI(BaseModel):
    id: PyObjectId
    entry_type: CASH_ENTRY_TYPES
    amount: float
    description: str
    category: Optional[str] = None
    entry_date: datetime
    payment_method: Optional[str] = None
    origin: CASH_ORIGINS
    sale_id: Optional[PyObjectId] = None
    boleto_id: Optional[PyObjectId] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class CashSummaryAPI(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    total_income: float = 0.0
    total_expense: float = 0.0
    balance: float = 0.0
