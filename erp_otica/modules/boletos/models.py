# erp_otica/modules/boletos/models.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Literal
from datetime import datetime
from bson import ObjectId

from erp_otica.models.api_common import MONGO_MODEL_CONFIG, ObjectIdStr, PyObjectId, UTCDatetime
from erp_otica.modules.clients.models import ClientSummaryAPI

BOLETO_STATUSES = Literal["open", "paid", "overdue", "cancelled"]
PAYABLE_STATUSES = ("open", "overdue")

# --- Internal/DB Models ---
class BoletoInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    client_id: ObjectId
    sale_id: Optional[ObjectId] = None
    installment_number: int = 1
    total_installments: int = 1
    installment_value: float
    due_date: datetime
    status: BOLETO_STATUSES = "open"
    paid_at: Optional[datetime] = None
    paid_amount: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = MONGO_MODEL_CONFIG

# --- API Models ---
class BoletoCreateAPI(BaseModel):
    client_id: ObjectIdStr
    sale_id: Optional[ObjectIdStr] = None
    installment_number: int = Field(1, ge=1)
    total_installments: int = Field(1, ge=1)
    installment_value: float = Field(..., gt=0)
    due_date: UTCDatetime
    notes: Optional[str] = None

    @field_validator("installment_value")
    @classmethod
    def round_value(cls, v: float) -> float:
        return round(v, 2)

class BoletoPayAPI(BaseModel):
    paid_amount: Optional[float] = Field(None, gt=0)
    paid_at: Optional[UTCDatetime] = None

class BoletoAPI(BaseModel):
    id: PyObjectId
    client_id: PyObjectId
    client: Optional[ClientSummaryAPI] = None
    sale_id: Optional[PyObjectId] = None
    installment_number: int
    total_installments: int
    installment_value: float
    due_date: datetime
    status: BOLETO_STATUSES
    paid_at: Optional[datetime] = None
    paid_amount: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class OverdueResultAPI(BaseModel):
    marked_overdue: int
