# erp_otica/modules/service_orders/models.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal
from datetime import datetime
from bson import ObjectId

from erp_otica.models.api_common import MONGO_MODEL_CONFIG, ObjectIdStr, PartialUpdateModel, PyObjectId, UTCDatetime
from erp_otica.modules.clients.models import ClientSummaryAPI, Prescription

SERVICE_ORDER_STATUSES = Literal["open", "in_production", "ready", "delivered", "cancelled"]

# Fluxo do laboratório. 'delivered' e 'cancelled' são finais.
SERVICE_ORDER_TRANSITIONS = {
    "open": {"in_production", "cancelled"},
    "in_production": {"ready", "cancelled"},
    "ready": {"delivered", "cancelled"},
    "delivered": set(),
    "cancelled": set(),
}
DELETABLE_STATUSES = ("open", "cancelled")

# --- Internal/DB Models ---
class ServiceOrderInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    ref: str
    client_id: ObjectId
    sale_id: Optional[ObjectId] = None
    description: str
    lab: Optional[str] = None
    prescription: Prescription = Field(default_factory=Prescription)
    expected_date: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    status: SERVICE_ORDER_STATUSES = "open"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = MONGO_MODEL_CONFIG

# --- API Models ---
class ServiceOrderCreateAPI(BaseModel):
    client_id: ObjectIdStr
    sale_id: Optional[ObjectIdStr] = None
    description: str = Field(..., min_length=3)
    lab: Optional[str] = None
    prescription: Optional[Prescription] = None
    expected_date: Optional[UTCDatetime] = None

class ServiceOrderUpdateAPI(PartialUpdateModel):
    REQUIRED_FIELDS = ("description", "prescription")

    description: Optional[str] = Field(None, min_length=3)
    lab: Optional[str] = None
    prescription: Optional[Prescription] = None
    expected_date: Optional[UTCDatetime] = None

class ServiceOrderStatusUpdateAPI(BaseModel):
    status: SERVICE_ORDER_STATUSES

class ServiceOrderAPI(BaseModel):
    id: PyObjectId
    ref: str
    client_id: PyObjectId
    client: Optional[ClientSummaryAPI] = None
    sale_id: Optional[PyObjectId] = None
    description: str
    lab: Optional[str] = None
    prescription: Prescription
    expected_date: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    status: SERVICE_ORDER_STATUSES
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
