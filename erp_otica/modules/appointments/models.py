# erp_otica/modules/appointments/models.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, Literal
from datetime import datetime
from bson import ObjectId

from erp_otica.models.api_common import MONGO_MODEL_CONFIG, ObjectIdStr, PartialUpdateModel, PyObjectId, UTCDatetime
from erp_otica.modules.clients.models import ClientSummaryAPI

APPOINTMENT_OUTCOMES = Literal["attended", "missed", "open"]

def outcome_of(attended: bool, missed: bool) -> str:
    if attended: return "attended"
    if missed: return "missed"
    return "open"

def flags_for(outcome: str) -> dict:
    return {"attended": outcome == "attended", "missed": outcome == "missed"}

class _AttendanceFlagsCheck(BaseModel):
    @model_validator(mode="after")
    def check_flags(self):
        if getattr(self, "attended", None) and getattr(self, "missed", None):
            raise ValueError("Um agendamento não pode estar comparecido e faltoso ao mesmo tempo.")
        return self

# --- Internal/DB Models ---
class AppointmentInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    client_id: ObjectId
    scheduled_at: datetime
    notes: Optional[str] = None
    attended: bool = False
    missed: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = MONGO_MODEL_CONFIG

# --- API Models ---
class AppointmentCreateAPI(_AttendanceFlagsCheck):
    client_id: ObjectIdStr
    scheduled_at: UTCDatetime
    notes: Optional[str] = None
    attended: bool = False
    missed: bool = False

class AppointmentUpdateAPI(_AttendanceFlagsCheck, PartialUpdateModel):
    REQUIRED_FIELDS = ("client_id", "scheduled_at", "attended", "missed")

    client_id: Optional[ObjectIdStr] = None
    scheduled_at: Optional[UTCDatetime] = None
    notes: Optional[str] = None
    attended: Optional[bool] = None
    missed: Optional[bool] = None

class AttendanceUpdateAPI(BaseModel):
    outcome: APPOINTMENT_OUTCOMES

class AppointmentAPI(BaseModel):
    id: PyObjectId
    client_id: PyObjectId
    client: Optional[ClientSummaryAPI] = None
    scheduled_at: datetime
    notes: Optional[str] = None
    attended: bool
    missed: bool
    outcome: APPOINTMENT_OUTCOMES = "open"
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
