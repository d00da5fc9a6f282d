# erp_otica/modules/clients/models.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Literal
from datetime import datetime
from bson import ObjectId

from erp_otica.models.api_common import MONGO_MODEL_CONFIG, PartialUpdateModel, PyObjectId, UTCDatetime
from erp_otica.utils.formatters import format_cep, format_cpf, format_phone, is_valid_cpf, only_digits

GENDERS = Literal["Masculino", "Feminino", "Outro"]

class Prescription(BaseModel):
    """Receita de óculos. Valores livres como o optometrista escreve (ex: '-1,25')."""
    right_sphere: Optional[str] = None
    right_cylinder: Optional[str] = None
    right_axis: Optional[str] = None
    left_sphere: Optional[str] = None
    left_cylinder: Optional[str] = None
    left_axis: Optional[str] = None
    addition: Optional[str] = None
    expires_at: Optional[UTCDatetime] = None

class _ClientFieldsMixin(BaseModel):
    """Normalização compartilhada entre criação e atualização."""

    @field_validator("full_name", mode="before", check_fields=False)
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("cpf", check_fields=False)
    @classmethod
    def validate_cpf(cls, v):
        if v is None or not only_digits(v):
            return None
        if not is_valid_cpf(v):
            raise ValueError("CPF inválido.")
        return format_cpf(v)

    @field_validator("phone", check_fields=False)
    @classmethod
    def mask_phone(cls, v):
        if v is None or not only_digits(v):
            return None
        if len(only_digits(v)) not in (10, 11):
            raise ValueError("Telefone deve ter 10 ou 11 dígitos com DDD.")
        return format_phone(v)

    @field_validator("cep", check_fields=False)
    @classmethod
    def mask_cep(cls, v):
        if v is None or not only_digits(v):
            return None
        if len(only_digits(v)) != 8:
            raise ValueError("CEP deve ter 8 dígitos.")
        return format_cep(v)

# --- Internal/DB Models ---
class ClientInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    full_name: str
    cpf: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[datetime] = None
    gender: Optional[GENDERS] = None
    address: Optional[str] = None
    cep: Optional[str] = None
    notes: Optional[str] = None
    prescription: Prescription = Field(default_factory=Prescription)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = MONGO_MODEL_CONFIG

# --- API Models ---
class ClientCreateAPI(_ClientFieldsMixin):
    full_name: str = Field(..., min_length=3)
    cpf: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[UTCDatetime] = None
    gender: Optional[GENDERS] = None
    address: Optional[str] = None
    cep: Optional[str] = None
    notes: Optional[str] = None
    prescription: Prescription = Field(default_factory=Prescription)

class ClientUpdateAPI(_ClientFieldsMixin, PartialUpdateModel):
    REQUIRED_FIELDS = ("full_name", "prescription")

    full_name: Optional[str] = Field(None, min_length=3)
    cpf: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[UTCDatetime] = None
    gender: Optional[GENDERS] = None
    address: Optional[str] = None
    cep: Optional[str] = None
    notes: Optional[str] = None
    prescription: Optional[Prescription] = None

class ClientAPI(BaseModel):
    id: PyObjectId
    full_name: str
    cpf: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[datetime] = None
    gender: Optional[GENDERS] = None
    address: Optional[str] = None
    cep: Optional[str] = None
    notes: Optional[str] = None
    prescription: Prescription
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ClientSummaryAPI(BaseModel):
    """Cliente resumido, usado ao popular vendas, agendamentos e boletos."""
    id: PyObjectId
    full_name: str
    cpf: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
