# erp_otica/modules/sales/models.py
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import List, Optional, Literal
from datetime import datetime
from bson import ObjectId

from erp_otica.models.api_common import MONGO_MODEL_CONFIG, ObjectIdStr, PyObjectId, UTCDatetime
from erp_otica.modules.clients.models import ClientSummaryAPI

SALE_STATUSES = Literal["pending", "completed", "cancelled"]
PAYMENT_METHODS = Literal["cash", "credit_card", "debit_card", "pix", "boleto"]
PAYMENT_CONDITIONS = Literal["upfront", "installments"]

MAX_INSTALLMENTS = 24

def compute_total(items) -> float:
    """Σ quantidade × valor unitário, arredondado em centavos."""
    return round(sum(item.quantity * item.unit_price for item in items), 2)

# --- Internal/DB Models ---
class SaleItem(BaseModel):
    product_id: ObjectId
    product_name: str
    quantity: int
    unit_price: float

    model_config = MONGO_MODEL_CONFIG

class Payment(BaseModel):
    down_payment: float = 0.0
    remaining_amount: float = 0.0
    method: PAYMENT_METHODS = "cash"
    condition: PAYMENT_CONDITIONS = "upfront"
    installments: Optional[int] = None

class SaleInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    ref: str
    client_id: ObjectId
    seller_id: Optional[ObjectId] = None
    sale_date: datetime
    items: List[SaleItem]
    total_amount: float
    payment: Payment
    status: SALE_STATUSES = "pending"
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = MONGO_MODEL_CONFIG

# --- API Models ---
class SaleItemCreateAPI(BaseModel):
    product_id: ObjectIdStr
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)

class PaymentCreateAPI(BaseModel):
    down_payment: float = Field(default=0.0, ge=0)
    method: PAYMENT_METHODS = "cash"
    condition: PAYMENT_CONDITIONS = "upfront"
    installments: Optional[int] = Field(None, ge=1, le=MAX_INSTALLMENTS)

    @field_validator("down_payment")
    @classmethod
    def round_down_payment(cls, v: float) -> float:
        return round(v, 2)

class SaleCreateAPI(BaseModel):
    """Payload de criação e de edição (PUT) de venda."""
    client_id: ObjectIdStr
    sale_date: Optional[UTCDatetime] = None
    items: List[SaleItemCreateAPI]
    payment: PaymentCreateAPI = Field(default_factory=PaymentCreateAPI)
    notes: Optional[str] = None

    @field_validator("items")
    @classmethod
    def check_items_not_empty(cls, v):
        if not v: raise ValueError("A venda precisa de pelo menos um produto.")
        return v

    @model_validator(mode="after")
    def check_payment(self):
        total = compute_total(self.items)
        if self.payment.down_payment > total:
            raise ValueError("A entrada não pode ser maior que o total da venda.")
        if self.payment.condition == "installments":
            self.payment.installments = self.payment.installments or 1
            remaining_cents = int(round((total - self.payment.down_payment) * 100))
            if 0 < remaining_cents < self.payment.installments:
                raise ValueError(
                    f"O saldo de {remaining_cents} centavo(s) não comporta {self.payment.installments} parcelas."
                )
        return self

class SaleStatusUpdateAPI(BaseModel):
    status: SALE_STATUSES

class SaleItemAPI(BaseModel):
    product_id: PyObjectId
    product_name: str
    quantity: int
    unit_price: float
    subtotal: float

class SaleAPI(BaseModel):
    id: PyObjectId
    ref: str
    client_id: PyObjectId
    client: Optional[ClientSummaryAPI] = None
    seller_id: Optional[PyObjectId] = None
    sale_date: datetime
    items: List[SaleItemAPI]
    total_amount: float
    payment: Payment
    status: SALE_STATUSES
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
