# erp_otica/modules/products/models.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Literal
from datetime import datetime
from bson import ObjectId

from erp_otica.models.api_common import MONGO_MODEL_CONFIG, PartialUpdateModel, PyObjectId

PRODUCT_CATEGORIES = Literal["frame", "lens", "contact_lens", "sunglasses", "accessory", "service"]

class ProductInDB(BaseModel):
    id: ObjectId = Field(..., alias="_id")
    name: str
    sku: Optional[str] = None
    category: PRODUCT_CATEGORIES = "frame"
    brand: Optional[str] = None
    sale_price: float = 0.0
    cost_price: Optional[float] = None
    stock_quantity: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = MONGO_MODEL_CONFIG

class _ProductFieldsMixin(BaseModel):
    @field_validator("name", "sku", "brand", mode="before", check_fields=False)
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("sale_price", "cost_price", check_fields=False)
    @classmethod
    def round_money(cls, v):
        return round(v, 2) if v is not None else v

class ProductCreateAPI(_ProductFieldsMixin):
    name: str = Field(..., min_length=2)
    sku: Optional[str] = None
    category: PRODUCT_CATEGORIES = "frame"
    brand: Optional[str] = None
    sale_price: float = Field(..., ge=0)
    cost_price: Optional[float] = Field(None, ge=0)
    stock_quantity: int = 0
    is_active: bool = True

class ProductUpdateAPI(_ProductFieldsMixin, PartialUpdateModel):
    REQUIRED_FIELDS = ("name", "category", "sale_price", "stock_quantity", "is_active")

    name: Optional[str] = Field(None, min_length=2)
    sku: Optional[str] = None
    category: Optional[PRODUCT_CATEGORIES] = None
    brand: Optional[str] = None
    sale_price: Optional[float] = Field(None, ge=0)
    cost_price: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = None
    is_active: Optional[bool] = None

class ProductAPI(BaseModel):
    id: PyObjectId
    name: str
    sku: Optional[str] = None
    category: PRODUCT_CATEGORIES
    brand: Optional[str] = None
    sale_price: float
    cost_price: Optional[float] = None
    stock_quantity: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
