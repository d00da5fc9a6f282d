# erp_otica/models/api_common.py

from datetime import datetime
from typing import Annotated, ClassVar, List, Optional, Tuple

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from erp_otica.utils.dates import to_naive_utc

def _check_object_id(value: str) -> str:
    if not ObjectId.is_valid(value):
        raise ValueError("Invalid id format.")
    return value

# ObjectId exposto como string nas respostas
PyObjectId = Annotated[str, BeforeValidator(str)]
# String de entrada que precisa ser um ObjectId válido
ObjectIdStr = Annotated[str, AfterValidator(_check_object_id)]
# Datas sempre gravadas como UTC sem tzinfo
UTCDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]

# Config dos modelos que espelham documentos do Mongo (_id -> id)
MONGO_MODEL_CONFIG = ConfigDict(
    populate_by_name=True,
    arbitrary_types_allowed=True,
)

class PartialUpdateModel(BaseModel):
    """
    Base dos *UpdateAPI. Campo omitido fica como está; `null` explícito só é
    aceito nos campos que o documento permite vazios. Os demais ficam em
    `REQUIRED_FIELDS` e respondem 422 antes de qualquer escrita.
    """
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ()

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        nulled = [f for f in self.REQUIRED_FIELDS if f in self.model_fields_set and getattr(self, f) is None]
        if nulled:
            raise ValueError(f"Campo(s) obrigatório(s) não pode(m) ser vazio(s): {', '.join(nulled)}")
        return self

class StatusResponse(BaseModel):
    """Resposta genérica indicando o status de uma operação."""
    status: str = Field(..., description="Status geral (ex: 'ok', 'deleted')")
    message: Optional[str] = Field(None, description="Mensagem descritiva opcional.")

class DetailResponse(BaseModel):
    """Resposta genérica de erro."""
    detail: str = Field(..., description="Mensagem detalhada do erro.")

class ErrorDetail(BaseModel):
    """Estrutura para detalhar erros de validação."""
    field: Optional[str | int | List[str | int]] = None
    message: str

class ValidationErrorResponse(BaseModel):
    """Resposta para erros de validação (HTTP 422)."""
    detail: str = "Validation Error"
    errors: List[ErrorDetail]

# Respostas de erro documentadas nos routers
NOT_FOUND_RESPONSE = {404: {"model": DetailResponse, "description": "Documento não encontrado"}}
CONFLICT_RESPONSE = {409: {"model": DetailResponse, "description": "Conflito com o estado atual"}}
