# erp_otica/modules/products/routers.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from erp_otica.core.security import CurrentUser, require_role
from erp_otica.models.api_common import NOT_FOUND_RESPONSE, CONFLICT_RESPONSE, StatusResponse
from erp_otica.modules.people.models import UserInDB
from erp_otica.modules.sales.repository import SaleRepository, get_sale_repository
from .models import ProductAPI, ProductCreateAPI, ProductUpdateAPI, PRODUCT_CATEGORIES
from .repository import ProductRepository, get_product_repository
from .services import ProductService, get_product_service

router = APIRouter()

@router.post(
    "/",
    response_model=ProductAPI,
    status_code=status.HTTP_201_CREATED,
    responses=CONFLICT_RESPONSE,
    tags=["Products"],
)
async def create_product(
    product_in: ProductCreateAPI,
    current_user: CurrentUser,
    product_service: Annotated[ProductService, Depends(get_product_service)],
    product_repo: Annotated[ProductRepository, Depends(get_product_repository)],
):
    product = await product_service.create_product(product_in, product_repo)
    return ProductAPI.model_validate(product)

@router.get("/", response_model=List[ProductAPI], tags=["Products"])
async def list_products(
    current_user: CurrentUser,
    product_repo: Annotated[ProductRepository, Depends(get_product_repository)],
    search: Optional[str] = None,
    category: Optional[PRODUCT_CATEGORIES] = None,
    active_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    products = await product_repo.search(search, category=category, active_only=active_only, skip=skip, limit=limit)
    return [ProductAPI.model_validate(p) for p in products]

@router.get("/{product_id}", response_model=ProductAPI, responses=NOT_FOUND_RESPONSE, tags=["Products"])
async def get_product(
    product_id: str,
    current_user: CurrentUser,
    product_service: Annotated[ProductService, Depends(get_product_service)],
    product_repo: Annotated[ProductRepository, Depends(get_product_repository)],
):
    return ProductAPI.model_validate(await product_service.get_product(product_id, product_repo))

@router.put(
    "/{product_id}",
    response_model=ProductAPI,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Products"],
)
async def update_product(
    product_id: str,
    product_in: ProductUpdateAPI,
    current_user: CurrentUser,
    product_service: Annotated[ProductService, Depends(get_product_service)],
    product_repo: Annotated[ProductRepository, Depends(get_product_repository)],
):
    product = await product_service.update_product(product_id, product_in, product_repo)
    return ProductAPI.model_validate(product)

@router.delete(
    "/{product_id}",
    response_model=StatusResponse,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Products"],
)
async def delete_product(
    product_id: str,
    current_user: Annotated[UserInDB, Depends(require_role(["admin"]))],
    product_service: Annotated[ProductService, Depends(get_product_service)],
    product_repo: Annotated[ProductRepository, Depends(get_product_repository)],
    sale_repo: Annotated[SaleRepository, Depends(get_sale_repository)],
):
    if not await product_service.delete_product(product_id, product_repo, sale_repo):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return StatusResponse(status="deleted")
