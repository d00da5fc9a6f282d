# erp_otica/modules/products/services.py
from fastapi import HTTPException, status
from loguru import logger

from erp_otica.core.repository import DuplicateDocumentError
from erp_otica.modules.sales.repository import SaleRepository
from .models import ProductInDB, ProductCreateAPI, ProductUpdateAPI
from .repository import ProductRepository

class ProductService:

    async def _ensure_sku_free(self, sku, product_repo: ProductRepository, exclude_id=None):
        if not sku:
            return
        existing = await product_repo.get_by_sku(sku)
        if existing and existing.id != exclude_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"SKU '{sku}' already in use.")

    async def create_product(self, product_in: ProductCreateAPI, product_repo: ProductRepository) -> ProductInDB:
        await self._ensure_sku_free(product_in.sku, product_repo)
        try:
            product = await product_repo.create(product_in)
        except DuplicateDocumentError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        logger.bind(service="ProductService", sku=product.sku).success(f"Product created: {product.name} (ID: {product.id})")
        return product

    async def get_product(self, product_id: str, product_repo: ProductRepository) -> ProductInDB:
        product = await product_repo.get_by_id(product_id)
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return product

    async def update_product(
        self, product_id: str, product_in: ProductUpdateAPI, product_repo: ProductRepository
    ) -> ProductInDB:
        current = await self.get_product(product_id, product_repo)
        await self._ensure_sku_free(product_in.sku, product_repo, exclude_id=current.id)
        try:
            updated = await product_repo.update(current.id, product_in)
        except DuplicateDocumentError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return updated

    async def delete_product(self, product_id: str, product_repo: ProductRepository, sale_repo: SaleRepository) -> bool:
        product = await self.get_product(product_id, product_repo)
        if await sale_repo.exists_for_product(product.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Produto já foi vendido e não pode ser excluído. Desative-o.",
            )
        return await product_repo.delete(product.id)

async def get_product_service() -> ProductService:
    return ProductService()
