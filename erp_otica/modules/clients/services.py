# erp_otica/modules/clients/services.py
from typing import List, Optional

from fastapi import HTTPException, status
from loguru import logger

from erp_otica.core.repository import DuplicateDocumentError
from erp_otica.modules.sales.repository import SaleRepository
from .models import ClientInDB, ClientCreateAPI, ClientUpdateAPI
from .repository import ClientRepository

class ClientService:
    """Regras de cadastro de clientes (CPF único, exclusão protegida)."""

    async def _ensure_cpf_free(self, cpf: Optional[str], client_repo: ClientRepository, exclude_id=None):
        if not cpf:
            return
        existing = await client_repo.get_by_cpf(cpf)
        if existing and existing.id != exclude_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Já existe um cliente com este CPF.")

    async def create_client(self, client_in: ClientCreateAPI, client_repo: ClientRepository) -> ClientInDB:
        log = logger.bind(service="ClientService", full_name=client_in.full_name)
        await self._ensure_cpf_free(client_in.cpf, client_repo)
        try:
            client = await client_repo.create(client_in)
        except DuplicateDocumentError as e: # corrida no índice único de CPF
            log.warning(f"Duplicate CPF on insert: {e}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Já existe um cliente com este CPF.")
        log.success(f"Client created (ID: {client.id})")
        return client

    async def get_client(self, client_id: str, client_repo: ClientRepository) -> ClientInDB:
        client = await client_repo.get_by_id(client_id)
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
        return client

    async def update_client(
        self, client_id: str, client_in: ClientUpdateAPI, client_repo: ClientRepository
    ) -> ClientInDB:
        current = await self.get_client(client_id, client_repo)
        await self._ensure_cpf_free(client_in.cpf, client_repo, exclude_id=current.id)
        try:
            updated = await client_repo.update(current.id, client_in)
        except DuplicateDocumentError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Já existe um cliente com este CPF.")
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
        logger.bind(service="ClientService", client_id=client_id).success("Client updated.")
        return updated

    async def delete_client(self, client_id: str, client_repo: ClientRepository, sale_repo: SaleRepository) -> bool:
        client = await self.get_client(client_id, client_repo)
        if await sale_repo.exists_for_client(client.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cliente possui vendas registradas e não pode ser excluído.",
            )
        return await client_repo.delete(client.id)

    async def list_clients(
        self, client_repo: ClientRepository, search: Optional[str] = None, skip: int = 0, limit: int = 50
    ) -> List[ClientInDB]:
        return await client_repo.search(search, skip=skip, limit=limit)

async def get_client_service() -> ClientService:
    return ClientService()
