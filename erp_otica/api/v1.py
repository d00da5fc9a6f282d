# erp_otica/api/v1.py
from fastapi import APIRouter

from erp_otica.api.endpoints import auth, status
from erp_otica.modules.appointments.routers import router as appointments_router
from erp_otica.modules.boletos.routers import router as boletos_router
from erp_otica.modules.cash.routers import router as cash_router
from erp_otica.modules.clients.routers import router as clients_router
from erp_otica.modules.products.routers import router as products_router
from erp_otica.modules.reports.routers import router as reports_router
from erp_otica.modules.sales.routers import router as sales_router
from erp_otica.modules.service_orders.routers import router as service_orders_router

api_router = APIRouter()

api_router.include_router(status.router)
api_router.include_router(auth.router, prefix="/auth")
api_router.include_router(clients_router, prefix="/clients")
api_router.include_router(products_router, prefix="/products")
api_router.include_router(sales_router, prefix="/sales")
api_router.include_router(boletos_router, prefix="/boletos")
api_router.include_router(appointments_router, prefix="/appointments")
api_router.include_router(service_orders_router, prefix="/service-orders")
api_router.include_router(cash_router, prefix="/cash")
api_router.include_router(reports_router, prefix="/reports")
