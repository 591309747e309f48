from fastapi import APIRouter

from app.celltrack.routers.audit import router as audit_router
from app.celltrack.routers.auth import router as auth_router
from app.celltrack.routers.backup import router as backup_router
from app.celltrack.routers.health import router as health_router
from app.celltrack.routers.inventory import router as inventory_router
from app.celltrack.routers.product_types import router as product_types_router
from app.celltrack.routers.transfers import router as transfers_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(auth_router, prefix="/celltrack/auth", tags=["auth"])
api_router.include_router(transfers_router, tags=["transfers"])
api_router.include_router(product_types_router, tags=["product-types"])
api_router.include_router(inventory_router, tags=["inventory"])
api_router.include_router(audit_router, tags=["audit"])
api_router.include_router(backup_router, tags=["backup"])
