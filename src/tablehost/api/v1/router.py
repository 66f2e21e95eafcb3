from fastapi import APIRouter

from src.tablehost.api.v1 import audit, credentials, provisioning, tenants, widgets

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(provisioning.router)
api_router.include_router(tenants.router)
api_router.include_router(credentials.router)
api_router.include_router(widgets.router)
api_router.include_router(widgets.public_router)
api_router.include_router(audit.router)
