from fastapi import APIRouter

from pos.api.routers import business_hours, public, roles, tax_rules, tenants

api_router = APIRouter()

api_router.include_router(roles.router)
api_router.include_router(tenants.router)
api_router.include_router(tax_rules.router)
api_router.include_router(business_hours.router)
api_router.include_router(public.router)
