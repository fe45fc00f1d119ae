"""
API routes package.
"""

from fastapi import APIRouter

from storefront_e2e.api.routes import execution, health, scenarios, steps

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(scenarios.router, prefix="/scenarios", tags=["Scenarios"])
api_router.include_router(steps.router, prefix="/steps", tags=["Steps"])
api_router.include_router(execution.router, prefix="/execution", tags=["Execution"])
