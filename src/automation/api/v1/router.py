from fastapi import APIRouter

from src.automation.api.v1 import executions, webhooks

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(executions.router)
api_router.include_router(webhooks.router)
