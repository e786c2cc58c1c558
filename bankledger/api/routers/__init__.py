from fastapi import APIRouter

from bankledger.api.routers import accounts, health, transfers

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(accounts.router)
api_router.include_router(transfers.router)
