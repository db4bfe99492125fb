"""API router aggregation"""
from fastapi import APIRouter

from app.api.v1 import remittance, defi, analytics

api_router = APIRouter()

api_router.include_router(remittance.router, prefix="/remittance", tags=["Remittance"])
api_router.include_router(defi.router, prefix="/defi", tags=["DeFi"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
