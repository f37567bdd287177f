"""
Main API router.
"""

from fastapi import APIRouter
from subwatch.api import subscriptions, transactions, settings

api_router = APIRouter()

api_router.include_router(subscriptions.router)
api_router.include_router(transactions.router)
api_router.include_router(settings.router)
