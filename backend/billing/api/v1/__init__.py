"""
API v1 Routes
Progetto: Billing Manager (Gestionale Fatturazione)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from billing.api.v1 import clients, invoices, services

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(clients.router)
api_v1_router.include_router(services.router)
api_v1_router.include_router(invoices.router)

# Esportazione
__all__ = ["api_v1_router"]
