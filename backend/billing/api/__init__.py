"""
API Routes
Progetto: Billing Manager (Gestionale Fatturazione)

Modulo per l'aggregazione dei router versionati.
"""

from billing.api.v1 import api_v1_router

# Esportazione router
__all__ = ["api_v1_router"]
