"""
Router FastAPI per il catalogo servizi
Progetto: Billing Manager (Gestionale Fatturazione)

Definisce gli endpoint API per la gestione del listino servizi.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from billing.core.store import BillingStore, get_store
from billing.schemas.service import (
    CatalogSummary,
    ServiceCreate,
    ServiceRead,
    ServiceUpdate,
)
from billing.services.catalog_service import CatalogService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/services",
    tags=["Servizi"],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_catalog_service() -> CatalogService:
    """Dependency per ottenere un'istanza del CatalogService."""
    return CatalogService()


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@router.get(
    "",
    name="servizi_lista",
    summary="Lista servizi",
    description="Recupera il listino servizi con eventuale filtro su nome o descrizione.",
    response_model=list[ServiceRead],
    status_code=status.HTTP_200_OK,
)
async def get_services(
    search: Optional[str] = Query(None, description="Termine di ricerca"),
    store: BillingStore = Depends(get_store),
    service: CatalogService = Depends(get_catalog_service),
) -> list[ServiceRead]:
    return await service.get_all(store=store, search=search)


@router.get(
    "/reports/summary",
    name="servizi_riepilogo",
    summary="Riepilogo listino",
    description="Numero di servizi e valore totale del listino.",
    response_model=CatalogSummary,
    status_code=status.HTTP_200_OK,
)
async def get_catalog_summary(
    store: BillingStore = Depends(get_store),
    service: CatalogService = Depends(get_catalog_service),
) -> CatalogSummary:
    return await service.get_summary(store=store)


@router.get(
    "/{service_id}",
    name="servizio_dettaglio",
    summary="Dettaglio servizio",
    description="Recupera un servizio del listino.",
    response_model=ServiceRead,
    status_code=status.HTTP_200_OK,
)
async def get_service(
    service_id: int,
    store: BillingStore = Depends(get_store),
    service: CatalogService = Depends(get_catalog_service),
) -> ServiceRead:
    return await service.get_by_id(store=store, service_id=service_id)


@router.post(
    "",
    name="servizio_crea",
    summary="Crea servizio",
    description="Aggiunge un servizio al listino.",
    response_model=ServiceRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_service(
    service_data: ServiceCreate,
    store: BillingStore = Depends(get_store),
    service: CatalogService = Depends(get_catalog_service),
) -> ServiceRead:
    return await service.create(store=store, service_data=service_data)


@router.put(
    "/{service_id}",
    name="servizio_aggiorna",
    summary="Aggiorna servizio",
    description=(
        "Sostituisce un servizio del listino. "
        "Le righe fattura già emesse non vengono modificate."
    ),
    response_model=ServiceRead,
    status_code=status.HTTP_200_OK,
)
async def update_service(
    service_id: int,
    service_data: ServiceUpdate,
    store: BillingStore = Depends(get_store),
    service: CatalogService = Depends(get_catalog_service),
) -> ServiceRead:
    return await service.update(store=store, service_id=service_id, service_data=service_data)


@router.delete(
    "/{service_id}",
    name="servizio_elimina",
    summary="Elimina servizio",
    description="Elimina un servizio dal listino.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_service(
    service_id: int,
    store: BillingStore = Depends(get_store),
    service: CatalogService = Depends(get_catalog_service),
) -> None:
    await service.delete(store=store, service_id=service_id)
