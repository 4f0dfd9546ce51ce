"""
Service Layer per il catalogo servizi
Progetto: Billing Manager (Gestionale Fatturazione)

Gestisce il listino dei servizi usati come modello per le righe fattura.
"""

import logging
from decimal import Decimal
from typing import Optional

from billing.core.store import BillingStore
from billing.schemas.service import (
    CatalogSummary,
    ServiceCreate,
    ServiceRead,
    ServiceUpdate,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)


class CatalogService:
    """Service per le operazioni CRUD sul catalogo servizi."""

    async def get_all(
        self,
        store: BillingStore,
        search: Optional[str] = None,
    ) -> list[ServiceRead]:
        """
        Recupera i servizi, filtrando opzionalmente per nome o descrizione.
        """
        services = await store.services.get_all()
        if search and search.strip():
            term = search.strip().lower()
            services = [
                s for s in services
                if term in s.name.lower() or term in s.description.lower()
            ]
        logger.info("Recuperati %s servizi (search=%r)", len(services), search)
        return services

    async def get_by_id(self, store: BillingStore, service_id: int) -> ServiceRead:
        return await store.services.get_by_id(service_id)

    async def create(self, store: BillingStore, service_data: ServiceCreate) -> ServiceRead:
        service = await store.services.create(service_data.model_dump())
        logger.info("Creato servizio: %s - %s (%s)", service.id, service.name, service.price)
        return service

    async def update(
        self,
        store: BillingStore,
        service_id: int,
        service_data: ServiceUpdate,
    ) -> ServiceRead:
        """
        Sostituisce un servizio.

        Le righe fattura già create NON vengono aggiornate: nome e prezzo
        sono stati copiati al momento della selezione.
        """
        service = await store.services.update(service_id, service_data.model_dump())
        logger.info("Aggiornato servizio: %s - %s (%s)", service.id, service.name, service.price)
        return service

    async def delete(self, store: BillingStore, service_id: int) -> bool:
        deleted = await store.services.delete(service_id)
        logger.info("Eliminato servizio: %s", service_id)
        return deleted

    async def get_summary(self, store: BillingStore) -> CatalogSummary:
        """Numero di servizi e somma dei prezzi a listino."""
        services = await store.services.get_all()
        return CatalogSummary(
            services_count=len(services),
            total_value=sum((s.price for s in services), Decimal("0")),
        )
