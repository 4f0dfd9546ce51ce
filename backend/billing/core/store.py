"""
Store in memoria - Repository generico per entità
Progetto: Billing Manager (Gestionale Fatturazione)

Sostituisce il database: ogni tipo di entità (Client, Service, Invoice)
ha una propria collezione indicizzata per Id intero, con latenza
asincrona simulata su ogni operazione.

Lo store è creato esplicitamente nel lifespan dell'applicazione,
salvato in app.state e iniettato nei router tramite get_store().
"""

import asyncio
import logging
import random
from collections import defaultdict
from typing import Any, Generic, Mapping, Optional, TypeVar

from fastapi import Request
from pydantic import BaseModel

from billing.core.config import Settings, settings as default_settings
from billing.core.exceptions import NotFoundError
from billing.schemas.client import ClientRead
from billing.schemas.invoice import InvoiceRead
from billing.schemas.service import ServiceRead

# Logger per questo modulo
logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class InMemoryRepository(Generic[ModelT]):
    """
    Collezione in memoria di record Pydantic con Id progressivo.

    - get_all/get_by_id restituiscono copie: modificare il risultato
      non altera lo store.
    - create assegna Id = max(Id esistenti, 0) + 1.
    - update sostituisce l'intero record mantenendo l'Id.

    Attributes:
        model: Classe Pydantic dei record (deve avere un campo `id`)
        label: Nome leggibile dell'entità per i messaggi di errore
        creation_lock: Serializza allocazioni che dipendono dal contenuto
            della collezione (es. numerazione fatture)
    """

    def __init__(
        self,
        model: type[ModelT],
        label: str,
        latency_ms: tuple[int, int] = (0, 0),
    ) -> None:
        self.model = model
        self.label = label
        self.latency_ms = latency_ms
        self.creation_lock = asyncio.Lock()
        self._records: dict[int, ModelT] = {}
        self._record_locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def _simulate_latency(self) -> None:
        """Attende una latenza casuale nell'intervallo configurato."""
        low, high = self.latency_ms
        if high <= 0:
            # Cede comunque il controllo all'event loop
            await asyncio.sleep(0)
            return
        await asyncio.sleep(random.uniform(low, high) / 1000)

    def _next_id(self) -> int:
        return max(self._records, default=0) + 1

    def _not_found(self, record_id: int) -> NotFoundError:
        return NotFoundError(f"{self.label} {record_id} non trovato")

    def lock_for(self, record_id: int) -> asyncio.Lock:
        """
        Lock dedicato al singolo record, per letture-modifica-scrittura.

        Raises:
            NotFoundError: Se il record non esiste (nessun lock creato)
        """
        if record_id not in self._records:
            raise self._not_found(record_id)
        return self._record_locks[record_id]

    async def get_all(self) -> list[ModelT]:
        await self._simulate_latency()
        return [record.model_copy(deep=True) for record in self._records.values()]

    async def get_by_id(self, record_id: int) -> ModelT:
        await self._simulate_latency()
        record = self._records.get(record_id)
        if record is None:
            raise self._not_found(record_id)
        return record.model_copy(deep=True)

    async def create(self, data: Mapping[str, Any]) -> ModelT:
        """
        Inserisce un nuovo record assegnando l'Id progressivo.

        Args:
            data: Campi del record (eventuale chiave "id" ignorata)

        Returns:
            Copia del record creato
        """
        await self._simulate_latency()
        record_id = self._next_id()
        record = self.model.model_validate({**data, "id": record_id})
        self._records[record_id] = record
        logger.debug("%s %s creato", self.label, record_id)
        return record.model_copy(deep=True)

    async def update(self, record_id: int, data: Mapping[str, Any]) -> ModelT:
        """
        Sostituisce completamente un record esistente, mantenendo l'Id.

        Raises:
            NotFoundError: Se il record non esiste
        """
        await self._simulate_latency()
        if record_id not in self._records:
            raise self._not_found(record_id)
        record = self.model.model_validate({**data, "id": record_id})
        self._records[record_id] = record
        logger.debug("%s %s aggiornato", self.label, record_id)
        return record.model_copy(deep=True)

    async def delete(self, record_id: int) -> bool:
        """
        Elimina un record.

        Raises:
            NotFoundError: Se il record non esiste
        """
        await self._simulate_latency()
        if record_id not in self._records:
            raise self._not_found(record_id)
        del self._records[record_id]
        self._record_locks.pop(record_id, None)
        logger.debug("%s %s eliminato", self.label, record_id)
        return True

    def __len__(self) -> int:
        return len(self._records)


class BillingStore:
    """
    Contenitore delle tre collezioni dell'applicazione.

    Ogni collezione possiede in esclusiva il proprio stato: non esistono
    riferimenti condivisi tra collezioni oltre agli Id.
    """

    def __init__(self, latency_ms: tuple[int, int] = (0, 0)) -> None:
        self.clients: InMemoryRepository[ClientRead] = InMemoryRepository(
            ClientRead, "Cliente", latency_ms
        )
        self.services: InMemoryRepository[ServiceRead] = InMemoryRepository(
            ServiceRead, "Servizio", latency_ms
        )
        self.invoices: InMemoryRepository[InvoiceRead] = InMemoryRepository(
            InvoiceRead, "Fattura", latency_ms
        )

    @classmethod
    def from_settings(cls, app_settings: Optional[Settings] = None) -> "BillingStore":
        """Crea lo store usando l'intervallo di latenza configurato."""
        app_settings = app_settings or default_settings
        return cls(
            latency_ms=(
                app_settings.store_latency_min_ms,
                app_settings.store_latency_max_ms,
            )
        )


def get_store(request: Request) -> BillingStore:
    """
    Dependency injection per FastAPI.

    Restituisce lo store creato nel lifespan dell'applicazione.

    Example:
        @router.get("/clients")
        async def get_clients(store: BillingStore = Depends(get_store)):
            ...
    """
    return request.app.state.store
