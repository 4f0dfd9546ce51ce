"""
Service Layer per l'entità Client
Progetto: Billing Manager (Gestionale Fatturazione)

Definisce la logica di business per la gestione dei clienti:
- CRUD sullo store in memoria
- Ricerca testuale su nome, azienda ed email
- Nessuna cancellazione a cascata sulle fatture collegate
"""

import logging
from typing import Optional

from billing.core.store import BillingStore
from billing.schemas.client import ClientCreate, ClientRead, ClientUpdate

# Logger per questo modulo
logger = logging.getLogger(__name__)

UNKNOWN_CLIENT_NAME = "Unknown Client"


def matches_client(client: ClientRead, search: str) -> bool:
    """True se il termine compare (case-insensitive) in nome, azienda o email."""
    term = search.strip().lower()
    return any(
        term in (value or "").lower()
        for value in (client.name, client.company, client.email)
    )


class ClientService:
    """
    Service per la gestione delle operazioni CRUD sui clienti.

    Fornisce metodi asincroni che operano sullo store passato
    come parametro, senza dipendenze da FastAPI.

    Usage with Dependency Injection:
        @router.get("/clients")
        async def get_clients(
            store: BillingStore = Depends(get_store),
            service: ClientService = Depends(get_client_service),
        ):
            return await service.get_all(store)
    """

    async def get_all(
        self,
        store: BillingStore,
        search: Optional[str] = None,
    ) -> list[ClientRead]:
        """
        Recupera la lista dei clienti.

        Args:
            store: Store dell'applicazione
            search: Termine di ricerca opzionale su nome, azienda, email

        Returns:
            Lista clienti in ordine di inserimento
        """
        clients = await store.clients.get_all()
        if search and search.strip():
            clients = [c for c in clients if matches_client(c, search)]

        logger.info("Recuperati %s clienti (search=%r)", len(clients), search)
        return clients

    async def get_by_id(self, store: BillingStore, client_id: int) -> ClientRead:
        """
        Recupera un cliente tramite ID.

        Raises:
            NotFoundError: Se il cliente non esiste
        """
        return await store.clients.get_by_id(client_id)

    async def create(self, store: BillingStore, client_data: ClientCreate) -> ClientRead:
        """
        Crea un nuovo cliente.

        Returns:
            Il cliente creato con Id assegnato
        """
        client = await store.clients.create(client_data.model_dump())
        logger.info("Creato nuovo cliente: %s - %s", client.id, client.display_name)
        return client

    async def update(
        self,
        store: BillingStore,
        client_id: int,
        client_data: ClientUpdate,
    ) -> ClientRead:
        """
        Sostituisce i dati di un cliente esistente.

        Raises:
            NotFoundError: Se il cliente non esiste
        """
        client = await store.clients.update(client_id, client_data.model_dump())
        logger.info("Aggiornato cliente: %s - %s", client.id, client.display_name)
        return client

    async def delete(self, store: BillingStore, client_id: int) -> bool:
        """
        Elimina un cliente.

        Le fatture che lo referenziano NON vengono modificate: restano
        consultabili con un client_id non più risolvibile.

        Raises:
            NotFoundError: Se il cliente non esiste
        """
        deleted = await store.clients.delete(client_id)

        invoices = await store.invoices.get_all()
        referencing = [inv.invoice_number for inv in invoices if inv.client_id == client_id]
        if referencing:
            logger.warning(
                "Eliminato cliente %s ancora referenziato da %s fatture: %s",
                client_id, len(referencing), ", ".join(referencing),
            )
        else:
            logger.info("Eliminato cliente: %s", client_id)
        return deleted

    async def get_display_names(self, store: BillingStore) -> dict[int, str]:
        """Mappa Id cliente -> nome visualizzato ("nome (azienda)")."""
        clients = await store.clients.get_all()
        return {client.id: client.display_name for client in clients}
