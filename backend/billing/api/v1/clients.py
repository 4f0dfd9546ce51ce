"""
Router FastAPI per l'entità Client
Progetto: Billing Manager (Gestionale Fatturazione)

Definisce gli endpoint API per la gestione dei clienti.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from billing.core.store import BillingStore, get_store
from billing.schemas.client import ClientCreate, ClientRead, ClientUpdate
from billing.services.client_service import ClientService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/clients",
    tags=["Clienti"],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_client_service() -> ClientService:
    """
    Dependency per ottenere un'istanza del ClientService.

    Questo permette di iniettare il service nei router senza
    usare istanze globali, facilitando i test e la manutenzione.
    """
    return ClientService()


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@router.get(
    "",
    name="clienti_lista",
    summary="Lista clienti",
    description="Recupera la lista dei clienti con eventuale filtro di ricerca.",
    response_model=list[ClientRead],
    status_code=status.HTTP_200_OK,
)
async def get_clients(
    search: Optional[str] = Query(None, description="Termine di ricerca su nome, azienda, email"),
    store: BillingStore = Depends(get_store),
    service: ClientService = Depends(get_client_service),
) -> list[ClientRead]:
    """
    Recupera la lista dei clienti.

    Args:
        search: Termine di ricerca opzionale (case-insensitive)
        store: Store dell'applicazione
        service: Istanza del ClientService (iniettata automaticamente)

    Returns:
        list[ClientRead]: Clienti in ordine di inserimento
    """
    return await service.get_all(store=store, search=search)


@router.get(
    "/{client_id}",
    name="cliente_dettaglio",
    summary="Dettaglio cliente",
    description="Recupera i dettagli di un cliente specifico.",
    response_model=ClientRead,
    status_code=status.HTTP_200_OK,
)
async def get_client(
    client_id: int,
    store: BillingStore = Depends(get_store),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    """
    Recupera i dettagli di un cliente.

    Raises:
        NotFoundError: Se il cliente non esiste
    """
    return await service.get_by_id(store=store, client_id=client_id)


@router.post(
    "",
    name="cliente_crea",
    summary="Crea cliente",
    description="Crea un nuovo cliente.",
    response_model=ClientRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_client(
    client_data: ClientCreate,
    store: BillingStore = Depends(get_store),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    """
    Crea un nuovo cliente.

    Args:
        client_data: Dati del cliente da creare
        store: Store dell'applicazione
        service: Istanza del ClientService (iniettata automaticamente)

    Returns:
        ClientRead: Cliente creato con Id assegnato
    """
    return await service.create(store=store, client_data=client_data)


@router.put(
    "/{client_id}",
    name="cliente_aggiorna",
    summary="Aggiorna cliente",
    description="Sostituisce i dati di un cliente esistente.",
    response_model=ClientRead,
    status_code=status.HTTP_200_OK,
)
async def update_client(
    client_id: int,
    client_data: ClientUpdate,
    store: BillingStore = Depends(get_store),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    """
    Aggiorna un cliente esistente.

    Raises:
        NotFoundError: Se il cliente non esiste
    """
    return await service.update(store=store, client_id=client_id, client_data=client_data)


@router.delete(
    "/{client_id}",
    name="cliente_elimina",
    summary="Elimina cliente",
    description="Elimina un cliente. Le fatture collegate non vengono modificate.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_client(
    client_id: int,
    store: BillingStore = Depends(get_store),
    service: ClientService = Depends(get_client_service),
) -> None:
    """
    Elimina un cliente.

    Raises:
        NotFoundError: Se il cliente non esiste
    """
    await service.delete(store=store, client_id=client_id)
