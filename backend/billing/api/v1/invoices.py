"""
Router FastAPI per la Fatturazione
Progetto: Billing Manager (Gestionale Fatturazione)

Endpoint per:
- CRUD fatture con calcolo automatico degli importi
- Registrazione e consultazione dei pagamenti
- Report per stato
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from billing.core.config import get_settings
from billing.core.store import BillingStore, get_store
from billing.schemas.invoice import (
    InvoiceCreate,
    InvoiceListItem,
    InvoiceRead,
    InvoiceStatus,
    InvoiceStatusReport,
    InvoiceUpdate,
    PaymentCreate,
    PaymentRead,
    PaymentSummary,
)
from billing.services.invoice_service import InvoiceService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/invoices",
    tags=["Fatturazione"],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_invoice_service() -> InvoiceService:
    """
    Dependency per ottenere un'istanza del InvoiceService.

    Il service riceve la configurazione corrente (prefisso, aliquota
    di default, controllo di stato sui pagamenti).
    """
    return InvoiceService(get_settings())


# -------------------------------------------------------------------
# Endpoints Fatture
# -------------------------------------------------------------------

@router.get(
    "",
    name="fatture_lista",
    summary="Lista fatture",
    description="Recupera le fatture con ricerca su numero/cliente e filtro per stato.",
    response_model=list[InvoiceListItem],
    status_code=status.HTTP_200_OK,
)
async def get_invoices(
    search: Optional[str] = Query(None, description="Numero fattura o nome cliente"),
    status_filter: Optional[InvoiceStatus] = Query(
        None,
        alias="status",
        description="Filtra per stato",
    ),
    store: BillingStore = Depends(get_store),
    service: InvoiceService = Depends(get_invoice_service),
) -> list[InvoiceListItem]:
    """
    Recupera la lista delle fatture.

    Ogni elemento include clientName ("Unknown Client" se il cliente
    è stato eliminato).
    """
    return await service.get_all(store=store, search=search, status_filter=status_filter)


@router.get(
    "/reports/status",
    name="fatture_report_stato",
    summary="Statistiche fatture",
    description="Numero di fatture per stato e totali fatturato, incassato e da incassare.",
    response_model=InvoiceStatusReport,
    status_code=status.HTTP_200_OK,
)
async def get_status_report(
    store: BillingStore = Depends(get_store),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceStatusReport:
    return await service.get_status_report(store=store)


@router.get(
    "/{invoice_id}",
    name="fattura_dettaglio",
    summary="Dettaglio fattura",
    description="Recupera una fattura con righe e pagamenti.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def get_invoice(
    invoice_id: int,
    store: BillingStore = Depends(get_store),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    return await service.get_by_id(store=store, invoice_id=invoice_id)


@router.post(
    "",
    name="fattura_crea",
    summary="Crea fattura",
    description=(
        "Crea una fattura: calcola importi, assegna il numero progressivo "
        "e inizializza il registro pagamenti."
    ),
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice(
    invoice_data: InvoiceCreate,
    store: BillingStore = Depends(get_store),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Crea una nuova fattura.

    Args:
        invoice_data: Cliente, date, righe, note, aliquota e prefisso opzionali
        store: Store dell'applicazione
        service: Istanza del InvoiceService (iniettata automaticamente)

    Returns:
        InvoiceRead: Fattura creata

    Raises:
        BusinessValidationError: cliente inesistente, righe mancanti, totale nullo
    """
    return await service.create(store=store, data=invoice_data)


@router.put(
    "/{invoice_id}",
    name="fattura_aggiorna",
    summary="Aggiorna fattura",
    description="Sostituisce i dati della fattura. Numero e pagamenti restano invariati.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def update_invoice(
    invoice_id: int,
    invoice_data: InvoiceUpdate,
    store: BillingStore = Depends(get_store),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    return await service.update(store=store, invoice_id=invoice_id, data=invoice_data)


@router.delete(
    "/{invoice_id}",
    name="fattura_elimina",
    summary="Elimina fattura",
    description="Elimina una fattura.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_invoice(
    invoice_id: int,
    store: BillingStore = Depends(get_store),
    service: InvoiceService = Depends(get_invoice_service),
) -> None:
    await service.delete(store=store, invoice_id=invoice_id)


# -------------------------------------------------------------------
# Endpoints Pagamenti
# -------------------------------------------------------------------

@router.post(
    "/{invoice_id}/payments",
    name="fattura_registra_pagamento",
    summary="Registra pagamento",
    description=(
        "Registra un pagamento (anche parziale) e restituisce la fattura "
        "aggiornata con totale pagato, saldo residuo e stato."
    ),
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def record_payment(
    invoice_id: int,
    payment_data: PaymentCreate,
    store: BillingStore = Depends(get_store),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Registra un pagamento su una fattura.

    Raises:
        NotFoundError: fattura inesistente (404)
        BusinessValidationError: importo <= 0 o superiore al saldo (400)
        ConflictError: fattura non pagabile nello stato attuale (409)
    """
    return await service.record_payment(
        store=store,
        invoice_id=invoice_id,
        payment_data=payment_data,
    )


@router.get(
    "/{invoice_id}/payments",
    name="fattura_storico_pagamenti",
    summary="Storico pagamenti",
    description="Pagamenti della fattura, dal più recente.",
    response_model=list[PaymentRead],
    status_code=status.HTTP_200_OK,
)
async def get_payment_history(
    invoice_id: int,
    store: BillingStore = Depends(get_store),
    service: InvoiceService = Depends(get_invoice_service),
) -> list[PaymentRead]:
    return await service.get_payment_history(store=store, invoice_id=invoice_id)


@router.get(
    "/{invoice_id}/payment-summary",
    name="fattura_riepilogo_pagamenti",
    summary="Riepilogo pagamenti",
    description="Totale pagato, saldo residuo e percentuale pagata.",
    response_model=PaymentSummary,
    status_code=status.HTTP_200_OK,
)
async def get_payment_summary(
    invoice_id: int,
    store: BillingStore = Depends(get_store),
    service: InvoiceService = Depends(get_invoice_service),
) -> PaymentSummary:
    return await service.get_payment_summary(store=store, invoice_id=invoice_id)
