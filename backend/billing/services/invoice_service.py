"""
Service Layer per la Fatturazione
Progetto: Billing Manager (Gestionale Fatturazione)

Definisce la logica di business per la gestione delle fatture,
inclusi calcolo importi, numerazione progressiva, registrazione
pagamenti parziali e report.
"""

import logging
from collections import Counter
from decimal import Decimal
from typing import Optional

from billing.core.config import Settings, settings as default_settings
from billing.core.exceptions import (
    AppException,
    BusinessValidationError,
    NotFoundError,
)
from billing.core.store import BillingStore
from billing.schemas.invoice import (
    LEDGER_STATUSES,
    InvoiceCreate,
    InvoiceListItem,
    InvoiceRead,
    InvoiceStatus,
    InvoiceStatusReport,
    InvoiceUpdate,
    LineItemCreate,
    PaymentCreate,
    PaymentRead,
    PaymentSummary,
)
from billing.services.client_service import UNKNOWN_CLIENT_NAME, ClientService
from billing.services.invoice_calculator import (
    calculate_totals,
    recalculate_line_items,
)
from billing.services.invoice_numbering import next_invoice_number
from billing.services.payment_ledger import apply_payment, payment_history
from billing.services.payment_summary import summarize_payments

# Logger per questo modulo
logger = logging.getLogger(__name__)


class InvoiceService:
    """
    Service per la gestione delle operazioni sulle fatture.

    Fornisce metodi asincroni per interagire con lo store
    in modo centralizzato, senza dipendenze da FastAPI.

    Implementa:
    - Calcolo automatico di imponibile, imposta e totale
    - Numerazione progressiva per prefisso
    - Gestione pagamenti parziali con derivazione dello stato
    - Report per stato
    """

    def __init__(self, app_settings: Optional[Settings] = None) -> None:
        self.settings = app_settings or default_settings
        self.client_service = ClientService()

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    async def _ensure_client_exists(self, store: BillingStore, client_id: int) -> None:
        """Il cliente deve esistere quando viene (ri)assegnato a una fattura."""
        try:
            await store.clients.get_by_id(client_id)
        except NotFoundError:
            raise BusinessValidationError(
                f"Cliente {client_id} non trovato",
                error_code="CLIENT_NOT_FOUND",
            )

    async def _resolve_line_items(
        self,
        store: BillingStore,
        line_items: list[LineItemCreate],
    ) -> list[dict]:
        """
        Prepara le righe fattura per la persistenza.

        Steps:
        1. Verifica che esista almeno una riga
        2. Per le righe con service_id, copia nome e prezzo dal catalogo
           se descrizione o prezzo non sono indicati
        3. Ricalcola amount = quantity * rate

        Raises:
            BusinessValidationError: nessuna riga, servizio inesistente,
                descrizione mancante
        """
        if not line_items:
            raise BusinessValidationError(
                "La fattura deve contenere almeno una riga",
                error_code="INVOICE_WITHOUT_LINES",
            )

        resolved = []
        for index, item in enumerate(line_items, start=1):
            description = (item.description or "").strip()
            rate = item.rate

            if item.service_id is not None and (not description or rate is None):
                try:
                    service = await store.services.get_by_id(item.service_id)
                except NotFoundError:
                    raise BusinessValidationError(
                        f"Riga {index}: servizio {item.service_id} non trovato",
                        error_code="SERVICE_NOT_FOUND",
                    )
                description = description or service.name
                rate = service.price if rate is None else rate

            if not description:
                raise BusinessValidationError(
                    f"Riga {index}: la descrizione è obbligatoria",
                    error_code="LINE_ITEM_WITHOUT_DESCRIPTION",
                )

            resolved.append(
                {
                    "service_id": item.service_id,
                    "description": description,
                    "quantity": item.quantity,
                    "rate": rate,
                }
            )

        return recalculate_line_items(resolved)

    # -------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------

    async def get_all(
        self,
        store: BillingStore,
        search: Optional[str] = None,
        status_filter: Optional[InvoiceStatus] = None,
    ) -> list[InvoiceListItem]:
        """
        Recupera la lista delle fatture arricchita con il nome cliente.

        Filtri disponibili:
        - search: numero fattura o nome cliente (case-insensitive)
        - status_filter: stato esatto

        Le fatture con cliente eliminato mostrano "Unknown Client".
        """
        invoices = await store.invoices.get_all()
        names = await self.client_service.get_display_names(store)

        items = [
            InvoiceListItem(
                **invoice.model_dump(),
                client_name=names.get(invoice.client_id, UNKNOWN_CLIENT_NAME),
            )
            for invoice in invoices
        ]

        if search and search.strip():
            term = search.strip().lower()
            items = [
                item for item in items
                if term in item.invoice_number.lower() or term in item.client_name.lower()
            ]

        if status_filter is not None:
            items = [item for item in items if item.status == status_filter]

        logger.info(
            "Recuperate %s fatture (search=%r, status=%s)",
            len(items), search, status_filter.value if status_filter else None,
        )
        return items

    async def get_by_id(self, store: BillingStore, invoice_id: int) -> InvoiceRead:
        """
        Recupera una fattura per ID.

        Raises:
            NotFoundError: Se la fattura non esiste
        """
        return await store.invoices.get_by_id(invoice_id)

    async def create(self, store: BillingStore, data: InvoiceCreate) -> InvoiceRead:
        """
        Crea una nuova fattura.

        Steps:
        1. Verifica che il cliente esista
        2. Verifica che lo stato iniziale non sia derivato dai pagamenti
        3. Risolve le righe (modelli di servizio) e ricalcola gli importi
        4. Calcola imponibile, imposta e totale
        5. Assegna il numero fattura progressivo (sotto lock)
        6. Inizializza il registro pagamenti vuoto

        Returns:
            InvoiceRead: La fattura creata

        Raises:
            BusinessValidationError: cliente inesistente, righe mancanti o
                non valide, totale nullo, stato iniziale non consentito
        """
        await self._ensure_client_exists(store, data.client_id)

        if data.status in LEDGER_STATUSES:
            raise BusinessValidationError(
                f"Lo stato '{data.status.value}' è assegnato solo dalla registrazione dei pagamenti",
                error_code="INVALID_INITIAL_STATUS",
            )

        line_items = await self._resolve_line_items(store, data.line_items)
        tax_rate = data.tax_rate if data.tax_rate is not None else self.settings.default_tax_rate
        totals = calculate_totals(line_items, tax_rate)

        if totals.total <= 0:
            raise BusinessValidationError(
                "Il totale della fattura deve essere maggiore di zero",
                error_code="INVOICE_TOTAL_NOT_POSITIVE",
            )

        prefix = data.invoice_prefix or self.settings.invoice_prefix
        starting_number = data.starting_number or self.settings.invoice_starting_number

        # Numerazione e inserimento avvengono insieme per evitare duplicati
        async with store.invoices.creation_lock:
            existing = await store.invoices.get_all()
            invoice_number = next_invoice_number(
                (invoice.invoice_number for invoice in existing),
                prefix=prefix,
                starting_number=starting_number,
            )
            invoice = await store.invoices.create(
                {
                    "invoice_number": invoice_number,
                    "client_id": data.client_id,
                    "status": data.status,
                    "issue_date": data.issue_date,
                    "due_date": data.due_date,
                    "line_items": line_items,
                    "notes": data.notes,
                    "tax_rate": tax_rate,
                    "subtotal": totals.subtotal,
                    "tax": totals.tax,
                    "total": totals.total,
                    "payments": [],
                    "total_paid": Decimal("0"),
                    "remaining_balance": totals.total,
                }
            )

        logger.info(
            "Creata fattura %s (id=%s, cliente=%s, totale=%s)",
            invoice.invoice_number, invoice.id, invoice.client_id, invoice.total,
        )
        return invoice

    async def update(
        self,
        store: BillingStore,
        invoice_id: int,
        data: InvoiceUpdate,
    ) -> InvoiceRead:
        """
        Sostituisce i dati modificabili di una fattura.

        Numero fattura, pagamenti e total_paid restano quelli registrati.
        Se esistono pagamenti lo stato è ricalcolato dal saldo residuo
        (paid o partially_paid) e quello richiesto viene ignorato.
        Su una fattura già saldata il totale non può cambiare.

        Raises:
            NotFoundError: Se la fattura non esiste
            BusinessValidationError: righe non valide, totale nullo o
                inferiore a quanto già incassato, stato non consentito,
                totale modificato su fattura saldata
        """
        async with store.invoices.lock_for(invoice_id):
            current = await store.invoices.get_by_id(invoice_id)

            if data.client_id != current.client_id:
                await self._ensure_client_exists(store, data.client_id)

            line_items = await self._resolve_line_items(store, data.line_items)
            tax_rate = data.tax_rate if data.tax_rate is not None else current.tax_rate
            totals = calculate_totals(line_items, tax_rate)

            if totals.total <= 0:
                raise BusinessValidationError(
                    "Il totale della fattura deve essere maggiore di zero",
                    error_code="INVOICE_TOTAL_NOT_POSITIVE",
                )

            # Una fattura saldata non torna mai indietro di stato
            if current.status == InvoiceStatus.PAID and totals.total != current.total:
                raise BusinessValidationError(
                    f"La fattura {current.invoice_number} è già saldata: "
                    f"il totale ({current.total}) non può essere modificato",
                    error_code="INVOICE_ALREADY_PAID",
                )

            remaining_balance = totals.total - current.total_paid
            if remaining_balance < 0:
                raise BusinessValidationError(
                    f"Il nuovo totale ({totals.total}) è inferiore a quanto già "
                    f"incassato ({current.total_paid})",
                    error_code="TOTAL_BELOW_PAID",
                )

            if current.total_paid > 0:
                status = (
                    InvoiceStatus.PAID if remaining_balance == 0 else InvoiceStatus.PARTIALLY_PAID
                )
                if status != data.status:
                    logger.info(
                        "Fattura %s: stato richiesto '%s' ignorato, stato da pagamenti '%s'",
                        current.invoice_number, data.status.value, status.value,
                    )
            elif data.status in LEDGER_STATUSES:
                raise BusinessValidationError(
                    f"Lo stato '{data.status.value}' è assegnato solo dalla registrazione dei pagamenti",
                    error_code="INVALID_STATUS",
                )
            else:
                status = data.status

            invoice = await store.invoices.update(
                invoice_id,
                {
                    "invoice_number": current.invoice_number,
                    "client_id": data.client_id,
                    "status": status,
                    "issue_date": data.issue_date,
                    "due_date": data.due_date,
                    "line_items": line_items,
                    "notes": data.notes,
                    "tax_rate": tax_rate,
                    "subtotal": totals.subtotal,
                    "tax": totals.tax,
                    "total": totals.total,
                    "payments": [payment.model_dump() for payment in current.payments],
                    "total_paid": current.total_paid,
                    "remaining_balance": remaining_balance,
                },
            )

        logger.info("Aggiornata fattura %s (id=%s)", invoice.invoice_number, invoice.id)
        return invoice

    async def delete(self, store: BillingStore, invoice_id: int) -> bool:
        """
        Elimina una fattura.

        Raises:
            NotFoundError: Se la fattura non esiste
        """
        deleted = await store.invoices.delete(invoice_id)
        logger.info("Eliminata fattura id=%s", invoice_id)
        return deleted

    # -------------------------------------------------------------------
    # Pagamenti
    # -------------------------------------------------------------------

    async def record_payment(
        self,
        store: BillingStore,
        invoice_id: int,
        payment_data: PaymentCreate,
    ) -> InvoiceRead:
        """
        Registra un pagamento su una fattura.

        La lettura-modifica-scrittura di pagamenti, totali e stato avviene
        sotto il lock della fattura e con una sola scrittura nello store:
        nessuno stato intermedio è osservabile.

        Args:
            store: Store dell'applicazione
            invoice_id: Id della fattura
            payment_data: Importo, data, metodo e note del pagamento

        Returns:
            InvoiceRead: La fattura aggiornata

        Raises:
            NotFoundError: fattura inesistente
            BusinessValidationError: importo <= 0 o superiore al saldo residuo
            ConflictError: fattura non in stato pagabile (se il controllo è attivo)
        """
        async with store.invoices.lock_for(invoice_id):
            invoice = await store.invoices.get_by_id(invoice_id)

            try:
                updated = apply_payment(
                    invoice,
                    payment_data,
                    enforce_status=self.settings.payment_status_guard,
                )
            except AppException as exc:
                logger.warning(
                    "Pagamento rifiutato su fattura %s: %s",
                    invoice.invoice_number, exc.detail,
                )
                raise

            saved = await store.invoices.update(invoice_id, updated.model_dump())

        logger.info(
            "Registrato pagamento di %s su fattura %s (pagato=%s, residuo=%s, stato=%s)",
            payment_data.amount, saved.invoice_number,
            saved.total_paid, saved.remaining_balance, saved.status.value,
        )
        return saved

    async def get_payment_history(
        self,
        store: BillingStore,
        invoice_id: int,
    ) -> list[PaymentRead]:
        """Pagamenti di una fattura, dal più recente."""
        invoice = await store.invoices.get_by_id(invoice_id)
        return payment_history(invoice)

    async def get_payment_summary(
        self,
        store: BillingStore,
        invoice_id: int,
    ) -> PaymentSummary:
        """Riepilogo percentuale pagata / saldo di una fattura."""
        invoice = await store.invoices.get_by_id(invoice_id)
        return summarize_payments(invoice)

    # -------------------------------------------------------------------
    # Report
    # -------------------------------------------------------------------

    async def get_status_report(self, store: BillingStore) -> InvoiceStatusReport:
        """
        Statistiche delle fatture.

        Restituisce:
        - invoices_count: numero di fatture
        - status_counts: numero di fatture per ciascuno stato
        - total_invoiced: somma dei totali
        - total_paid: somma degli incassi
        - total_outstanding: somma dei saldi residui
        """
        invoices = await store.invoices.get_all()
        counts = Counter(invoice.status.value for invoice in invoices)

        return InvoiceStatusReport(
            invoices_count=len(invoices),
            status_counts={status.value: counts.get(status.value, 0) for status in InvoiceStatus},
            total_invoiced=sum((i.total for i in invoices), Decimal("0")),
            total_paid=sum((i.total_paid for i in invoices), Decimal("0")),
            total_outstanding=sum((i.remaining_balance for i in invoices), Decimal("0")),
        )
