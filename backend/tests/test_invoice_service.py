"""
Tests for InvoiceService.

Verificano creazione con calcolo importi e numerazione, aggiornamento,
registrazione pagamenti e report, su uno store in memoria reale.
"""

import asyncio
from decimal import Decimal

import pytest

from billing.core.config import Settings
from billing.core.exceptions import BusinessValidationError, ConflictError, NotFoundError
from billing.schemas.invoice import (
    InvoiceStatus,
    InvoiceUpdate,
    LineItemCreate,
    PaymentCreate,
)
from billing.services.invoice_service import InvoiceService

from conftest import DUE_DATE, ISSUE_DATE, make_client_data, make_invoice_data


def make_update(invoice, **overrides) -> InvoiceUpdate:
    """Payload di aggiornamento a partire da una fattura esistente."""
    data = {
        "client_id": invoice.client_id,
        "status": invoice.status,
        "issue_date": invoice.issue_date,
        "due_date": invoice.due_date,
        "line_items": [
            LineItemCreate(description=item.description, quantity=item.quantity, rate=item.rate)
            for item in invoice.line_items
        ],
        "notes": invoice.notes,
        "tax_rate": invoice.tax_rate,
    }
    data.update(overrides)
    return InvoiceUpdate(**data)


# ============================================================
# Tests for invoice creation
# ============================================================


class TestCreateInvoice:
    """Tests for invoice creation."""

    @pytest.mark.asyncio
    async def test_create_computes_totals(self, store, invoice_service, sample_client):
        """Test creazione: importi calcolati e registro pagamenti vuoto."""
        invoice = await invoice_service.create(store, make_invoice_data(sample_client.id))

        assert invoice.id == 1
        assert invoice.invoice_number == "INV-001"
        assert invoice.subtotal == Decimal("100.00")
        assert invoice.tax == Decimal("10.00")
        assert invoice.total == Decimal("110.00")
        assert invoice.tax_rate == Decimal("0.10")
        assert invoice.payments == []
        assert invoice.total_paid == Decimal("0")
        assert invoice.remaining_balance == Decimal("110.00")
        assert invoice.line_items[0].amount == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_progressive_numbers(self, store, invoice_service, sample_client):
        """Test INV-001, INV-002 -> INV-003."""
        for _ in range(2):
            await invoice_service.create(store, make_invoice_data(sample_client.id))

        third = await invoice_service.create(store, make_invoice_data(sample_client.id))

        assert third.invoice_number == "INV-003"

    @pytest.mark.asyncio
    async def test_custom_prefix_and_start(self, store, invoice_service, sample_client):
        """Test prefisso ACME partendo da 5 -> ACME-005."""
        invoice = await invoice_service.create(
            store,
            make_invoice_data(sample_client.id, invoice_prefix="acme", starting_number=5),
        )

        assert invoice.invoice_number == "ACME-005"

    @pytest.mark.asyncio
    async def test_prefix_from_settings(self, store, sample_client):
        """Test prefisso e progressivo iniziale da configurazione."""
        service = InvoiceService(
            Settings(_env_file=None, invoice_prefix="bill", invoice_starting_number=100)
        )

        invoice = await service.create(store, make_invoice_data(sample_client.id))

        assert invoice.invoice_number == "BILL-100"

    @pytest.mark.asyncio
    async def test_concurrent_creation_unique_numbers(self, invoice_service):
        """Test creazioni concorrenti con latenza: numeri tutti distinti."""
        from billing.core.store import BillingStore

        slow_store = BillingStore(latency_ms=(1, 5))
        client = await slow_store.clients.create(make_client_data().model_dump())

        invoices = await asyncio.gather(
            *(invoice_service.create(slow_store, make_invoice_data(client.id)) for _ in range(5))
        )

        numbers = sorted(i.invoice_number for i in invoices)
        assert numbers == ["INV-001", "INV-002", "INV-003", "INV-004", "INV-005"]

    @pytest.mark.asyncio
    async def test_service_template_copied(self, store, invoice_service, sample_client, sample_service):
        """Test riga da listino: nome e prezzo copiati dal servizio."""
        invoice = await invoice_service.create(
            store,
            make_invoice_data(
                sample_client.id,
                line_items=[LineItemCreate(service_id=sample_service.id, quantity=Decimal("2"))],
            ),
        )

        line = invoice.line_items[0]
        assert line.service_id == sample_service.id
        assert line.description == "Web Development"
        assert line.rate == Decimal("75.00")
        assert line.amount == Decimal("150.00")
        assert invoice.total == Decimal("165.00")

    @pytest.mark.asyncio
    async def test_service_template_not_linked(
        self, store, invoice_service, catalog_service, sample_client, sample_service
    ):
        """Test modificare il listino non cambia le righe già emesse."""
        from billing.schemas.service import ServiceUpdate

        invoice = await invoice_service.create(
            store,
            make_invoice_data(
                sample_client.id,
                line_items=[LineItemCreate(service_id=sample_service.id)],
            ),
        )
        await catalog_service.update(
            store, sample_service.id, ServiceUpdate(name="Web Dev", price=Decimal("99"))
        )

        reloaded = await invoice_service.get_by_id(store, invoice.id)
        assert reloaded.line_items[0].rate == Decimal("75.00")
        assert reloaded.line_items[0].description == "Web Development"

    @pytest.mark.asyncio
    async def test_explicit_values_override_template(self, store, invoice_service, sample_client, sample_service):
        """Test descrizione e prezzo espliciti prevalgono sul listino."""
        invoice = await invoice_service.create(
            store,
            make_invoice_data(
                sample_client.id,
                line_items=[
                    LineItemCreate(
                        service_id=sample_service.id,
                        description="Sviluppo scontato",
                        rate=Decimal("50"),
                    )
                ],
            ),
        )

        assert invoice.line_items[0].description == "Sviluppo scontato"
        assert invoice.line_items[0].rate == Decimal("50")

    @pytest.mark.asyncio
    async def test_unknown_service_rejected(self, store, invoice_service, sample_client):
        """Test servizio inesistente -> errore di validazione."""
        with pytest.raises(BusinessValidationError) as exc_info:
            await invoice_service.create(
                store,
                make_invoice_data(sample_client.id, line_items=[LineItemCreate(service_id=42)]),
            )

        assert exc_info.value.error_code == "SERVICE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unknown_client_rejected(self, store, invoice_service):
        """Test cliente inesistente -> errore di validazione."""
        with pytest.raises(BusinessValidationError) as exc_info:
            await invoice_service.create(store, make_invoice_data(99))

        assert exc_info.value.error_code == "CLIENT_NOT_FOUND"
        assert len(store.invoices) == 0

    @pytest.mark.asyncio
    async def test_no_line_items_rejected(self, store, invoice_service, sample_client):
        """Test fattura senza righe rifiutata."""
        with pytest.raises(BusinessValidationError):
            await invoice_service.create(store, make_invoice_data(sample_client.id, line_items=[]))

    @pytest.mark.asyncio
    async def test_zero_total_rejected(self, store, invoice_service, sample_client):
        """Test totale zero rifiutato."""
        with pytest.raises(BusinessValidationError) as exc_info:
            await invoice_service.create(
                store,
                make_invoice_data(
                    sample_client.id,
                    line_items=[LineItemCreate(description="Omaggio", rate=Decimal("0"))],
                ),
            )

        assert exc_info.value.error_code == "INVOICE_TOTAL_NOT_POSITIVE"

    @pytest.mark.asyncio
    async def test_paid_status_rejected_on_creation(self, store, invoice_service, sample_client):
        """Test stato paid non impostabile alla creazione."""
        with pytest.raises(BusinessValidationError):
            await invoice_service.create(
                store, make_invoice_data(sample_client.id, status=InvoiceStatus.PAID)
            )

    def test_due_date_before_issue_date(self):
        """Test scadenza precedente all'emissione rifiutata dallo schema."""
        with pytest.raises(ValueError):
            make_invoice_data(1, issue_date=DUE_DATE, due_date=ISSUE_DATE)


# ============================================================
# Tests for invoice update
# ============================================================


class TestUpdateInvoice:
    """Tests for invoice full replace."""

    @pytest.mark.asyncio
    async def test_update_recomputes_totals(self, store, invoice_service, sent_invoice):
        """Test aggiornamento righe: importi ricalcolati, numero invariato."""
        updated = await invoice_service.update(
            store,
            sent_invoice.id,
            make_update(
                sent_invoice,
                line_items=[LineItemCreate(description="Consulenza", quantity=Decimal("3"), rate=Decimal("40"))],
            ),
        )

        assert updated.invoice_number == "INV-001"
        assert updated.subtotal == Decimal("120")
        assert updated.total == Decimal("132.00")
        assert updated.remaining_balance == Decimal("132.00")

    @pytest.mark.asyncio
    async def test_update_keeps_payments(self, store, invoice_service, sent_invoice):
        """Test con pagamenti: registro conservato e stato ricalcolato."""
        await invoice_service.record_payment(store, sent_invoice.id, PaymentCreate(amount=Decimal("50")))
        current = await invoice_service.get_by_id(store, sent_invoice.id)

        updated = await invoice_service.update(
            store,
            sent_invoice.id,
            make_update(
                current,
                status=InvoiceStatus.SENT,
                line_items=[LineItemCreate(description="Sconto applicato", rate=Decimal("50"))],
                tax_rate=Decimal("0"),
            ),
        )

        assert len(updated.payments) == 1
        assert updated.total_paid == Decimal("50")
        assert updated.remaining_balance == Decimal("0")
        assert updated.status == InvoiceStatus.PAID

    @pytest.mark.asyncio
    async def test_update_total_below_paid_rejected(self, store, invoice_service, sent_invoice):
        """Test nuovo totale inferiore all'incassato rifiutato."""
        await invoice_service.record_payment(store, sent_invoice.id, PaymentCreate(amount=Decimal("100")))
        current = await invoice_service.get_by_id(store, sent_invoice.id)

        with pytest.raises(BusinessValidationError) as exc_info:
            await invoice_service.update(
                store,
                sent_invoice.id,
                make_update(current, line_items=[LineItemCreate(description="Ridotta", rate=Decimal("10"))]),
            )

        assert exc_info.value.error_code == "TOTAL_BELOW_PAID"
        assert (await invoice_service.get_by_id(store, sent_invoice.id)).total == Decimal("110.00")

    @pytest.mark.asyncio
    async def test_mark_overdue(self, store, invoice_service, sent_invoice):
        """Test overdue impostabile solo tramite aggiornamento."""
        updated = await invoice_service.update(
            store, sent_invoice.id, make_update(sent_invoice, status=InvoiceStatus.OVERDUE)
        )

        assert updated.status == InvoiceStatus.OVERDUE

    @pytest.mark.asyncio
    async def test_paid_invoice_total_locked(self, store, invoice_service, sent_invoice):
        """Test fattura saldata: aumento del totale rifiutato, resta paid."""
        await invoice_service.record_payment(store, sent_invoice.id, PaymentCreate(amount=Decimal("110")))
        current = await invoice_service.get_by_id(store, sent_invoice.id)

        with pytest.raises(BusinessValidationError) as exc_info:
            await invoice_service.update(
                store,
                sent_invoice.id,
                make_update(current, line_items=[LineItemCreate(description="Ampliata", rate=Decimal("200"))]),
            )

        assert exc_info.value.error_code == "INVOICE_ALREADY_PAID"
        stored = await invoice_service.get_by_id(store, sent_invoice.id)
        assert stored.status == InvoiceStatus.PAID
        assert stored.total == Decimal("110.00")
        assert stored.remaining_balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_paid_invoice_notes_editable(self, store, invoice_service, sent_invoice):
        """Test fattura saldata: modifiche che non toccano il totale ammesse."""
        await invoice_service.record_payment(store, sent_invoice.id, PaymentCreate(amount=Decimal("110")))
        current = await invoice_service.get_by_id(store, sent_invoice.id)

        updated = await invoice_service.update(
            store, sent_invoice.id, make_update(current, notes="Quietanza inviata")
        )

        assert updated.notes == "Quietanza inviata"
        assert updated.status == InvoiceStatus.PAID
        assert updated.total_paid == Decimal("110")

    @pytest.mark.asyncio
    async def test_update_not_found(self, store, invoice_service, sent_invoice):
        with pytest.raises(NotFoundError):
            await invoice_service.update(store, 99, make_update(sent_invoice))
        assert len(store.invoices._record_locks) == 0


# ============================================================
# Tests for payments through the service
# ============================================================


class TestRecordPayment:
    """Tests for payment recording on stored invoices."""

    @pytest.mark.asyncio
    async def test_partial_then_full(self, store, invoice_service, sent_invoice):
        """Test scenario 110: 50 -> partially_paid, 60 -> paid, 70 rifiutato."""
        first = await invoice_service.record_payment(
            store, sent_invoice.id, PaymentCreate(amount=Decimal("50"))
        )
        assert (first.total_paid, first.remaining_balance) == (Decimal("50"), Decimal("60.00"))
        assert first.status == InvoiceStatus.PARTIALLY_PAID

        with pytest.raises(BusinessValidationError):
            await invoice_service.record_payment(
                store, sent_invoice.id, PaymentCreate(amount=Decimal("70"))
            )
        unchanged = await invoice_service.get_by_id(store, sent_invoice.id)
        assert unchanged.total_paid == Decimal("50")
        assert len(unchanged.payments) == 1

        second = await invoice_service.record_payment(
            store, sent_invoice.id, PaymentCreate(amount=Decimal("60"))
        )
        assert second.remaining_balance == Decimal("0")
        assert second.status == InvoiceStatus.PAID

    @pytest.mark.asyncio
    async def test_payment_on_draft_conflict(self, store, invoice_service, sample_client):
        """Test pagamento su draft -> conflitto con controllo attivo."""
        draft = await invoice_service.create(
            store, make_invoice_data(sample_client.id, status=InvoiceStatus.DRAFT)
        )

        with pytest.raises(ConflictError):
            await invoice_service.record_payment(store, draft.id, PaymentCreate(amount=Decimal("10")))

    @pytest.mark.asyncio
    async def test_payment_on_draft_without_guard(self, store, sample_client):
        """Test con controllo disattivato la draft accetta pagamenti."""
        service = InvoiceService(Settings(_env_file=None, payment_status_guard=False))
        draft = await service.create(store, make_invoice_data(sample_client.id, status=InvoiceStatus.DRAFT))

        updated = await service.record_payment(store, draft.id, PaymentCreate(amount=Decimal("10")))

        assert updated.status == InvoiceStatus.PARTIALLY_PAID

    @pytest.mark.asyncio
    async def test_payment_unknown_invoice(self, store, invoice_service):
        with pytest.raises(NotFoundError):
            await invoice_service.record_payment(store, 5, PaymentCreate(amount=Decimal("10")))

        assert len(store.invoices._record_locks) == 0

    @pytest.mark.asyncio
    async def test_concurrent_payments_serialized(self, invoice_service):
        """Test pagamenti concorrenti: nessun aggiornamento perso."""
        from billing.core.store import BillingStore

        slow_store = BillingStore(latency_ms=(1, 5))
        client = await slow_store.clients.create(make_client_data().model_dump())
        invoice = await invoice_service.create(slow_store, make_invoice_data(client.id))

        await asyncio.gather(
            *(
                invoice_service.record_payment(slow_store, invoice.id, PaymentCreate(amount=Decimal("11")))
                for _ in range(10)
            )
        )

        final = await invoice_service.get_by_id(slow_store, invoice.id)
        assert len(final.payments) == 10
        assert sorted(p.id for p in final.payments) == list(range(1, 11))
        assert final.total_paid == Decimal("110")
        assert final.status == InvoiceStatus.PAID

    @pytest.mark.asyncio
    async def test_history_and_summary(self, store, invoice_service, sent_invoice):
        """Test storico e riepilogo pagamenti."""
        await invoice_service.record_payment(store, sent_invoice.id, PaymentCreate(amount=Decimal("55")))

        history = await invoice_service.get_payment_history(store, sent_invoice.id)
        summary = await invoice_service.get_payment_summary(store, sent_invoice.id)

        assert [p.amount for p in history] == [Decimal("55")]
        assert summary.payment_percentage == Decimal("50.00")
        assert summary.is_partially_paid is True


# ============================================================
# Tests for listing, deletion and reports
# ============================================================


class TestListAndReports:
    """Tests for the invoice list and statistics."""

    @pytest.mark.asyncio
    async def test_list_with_client_name(self, store, invoice_service, sent_invoice):
        """Test la lista riporta il nome cliente."""
        items = await invoice_service.get_all(store)

        assert items[0].client_name == "Sarah Johnson (Bright Ideas LLC)"

    @pytest.mark.asyncio
    async def test_dangling_client(self, store, invoice_service, client_service, sent_invoice, sample_client):
        """Test cliente eliminato: fattura ancora consultabile, 'Unknown Client'."""
        await client_service.delete(store, sample_client.id)

        invoice = await invoice_service.get_by_id(store, sent_invoice.id)
        items = await invoice_service.get_all(store)

        assert invoice.client_id == sample_client.id
        assert items[0].client_name == "Unknown Client"

    @pytest.mark.asyncio
    async def test_search_and_status_filter(self, store, invoice_service, client_service, sample_client):
        """Test ricerca su numero/cliente e filtro stato."""
        other = await client_service.create(
            store, make_client_data(name="Michael Chen", company="", email="mc@chen.com")
        )
        await invoice_service.create(store, make_invoice_data(sample_client.id))
        await invoice_service.create(
            store, make_invoice_data(other.id, status=InvoiceStatus.DRAFT)
        )

        by_client = await invoice_service.get_all(store, search="chen")
        by_number = await invoice_service.get_all(store, search="inv-001")
        drafts = await invoice_service.get_all(store, status_filter=InvoiceStatus.DRAFT)

        assert [i.invoice_number for i in by_client] == ["INV-002"]
        assert [i.invoice_number for i in by_number] == ["INV-001"]
        assert [i.client_name for i in drafts] == ["Michael Chen"]

    @pytest.mark.asyncio
    async def test_delete(self, store, invoice_service, sent_invoice):
        """Test eliminazione fattura."""
        assert await invoice_service.delete(store, sent_invoice.id) is True

        with pytest.raises(NotFoundError):
            await invoice_service.get_by_id(store, sent_invoice.id)

    @pytest.mark.asyncio
    async def test_status_report(self, store, invoice_service, sample_client, sent_invoice):
        """Test conteggi per stato e totali."""
        await invoice_service.create(store, make_invoice_data(sample_client.id, status=InvoiceStatus.DRAFT))
        await invoice_service.record_payment(store, sent_invoice.id, PaymentCreate(amount=Decimal("10")))

        report = await invoice_service.get_status_report(store)

        assert report.invoices_count == 2
        assert report.status_counts["draft"] == 1
        assert report.status_counts["partially_paid"] == 1
        assert report.status_counts["paid"] == 0
        assert report.total_invoiced == Decimal("220.00")
        assert report.total_paid == Decimal("10")
        assert report.total_outstanding == Decimal("210.00")
