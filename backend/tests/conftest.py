"""
Pytest configuration and fixtures for the billing tests.

Ogni test riceve uno store in memoria nuovo e settings espliciti,
così che nessuno stato sia condiviso tra i test.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from billing.api.v1.invoices import get_invoice_service
from billing.core.config import Settings
from billing.core.store import BillingStore, get_store
from billing.main import app
from billing.schemas.client import ClientCreate
from billing.schemas.invoice import (
    InvoiceCreate,
    InvoiceRead,
    InvoiceStatus,
    LineItemCreate,
)
from billing.schemas.service import ServiceCreate
from billing.services.catalog_service import CatalogService
from billing.services.client_service import ClientService
from billing.services.invoice_service import InvoiceService


ISSUE_DATE = datetime(2024, 1, 15, tzinfo=timezone.utc)
DUE_DATE = ISSUE_DATE + timedelta(days=30)


# ============================================================
# Fixtures per Settings e Store
# ============================================================


@pytest.fixture
def app_settings():
    """Settings di test: nessuna latenza, nessun dato demo."""
    return Settings(
        _env_file=None,
        app_env="testing",
        store_latency_min_ms=0,
        store_latency_max_ms=0,
        seed_demo_data=False,
        invoice_prefix="INV",
        invoice_starting_number=1,
        default_tax_rate=Decimal("0.10"),
        payment_status_guard=True,
    )


@pytest.fixture
def store():
    """Store in memoria vuoto."""
    return BillingStore()


# ============================================================
# Fixtures per i Service
# ============================================================


@pytest.fixture
def client_service():
    return ClientService()


@pytest.fixture
def catalog_service():
    return CatalogService()


@pytest.fixture
def invoice_service(app_settings):
    return InvoiceService(app_settings)


# ============================================================
# Fixtures per dati di esempio
# ============================================================


def make_client_data(**overrides) -> ClientCreate:
    """Dati cliente validi con eventuali sovrascritture."""
    data = {
        "name": "Sarah Johnson",
        "company": "Bright Ideas LLC",
        "email": "sarah@brightideas.com",
        "phone": "(555) 123-4567",
        "address": "123 Market Street",
    }
    data.update(overrides)
    return ClientCreate(**data)


def make_invoice_data(client_id: int, **overrides) -> InvoiceCreate:
    """Fattura da 100.00 di imponibile (110.00 con imposta al 10%)."""
    data = {
        "client_id": client_id,
        "status": InvoiceStatus.SENT,
        "issue_date": ISSUE_DATE,
        "due_date": DUE_DATE,
        "line_items": [
            LineItemCreate(description="Web Development", quantity=Decimal("1"), rate=Decimal("100.00")),
        ],
    }
    data.update(overrides)
    return InvoiceCreate(**data)


@pytest_asyncio.fixture
async def sample_client(store, client_service):
    """Cliente salvato nello store."""
    return await client_service.create(store, make_client_data())


@pytest_asyncio.fixture
async def sample_service(store, catalog_service):
    """Servizio a listino salvato nello store."""
    return await catalog_service.create(
        store,
        ServiceCreate(
            name="Web Development",
            description="Sviluppo frontend e backend",
            unit="hour",
            price=Decimal("75.00"),
        ),
    )


@pytest_asyncio.fixture
async def sent_invoice(store, invoice_service, sample_client) -> InvoiceRead:
    """Fattura INV-001 in stato sent con totale 110.00."""
    return await invoice_service.create(store, make_invoice_data(sample_client.id))


# ============================================================
# Fixtures per il client HTTP
# ============================================================


@pytest.fixture
def api_client(store, app_settings):
    """
    TestClient FastAPI con store e settings di test iniettati
    tramite dependency_overrides.
    """
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_invoice_service] = lambda: InvoiceService(app_settings)
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
