"""
Dati dimostrativi
Progetto: Billing Manager (Gestionale Fatturazione)

Popola uno store vuoto con alcuni clienti, servizi e fatture
(una delle quali parzialmente pagata). Usato all'avvio quando
SEED_DEMO_DATA=true.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from billing.core.config import Settings
from billing.core.store import BillingStore
from billing.schemas.client import ClientCreate
from billing.schemas.invoice import (
    InvoiceCreate,
    InvoiceStatus,
    LineItemCreate,
    PaymentCreate,
    PaymentMethod,
)
from billing.schemas.service import ServiceCreate
from billing.services.catalog_service import CatalogService
from billing.services.client_service import ClientService
from billing.services.invoice_service import InvoiceService

# Logger per questo modulo
logger = logging.getLogger(__name__)

DEMO_CLIENTS = [
    {
        "name": "Sarah Johnson",
        "company": "Bright Ideas LLC",
        "email": "sarah@brightideas.com",
        "phone": "(555) 123-4567",
        "address": "123 Market Street, Springfield",
    },
    {
        "name": "Michael Chen",
        "company": "Chen Consulting",
        "email": "michael@chenconsulting.com",
        "phone": "(555) 987-6543",
        "address": "45 Oak Avenue, Riverside",
    },
    {
        "name": "Emily Davis",
        "company": "",
        "email": "emily.davis@example.com",
        "phone": None,
        "address": "",
    },
]

DEMO_SERVICES = [
    {
        "name": "Web Development",
        "description": "Sviluppo frontend e backend",
        "unit": "hour",
        "price": Decimal("75.00"),
    },
    {
        "name": "UI Design",
        "description": "Progettazione interfacce e prototipi",
        "unit": "hour",
        "price": Decimal("60.00"),
    },
    {
        "name": "Hosting Setup",
        "description": "Configurazione server e dominio",
        "unit": "project",
        "price": Decimal("250.00"),
    },
    {
        "name": "Consulting",
        "description": "Analisi tecnica e supporto",
        "unit": "hour",
        "price": Decimal("90.00"),
    },
]


async def load_demo_data(
    store: BillingStore,
    app_settings: Optional[Settings] = None,
) -> None:
    """
    Carica i dati dimostrativi attraverso i service applicativi,
    così che importi, numerazione e stato siano calcolati come
    per i dati inseriti dagli utenti.

    Non fa nulla se lo store contiene già dei clienti.
    """
    if len(store.clients):
        logger.info("Store già popolato, dati dimostrativi non caricati")
        return

    client_service = ClientService()
    catalog_service = CatalogService()
    invoice_service = InvoiceService(app_settings)

    clients = [
        await client_service.create(store, ClientCreate(**data))
        for data in DEMO_CLIENTS
    ]
    services = [
        await catalog_service.create(store, ServiceCreate(**data))
        for data in DEMO_SERVICES
    ]

    now = datetime.now(timezone.utc)

    await invoice_service.create(
        store,
        InvoiceCreate(
            client_id=clients[0].id,
            status=InvoiceStatus.DRAFT,
            issue_date=now,
            due_date=now + timedelta(days=30),
            line_items=[
                LineItemCreate(service_id=services[0].id, quantity=Decimal("10")),
                LineItemCreate(service_id=services[1].id, quantity=Decimal("4")),
            ],
        ),
    )

    sent = await invoice_service.create(
        store,
        InvoiceCreate(
            client_id=clients[1].id,
            status=InvoiceStatus.SENT,
            issue_date=now - timedelta(days=10),
            due_date=now + timedelta(days=20),
            line_items=[
                LineItemCreate(service_id=services[2].id, quantity=Decimal("1")),
                LineItemCreate(service_id=services[3].id, quantity=Decimal("2")),
            ],
        ),
    )
    await invoice_service.record_payment(
        store,
        sent.id,
        PaymentCreate(
            amount=Decimal("200.00"),
            payment_date=now - timedelta(days=2),
            payment_method=PaymentMethod.BANK_TRANSFER,
            notes="Acconto",
        ),
    )

    await invoice_service.create(
        store,
        InvoiceCreate(
            client_id=clients[2].id,
            status=InvoiceStatus.OVERDUE,
            issue_date=now - timedelta(days=45),
            due_date=now - timedelta(days=15),
            line_items=[
                LineItemCreate(
                    description="Manutenzione sito",
                    quantity=Decimal("3"),
                    rate=Decimal("50.00"),
                ),
            ],
        ),
    )

    logger.info(
        "Caricati dati dimostrativi: %s clienti, %s servizi, %s fatture",
        len(store.clients), len(store.services), len(store.invoices),
    )
