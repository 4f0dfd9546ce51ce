"""
Schemas Pydantic per il progetto Billing Manager

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle richieste e risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from billing.schemas import ClientRead, InvoiceRead, etc.

from billing.schemas.client import ClientCreate, ClientRead, ClientUpdate
from billing.schemas.service import (
    CatalogSummary,
    ServiceCreate,
    ServiceRead,
    ServiceUpdate,
)
from billing.schemas.invoice import (
    InvoiceCreate,
    InvoiceListItem,
    InvoiceRead,
    InvoiceStatus,
    InvoiceStatusReport,
    InvoiceUpdate,
    LineItemCreate,
    LineItemRead,
    PaymentCreate,
    PaymentMethod,
    PaymentRead,
    PaymentSummary,
)

__all__ = [
    # Client
    "ClientCreate",
    "ClientRead",
    "ClientUpdate",
    # Service
    "CatalogSummary",
    "ServiceCreate",
    "ServiceRead",
    "ServiceUpdate",
    # Invoice
    "InvoiceCreate",
    "InvoiceListItem",
    "InvoiceRead",
    "InvoiceStatus",
    "InvoiceStatusReport",
    "InvoiceUpdate",
    "LineItemCreate",
    "LineItemRead",
    # Payment
    "PaymentCreate",
    "PaymentMethod",
    "PaymentRead",
    "PaymentSummary",
]
