"""
Schemas Pydantic per la Fatturazione
Progetto: Billing Manager (Gestionale Fatturazione)

Contiene:
- Enums: PaymentMethod, InvoiceStatus
- Schemas per LineItem (righe fattura)
- Schemas per Payment
- Schemas per Invoice
- Schemas di sola lettura: PaymentSummary, InvoiceStatusReport
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from billing.core.exceptions import BusinessValidationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Le date senza fuso orario sono interpretate come UTC."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# -------------------------------------------------------------------
# Enum
# -------------------------------------------------------------------

class PaymentMethod(str, Enum):
    """Metodi di pagamento supportati."""
    CASH = "cash"
    CHECK = "check"
    BANK_TRANSFER = "bank_transfer"


class InvoiceStatus(str, Enum):
    """Stato del ciclo di vita della fattura."""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    PARTIALLY_PAID = "partially_paid"


# Stati derivati dai pagamenti: non impostabili a mano
LEDGER_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.PARTIALLY_PAID})


# -------------------------------------------------------------------
# Schemas per LineItem
# -------------------------------------------------------------------

class LineItemCreate(BaseModel):
    """
    Schema per una riga fattura in ingresso.

    Se service_id è valorizzato e description o rate mancano, il service
    li copia dal catalogo al momento della creazione/aggiornamento.
    """

    service_id: Optional[int] = Field(
        None,
        ge=1,
        validation_alias=AliasChoices("service_id", "serviceId"),
        description="Servizio a listino usato come modello",
    )
    description: Optional[str] = Field(
        None,
        max_length=500,
        description="Descrizione della riga",
    )
    quantity: Decimal = Field(
        default=Decimal("1"),
        ge=0,
        description="Quantità",
    )
    rate: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Prezzo unitario",
    )

    model_config = ConfigDict(from_attributes=True)


class LineItemRead(BaseModel):
    """Schema per la lettura di una riga fattura."""

    service_id: Optional[int] = Field(
        None,
        description="Servizio a listino usato come modello",
        serialization_alias="serviceId",
    )
    description: str = Field(..., description="Descrizione della riga")
    quantity: Decimal = Field(..., description="Quantità")
    rate: Decimal = Field(..., description="Prezzo unitario")
    amount: Decimal = Field(..., description="Importo riga (quantity * rate)")

    model_config = ConfigDict(from_attributes=True)


# -------------------------------------------------------------------
# Schemas per Payment
# -------------------------------------------------------------------

class PaymentCreate(BaseModel):
    """
    Schema per la registrazione di un pagamento su una fattura.

    L'importo non è vincolato qui: i controlli (> 0, <= saldo residuo)
    appartengono al registro pagamenti.
    """

    amount: Decimal = Field(..., description="Importo del pagamento")
    payment_date: datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("payment_date", "paymentDate"),
        description="Data del pagamento",
    )
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.CASH,
        validation_alias=AliasChoices("payment_method", "paymentMethod"),
        description="Metodo di pagamento",
    )
    notes: Optional[str] = Field(
        None,
        max_length=1000,
        description="Note sul pagamento",
    )

    @field_validator("payment_date")
    @classmethod
    def normalize_payment_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    model_config = ConfigDict(from_attributes=True)


class PaymentRead(BaseModel):
    """Schema per la lettura di un pagamento registrato."""

    id: int = Field(..., ge=1, description="Progressivo del pagamento nella fattura")
    amount: Decimal = Field(..., description="Importo del pagamento")
    payment_date: datetime = Field(
        ...,
        description="Data del pagamento",
        serialization_alias="paymentDate",
    )
    payment_method: PaymentMethod = Field(
        ...,
        description="Metodo di pagamento",
        serialization_alias="paymentMethod",
    )
    notes: Optional[str] = Field(None, description="Note sul pagamento")

    @field_validator("payment_date")
    @classmethod
    def normalize_payment_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    model_config = ConfigDict(from_attributes=True, frozen=True)


# -------------------------------------------------------------------
# Schemas per Invoice
# -------------------------------------------------------------------

class InvoiceBase(BaseModel):
    """Campi modificabili dal form fattura (creazione e modifica)."""

    client_id: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("client_id", "clientId"),
        description="Identificativo del cliente",
    )
    status: InvoiceStatus = Field(
        default=InvoiceStatus.DRAFT,
        description="Stato della fattura",
    )
    issue_date: datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("issue_date", "issueDate"),
        description="Data emissione",
    )
    due_date: datetime = Field(
        ...,
        description="Data scadenza pagamento",
        validation_alias=AliasChoices("due_date", "dueDate"),
    )
    line_items: list[LineItemCreate] = Field(
        default_factory=list,
        validation_alias=AliasChoices("line_items", "lineItems"),
        description="Righe della fattura",
    )
    notes: Optional[str] = Field(
        None,
        max_length=2000,
        description="Note per il cliente",
    )
    tax_rate: Optional[Decimal] = Field(
        None,
        ge=0,
        le=1,
        validation_alias=AliasChoices("tax_rate", "taxRate"),
        description="Aliquota imposta (frazione). Default da configurazione",
    )

    @field_validator("issue_date", "due_date")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def validate_dates(self) -> "InvoiceBase":
        """Valida che due_date >= issue_date."""
        if self.due_date < self.issue_date:
            raise BusinessValidationError(
                "La data di scadenza non può essere precedente alla data di emissione"
            )
        return self


class InvoiceCreate(InvoiceBase):
    """
    Schema per la creazione di una fattura.

    NON include:
    - invoice_number (assegnato dal service al momento della creazione)
    - subtotal/tax/total (calcolati dalle righe)
    - payments/total_paid/remaining_balance (gestiti dal registro pagamenti)
    """

    invoice_prefix: Optional[str] = Field(
        None,
        min_length=1,
        max_length=20,
        validation_alias=AliasChoices("invoice_prefix", "invoicePrefix"),
        description="Prefisso numero fattura (default da configurazione)",
    )
    starting_number: Optional[int] = Field(
        None,
        ge=1,
        validation_alias=AliasChoices("starting_number", "startingNumber"),
        description="Primo progressivo per il prefisso (default da configurazione)",
    )

    @field_validator("invoice_prefix")
    @classmethod
    def validate_invoice_prefix(cls, v: Optional[str]) -> Optional[str]:
        """Il prefisso non può contenere il separatore '-'."""
        if v is None:
            return v
        v = v.strip().upper()
        if not v or "-" in v:
            raise ValueError("Prefisso fattura non valido")
        return v


class InvoiceUpdate(InvoiceBase):
    """
    Schema per l'aggiornamento di una fattura.

    Sostituzione completa del record: numero fattura e pagamenti
    restano quelli registrati.
    """

    pass


class InvoiceRead(BaseModel):
    """Schema per la lettura (e la persistenza) di una fattura."""

    id: int = Field(..., ge=1, description="Identificativo della fattura")
    invoice_number: str = Field(
        ...,
        description="Numero fattura (PREFISSO-NNN)",
        serialization_alias="invoiceNumber",
    )
    client_id: int = Field(
        ...,
        description="Identificativo del cliente",
        serialization_alias="clientId",
    )
    status: InvoiceStatus = Field(..., description="Stato della fattura")
    issue_date: datetime = Field(
        ...,
        description="Data emissione",
        serialization_alias="issueDate",
    )
    due_date: datetime = Field(
        ...,
        description="Data scadenza",
        serialization_alias="dueDate",
    )
    line_items: list[LineItemRead] = Field(
        ...,
        description="Righe della fattura",
        serialization_alias="lineItems",
    )
    notes: Optional[str] = Field(None, description="Note per il cliente")
    tax_rate: Decimal = Field(
        ...,
        description="Aliquota imposta applicata",
        serialization_alias="taxRate",
    )
    subtotal: Decimal = Field(..., description="Totale imponibile")
    tax: Decimal = Field(..., description="Imposta")
    total: Decimal = Field(..., description="Totale fattura")
    payments: list[PaymentRead] = Field(
        default_factory=list,
        description="Pagamenti registrati in ordine di inserimento",
    )
    total_paid: Decimal = Field(
        default=Decimal("0"),
        description="Somma dei pagamenti",
        serialization_alias="totalPaid",
    )
    remaining_balance: Decimal = Field(
        ...,
        description="Saldo residuo (total - total_paid)",
        serialization_alias="remainingBalance",
    )

    model_config = ConfigDict(from_attributes=True)


class InvoiceListItem(InvoiceRead):
    """Riga della lista fatture arricchita con il nome del cliente."""

    client_name: str = Field(
        ...,
        description="Nome cliente per la visualizzazione",
        serialization_alias="clientName",
    )


# -------------------------------------------------------------------
# Schemas di sola lettura
# -------------------------------------------------------------------

class PaymentSummary(BaseModel):
    """Proiezione dello stato pagamenti di una fattura, per la visualizzazione."""

    total_paid: Decimal = Field(..., serialization_alias="totalPaid")
    remaining_balance: Decimal = Field(..., serialization_alias="remainingBalance")
    payment_percentage: Decimal = Field(
        ...,
        description="Percentuale pagata, arrotondata a 2 decimali",
        serialization_alias="paymentPercentage",
    )
    is_fully_paid: bool = Field(..., serialization_alias="isFullyPaid")
    is_partially_paid: bool = Field(..., serialization_alias="isPartiallyPaid")
    payment_count: int = Field(default=0, serialization_alias="paymentCount")


class InvoiceStatusReport(BaseModel):
    """Statistiche della lista fatture."""

    invoices_count: int = Field(..., serialization_alias="invoicesCount")
    status_counts: dict[str, int] = Field(
        ...,
        description="Numero di fatture per stato",
        serialization_alias="statusCounts",
    )
    total_invoiced: Decimal = Field(..., serialization_alias="totalInvoiced")
    total_paid: Decimal = Field(..., serialization_alias="totalPaid")
    total_outstanding: Decimal = Field(..., serialization_alias="totalOutstanding")
