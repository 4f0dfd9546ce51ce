"""
Registro pagamenti della fattura
Progetto: Billing Manager (Gestionale Fatturazione)

Regole di registrazione di un pagamento e transizioni di stato:

    draft -> sent -> {paid, overdue, partially_paid}
    partially_paid -> paid

Le funzioni di questo modulo non accedono allo store: ricevono una
fattura e restituiscono una nuova copia aggiornata. Lettura, lock e
scrittura sono a carico di InvoiceService.record_payment.
"""

import logging
from decimal import Decimal

from billing.core.exceptions import BusinessValidationError, ConflictError
from billing.schemas.invoice import (
    InvoiceRead,
    InvoiceStatus,
    PaymentCreate,
    PaymentRead,
)
from billing.services.invoice_calculator import to_decimal

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Stati da cui è possibile registrare un pagamento
PAYABLE_STATUSES = frozenset(
    {InvoiceStatus.SENT, InvoiceStatus.OVERDUE, InvoiceStatus.PARTIALLY_PAID}
)


def next_payment_id(payments: list[PaymentRead]) -> int:
    """Id del prossimo pagamento: max(Id esistenti, 0) + 1."""
    return max((payment.id for payment in payments), default=0) + 1


def derive_status(
    current_status: InvoiceStatus,
    total_paid: Decimal,
    remaining_balance: Decimal,
) -> InvoiceStatus:
    """
    Stato risultante dopo un pagamento.

    - saldo residuo 0 -> paid
    - qualcosa pagato e fattura non già pagata -> partially_paid
    - altrimenti lo stato resta invariato
    """
    if remaining_balance == 0:
        return InvoiceStatus.PAID
    if total_paid > 0 and current_status != InvoiceStatus.PAID:
        return InvoiceStatus.PARTIALLY_PAID
    return current_status


def validate_payment(
    invoice: InvoiceRead,
    amount: Decimal,
    enforce_status: bool = True,
) -> None:
    """
    Verifica che il pagamento possa essere registrato sulla fattura.

    Raises:
        BusinessValidationError: importo <= 0 o superiore al saldo residuo
        ConflictError: stato non pagabile (solo con enforce_status)
    """
    if amount <= 0:
        raise BusinessValidationError(
            "L'importo del pagamento deve essere maggiore di zero",
            error_code="PAYMENT_AMOUNT_NOT_POSITIVE",
        )

    if amount > invoice.remaining_balance:
        raise BusinessValidationError(
            f"L'importo ({amount}) supera il saldo residuo della fattura "
            f"{invoice.invoice_number} ({invoice.remaining_balance})",
            error_code="PAYMENT_EXCEEDS_BALANCE",
            extra={"remaining_balance": str(invoice.remaining_balance)},
        )

    if enforce_status and invoice.status not in PAYABLE_STATUSES:
        raise ConflictError(
            f"Impossibile registrare pagamenti su una fattura in stato "
            f"'{invoice.status.value}'",
            error_code="INVOICE_NOT_PAYABLE",
        )


def apply_payment(
    invoice: InvoiceRead,
    payment_data: PaymentCreate,
    enforce_status: bool = True,
) -> InvoiceRead:
    """
    Registra un pagamento e restituisce la fattura aggiornata.

    Steps:
    1. Valida importo (e stato, se richiesto)
    2. Assegna Id progressivo al pagamento
    3. Accoda il pagamento
    4. Ricalcola total_paid e remaining_balance
    5. Deriva il nuovo stato

    La fattura in ingresso non viene modificata: pagamenti, totali e
    stato cambiano insieme nella copia restituita.

    Args:
        invoice: Fattura corrente
        payment_data: Dati del pagamento
        enforce_status: Se True rifiuta fatture non in stato pagabile

    Returns:
        InvoiceRead: Nuova fattura con il pagamento registrato
    """
    amount = to_decimal(payment_data.amount)
    validate_payment(invoice, amount, enforce_status=enforce_status)

    payment = PaymentRead(
        id=next_payment_id(invoice.payments),
        amount=amount,
        payment_date=payment_data.payment_date,
        payment_method=payment_data.payment_method,
        notes=payment_data.notes,
    )
    payments = [*invoice.payments, payment]
    total_paid = invoice.total_paid + amount
    remaining_balance = invoice.total - total_paid
    status = derive_status(invoice.status, total_paid, remaining_balance)

    if status != invoice.status:
        logger.info(
            "Fattura %s: stato %s -> %s",
            invoice.invoice_number, invoice.status.value, status.value,
        )

    return invoice.model_copy(
        update={
            "payments": payments,
            "total_paid": total_paid,
            "remaining_balance": remaining_balance,
            "status": status,
        },
        deep=True,
    )


def payment_history(invoice: InvoiceRead) -> list[PaymentRead]:
    """Pagamenti della fattura, dal più recente per data pagamento."""
    return sorted(invoice.payments, key=lambda p: p.payment_date, reverse=True)
