"""
Riepilogo pagamenti di una fattura (sola lettura)
Progetto: Billing Manager (Gestionale Fatturazione)
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from billing.schemas.invoice import PaymentSummary
from billing.services.invoice_calculator import CENT, to_decimal


def summarize_payments(invoice: Any) -> PaymentSummary:
    """
    Proietta lo stato pagamenti di una fattura per la visualizzazione.

    - total_paid: 0 se assente
    - remaining_balance: total - total_paid
    - payment_percentage: total_paid / total * 100 arrotondato a 2 decimali
      (0 se il totale è 0)
    """
    total = to_decimal(getattr(invoice, "total", None))
    total_paid = to_decimal(getattr(invoice, "total_paid", None))
    remaining_balance = total - total_paid

    if total == 0:
        percentage = Decimal("0")
    else:
        percentage = (total_paid / total * 100).quantize(CENT, rounding=ROUND_HALF_UP)

    return PaymentSummary(
        total_paid=total_paid,
        remaining_balance=remaining_balance,
        payment_percentage=percentage,
        is_fully_paid=remaining_balance == 0,
        is_partially_paid=total_paid > 0 and remaining_balance > 0,
        payment_count=len(getattr(invoice, "payments", None) or []),
    )
