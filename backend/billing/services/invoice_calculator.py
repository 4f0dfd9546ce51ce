"""
Calcolo importi fattura
Progetto: Billing Manager (Gestionale Fatturazione)

Funzioni pure: dalle righe fattura derivano importo riga, imponibile,
imposta e totale. Nessun effetto collaterale, nessuna validazione:
quantità o prezzi negativi vengono rifiutati dagli schemi in ingresso.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

DEFAULT_TAX_RATE = Decimal("0.10")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class InvoiceTotals:
    """Importi derivati dalle righe di una fattura."""

    subtotal: Decimal
    tax: Decimal
    total: Decimal


def to_decimal(value: Any) -> Decimal:
    """
    Converte un valore in Decimal.

    Valori mancanti o non numerici valgono 0, come nel form fattura
    dove un campo vuoto non blocca il ricalcolo.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def calculate_line_amount(quantity: Any, rate: Any) -> Decimal:
    """Importo riga: quantity * rate."""
    return to_decimal(quantity) * to_decimal(rate)


def calculate_totals(
    line_items: Iterable[Any],
    tax_rate: Optional[Any] = None,
) -> InvoiceTotals:
    """
    Calcola imponibile, imposta e totale di una fattura.

    L'importo di ogni riga è sempre ricalcolato da quantity e rate,
    ignorando un eventuale `amount` già presente.

    Args:
        line_items: Righe (oggetti o dict con quantity e rate)
        tax_rate: Aliquota come frazione (default 0.10)

    Returns:
        InvoiceTotals con tax = subtotal * aliquota e total = subtotal + tax,
        senza arrotondamenti: la resa a 2 decimali spetta alla presentazione
    """
    rate = DEFAULT_TAX_RATE if tax_rate is None else to_decimal(tax_rate)
    subtotal = sum(
        (calculate_line_amount(_field(item, "quantity"), _field(item, "rate")) for item in line_items),
        Decimal("0"),
    )
    tax = subtotal * rate
    return InvoiceTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def recalculate_line_items(line_items: Iterable[Any]) -> list[dict[str, Any]]:
    """
    Restituisce le righe come dict con `amount` ricalcolato.

    Garantisce amount == quantity * rate dopo ogni modifica delle righe.
    """
    items = []
    for item in line_items:
        quantity = to_decimal(_field(item, "quantity"))
        rate = to_decimal(_field(item, "rate"))
        items.append(
            {
                "service_id": _field(item, "service_id"),
                "description": _field(item, "description") or "",
                "quantity": quantity,
                "rate": rate,
                "amount": quantity * rate,
            }
        )
    return items
