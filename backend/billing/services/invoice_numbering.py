"""
Numerazione progressiva delle fatture
Progetto: Billing Manager (Gestionale Fatturazione)

Formato: PREFISSO-NNN (es. INV-001). Il progressivo è calcolato sul
massimo già usato per lo stesso prefisso; il numero è assegnato una sola
volta, alla creazione, e non viene mai ricalcolato.
"""

import re
from typing import Iterable, Optional

DEFAULT_PREFIX = "INV"
NUMBER_WIDTH = 3


def parse_invoice_number(invoice_number: str, prefix: str) -> Optional[int]:
    """
    Estrae il progressivo da un numero fattura del prefisso indicato.

    Returns:
        Il progressivo, oppure None se il numero appartiene a un altro
        prefisso o non termina con cifre.
    """
    match = re.fullmatch(rf"{re.escape(prefix)}-(\d+)", invoice_number.strip())
    if not match:
        return None
    return int(match.group(1))


def format_invoice_number(prefix: str, number: int) -> str:
    """Formatta il numero con zero-padding a 3 cifre."""
    return f"{prefix}-{number:0{NUMBER_WIDTH}d}"


def next_invoice_number(
    existing_numbers: Iterable[str],
    prefix: str = DEFAULT_PREFIX,
    starting_number: int = 1,
) -> str:
    """
    Calcola il prossimo numero fattura libero per il prefisso.

    Logica:
    1. Legge i progressivi dei numeri "{prefix}-NNN" esistenti
    2. Prende il massimo tra questi e starting_number - 1
    3. Incrementa di uno

    Senza fatture per il prefisso il primo numero è starting_number.

    Args:
        existing_numbers: Numeri fattura già assegnati (qualsiasi prefisso)
        prefix: Prefisso (default "INV")
        starting_number: Primo progressivo configurato (default 1)

    Returns:
        str: Numero fattura formattato, es. "INV-003"

    Raises:
        ValueError: Se starting_number < 1
    """
    if starting_number < 1:
        raise ValueError("starting_number deve essere almeno 1")

    used = [
        number
        for number in (parse_invoice_number(n, prefix) for n in existing_numbers)
        if number is not None
    ]
    return format_invoice_number(prefix, max([*used, starting_number - 1]) + 1)
