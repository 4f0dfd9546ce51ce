"""
Schemas Pydantic per l'entità Client
Progetto: Billing Manager (Gestionale Fatturazione)
"""
# Definisce gli schemi di validazione e serializzazione per l'API.

import re
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
    field_validator,
)


# -------------------------------------------------------------------
# Funzioni di normalizzazione e validazione
# -------------------------------------------------------------------

def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalizza il numero di telefono.

    Rimuove gli spazi esterni e accetta solo +, cifre, spazi,
    trattini, punti e parentesi (es. "(555) 123-4567").

    Args:
        phone: Numero di telefono da normalizzare

    Returns:
        Numero di telefono normalizzato o None

    Raises:
        ValueError: Se il formato non è valido
    """
    if phone is None:
        return None

    normalized = phone.strip()
    if not normalized:
        return None

    if not re.match(r"^\+?[\d\s\-().]+$", normalized):
        raise ValueError("Numero di telefono non valido")

    if len(re.sub(r"\D", "", normalized)) < 7:
        raise ValueError("Il numero di telefono deve contenere almeno 7 cifre")

    return normalized


# -------------------------------------------------------------------
# Schemas Client
# -------------------------------------------------------------------
class ClientBase(BaseModel):
    """
    Schema base per i dati anagrafici del cliente.

    Include tutti i campi condivisi tra creazione e aggiornamento.
    """

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Nome del referente",
    )

    company: str = Field(
        default="",
        max_length=150,
        description="Ragione sociale",
    )

    email: EmailStr = Field(
        ...,
        description="Indirizzo email",
    )

    phone: Optional[str] = Field(
        None,
        max_length=30,
        description="Numero di telefono",
    )

    address: str = Field(
        default="",
        max_length=300,
        description="Indirizzo completo",
    )

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        """Valida e normalizza il telefono."""
        return normalize_phone(v)

    @field_validator("name", "company", "address", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        """Rimuove gli spazi esterni dai campi testuali."""
        if isinstance(v, str):
            return v.strip()
        return v


class ClientCreate(ClientBase):
    """Schema per la creazione di un nuovo cliente."""

    pass


class ClientUpdate(ClientBase):
    """
    Schema per l'aggiornamento di un cliente esistente.

    L'aggiornamento sostituisce l'intero record (PUT), quindi
    i campi obbligatori sono gli stessi della creazione.
    """

    pass


class ClientRead(ClientBase):
    """Schema per la risposta API che include l'identificativo."""

    id: int = Field(..., ge=1, description="Identificativo del cliente")

    @computed_field(alias="displayName")
    @property
    def display_name(self) -> str:
        """Nome mostrato nelle liste: "nome (azienda)"."""
        if self.company:
            return f"{self.name} ({self.company})"
        return self.name
