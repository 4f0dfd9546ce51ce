"""
Schemas Pydantic per il catalogo servizi
Progetto: Billing Manager (Gestionale Fatturazione)

Un servizio è un modello di riga fattura: selezionandolo, nome e prezzo
vengono copiati nella riga al momento della selezione.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServiceBase(BaseModel):
    """Schema base per un servizio a listino."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=150,
        description="Nome del servizio",
    )
    description: str = Field(
        default="",
        max_length=500,
        description="Descrizione del servizio",
    )
    unit: str = Field(
        default="hour",
        min_length=1,
        max_length=30,
        description="Unità di misura (hour, item, project, ...)",
    )
    price: Decimal = Field(
        ...,
        ge=0,
        description="Prezzo unitario",
    )

    @field_validator("name", "description", "unit", mode="before")
    @classmethod
    def strip_text(cls, v):
        """Rimuove gli spazi esterni dai campi testuali."""
        if isinstance(v, str):
            return v.strip()
        return v


class ServiceCreate(ServiceBase):
    """Schema per la creazione di un servizio."""

    pass


class ServiceUpdate(ServiceBase):
    """Schema per l'aggiornamento (sostituzione completa) di un servizio."""

    pass


class ServiceRead(ServiceBase):
    """Schema per la lettura di un servizio."""

    id: int = Field(..., ge=1, description="Identificativo del servizio")


class CatalogSummary(BaseModel):
    """Riepilogo del listino."""

    services_count: int = Field(..., serialization_alias="servicesCount")
    total_value: Decimal = Field(
        ...,
        description="Somma dei prezzi a listino",
        serialization_alias="totalValue",
    )
