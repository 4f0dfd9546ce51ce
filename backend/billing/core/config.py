"""
Configurazione applicazione - Settings
Progetto: Billing Manager (Gestionale Fatturazione)

Definisce le impostazioni dell'applicazione caricate da variabili d'ambiente.
"""


from __future__ import annotations
from functools import lru_cache
from typing import Literal
from decimal import Decimal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configurazione applicazione.

    Carica le impostazioni da variabili d'ambiente.
    Valori di default adatti per sviluppo locale.

    Per ottenere un'istanza singleton:
    - In FastAPI: usa `Depends(get_settings)` per Dependency Injection
    - Altrove: usa `get_settings()` direttamente
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------
    # Configurazione Applicazione
    # ------------------------------------------------------------
    app_name: str = Field(
        default="Billing Manager",
        description="Nome applicazione",
    )

    app_version: str = Field(
        default="1.0.0",
        description="Versione applicazione",
    )

    app_env: Literal["development", "production", "testing"] = Field(
        default="development",
        description="Ambiente di esecuzione (development | production | testing)",
    )

    debug: bool = Field(
        default=False,
        description="Modalità debug",
    )

    backend_port: int = Field(
        default=8000,
        description="Porta backend",
    )

    # ------------------------------------------------------------
    # Configurazione CORS
    # ------------------------------------------------------------
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Origini CORS permesse",
    )

    # ------------------------------------------------------------
    # Configurazione Logging
    # ------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Livello logging",
    )

    # ------------------------------------------------------------
    # Configurazione Store in memoria
    # ------------------------------------------------------------
    store_latency_min_ms: int = Field(
        default=0,
        ge=0,
        description="Latenza minima simulata per ogni operazione dello store (ms)",
    )

    store_latency_max_ms: int = Field(
        default=0,
        ge=0,
        description="Latenza massima simulata per ogni operazione dello store (ms)",
    )

    seed_demo_data: bool = Field(
        default=False,
        description="Carica clienti, servizi e fatture demo all'avvio",
    )

    # ------------------------------------------------------------
    # Configurazione Fatturazione
    # ------------------------------------------------------------
    invoice_prefix: str = Field(
        default="INV",
        description="Prefisso dei numeri fattura (formato: PREFISSO-NNN)",
    )

    invoice_starting_number: int = Field(
        default=1,
        ge=1,
        description="Primo progressivo assegnato quando non esistono fatture col prefisso",
    )

    default_tax_rate: Decimal = Field(
        default=Decimal("0.10"),
        description="Aliquota imposta di default (frazione, 0.10 = 10%)",
    )

    payment_status_guard: bool = Field(
        default=True,
        description=(
            "Rifiuta pagamenti su fatture non in stato sent, overdue o "
            "partially_paid"
        ),
    )

    @property
    def is_production(self) -> bool:
        """Verifica se l'applicazione è in produzione."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Verifica se l'applicazione è in sviluppo."""
        return self.app_env == "development"

    # ------------------------------------------------------------
    # Validatori
    # ------------------------------------------------------------

    @field_validator("invoice_prefix")
    @classmethod
    def validate_invoice_prefix(cls, v: str) -> str:
        """Il prefisso non può essere vuoto né contenere il separatore '-'."""
        v = v.strip()
        if not v:
            raise ValueError("Il prefisso fattura non può essere vuoto")
        if "-" in v:
            raise ValueError("Il prefisso fattura non può contenere '-'")
        return v.upper()

    @field_validator("default_tax_rate", mode="before")
    @classmethod
    def convert_decimal_from_string(cls, v) -> Decimal:
        """Gestisce input con virgola convertendolo in punto."""
        if v is None:
            return v
        if isinstance(v, str):
            v = v.replace(",", ".")
        return Decimal(str(v))

    @field_validator("default_tax_rate")
    @classmethod
    def validate_tax_rate(cls, v: Decimal) -> Decimal:
        """L'aliquota è una frazione compresa tra 0 e 1."""
        if v < 0 or v > 1:
            raise ValueError("L'aliquota deve essere compresa tra 0 e 1")
        return v

    @model_validator(mode="after")
    def validate_latency_range(self) -> "Settings":
        """La latenza minima non può superare la massima."""
        if self.store_latency_min_ms > self.store_latency_max_ms:
            raise ValueError(
                "store_latency_min_ms non può essere maggiore di store_latency_max_ms"
            )
        return self

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Blocca configurazioni di sviluppo in produzione."""
        if self.app_env != "production":
            return self

        errors = []

        if self.debug:
            errors.append("- debug: deve essere False in produzione")

        for origin in self.cors_origins:
            if "localhost" in origin or "127.0.0.1" in origin:
                errors.append(
                    f"- cors_origins: l'origine '{origin}' non è consentita in produzione"
                )

        if errors:
            error_msg = "Errore di configurazione in produzione:\n" + "\n".join(errors)
            raise ValueError(error_msg)

        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Restituisce l'istanza singleton delle impostazioni.

    Usa lru_cache per garantire che Settings() venga istanziato
    una sola volta e riutilizzato in tutta l'applicazione.
    In fase di test, usa get_settings.cache_clear() per resettare.

    Returns:
        Settings: Istanza delle impostazioni applicazione
    """
    return Settings()


# Istanza singleton delle impostazioni per uso diretto in modulo
settings = get_settings()
