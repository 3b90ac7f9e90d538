"""
Reference data — classifications, periods, statuses, locations.

Built once from settings and cached; treated as read‑only afterwards.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from app.config import settings

APPLICATION_TYPE_LABELS: dict[str, str] = {
    "NATURAL_PERSON": "Persona Natural",
    "LEGAL_REPRESENTATIVE": "Representante Legal",
}

PERIOD_LABELS: dict[str, str] = {
    "7_DAYS": "7 Días",
    "30_DAYS": "30 Días",
    "90_DAYS": "90 Días",
    "180_DAYS": "180 Días",
    "1_YEAR": "1 Año",
    "2_YEARS": "2 Años",
    "3_YEARS": "3 Años",
}

STATUS_LABELS: dict[str, str] = {
    "draft": "Borrador",
    "pending": "Pendiente",
    "in_review": "En Revisión",
    "approved": "Aprobado",
    "rejected": "Rechazado",
    "completed": "Completado",
}

CITIES: tuple[str, ...] = (
    "Quito", "Guayaquil", "Cuenca", "Santo Domingo", "Machala",
    "Durán", "Manta", "Portoviejo", "Loja", "Ambato", "Esmeraldas",
    "Quevedo", "Riobamba", "Milagro", "Ibarra", "Babahoyo",
    "La Libertad", "Daule", "Quinindé", "Ventanas", "Cayambe",
)

PROVINCES: tuple[str, ...] = (
    "Azuay", "Bolívar", "Cañar", "Carchi", "Chimborazo", "Cotopaxi",
    "El Oro", "Esmeraldas", "Galápagos", "Guayas", "Imbabura", "Loja",
    "Los Ríos", "Manabí", "Morona Santiago", "Napo", "Orellana",
    "Pastaza", "Pichincha", "Santa Elena", "Santo Domingo de los Tsáchilas",
    "Sucumbíos", "Tungurahua", "Zamora Chinchipe",
)

COUNTRY_CODE = "ECU"
DOCUMENT_TYPE = "CI"

FINGER_CODE_PATTERN = r"^[A-Z]{2}\d{8}$"
CELLPHONE_PATTERN = r"^\+5939\d{8}$"


class ReferenceData(BaseModel):
    """Immutable lookup lists exposed to forms and validators."""
    model_config = ConfigDict(frozen=True)

    application_types: dict[str, str]
    periods: dict[str, str]
    statuses: dict[str, str]
    cities: tuple[str, ...]
    provinces: tuple[str, ...]
    country_code: str = COUNTRY_CODE
    document_type: str = DOCUMENT_TYPE


@lru_cache
def get_reference_data() -> ReferenceData:
    periods = {token: PERIOD_LABELS.get(token, token) for token in settings.PERIODS}
    return ReferenceData(
        application_types=dict(APPLICATION_TYPE_LABELS),
        periods=periods,
        statuses=dict(STATUS_LABELS),
        cities=CITIES,
        provinces=PROVINCES,
    )


def label_for(mapping: dict[str, str], value: str | None) -> str | None:
    if value is None:
        return None
    return mapping.get(value, value)
