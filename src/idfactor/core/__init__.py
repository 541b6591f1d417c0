"""Core utilities: secure randomness, built-in schemas, configuration, logging."""

from idfactor.core.config import FactorSettings, load_settings
from idfactor.core.randomness import new_surrogate_id, shuffle
from idfactor.core.schemas import AT_RISK_SCHEMA, COMPROMISED_SCHEMA, schema_for

__all__ = [
    "AT_RISK_SCHEMA",
    "COMPROMISED_SCHEMA",
    "FactorSettings",
    "load_settings",
    "new_surrogate_id",
    "schema_for",
    "shuffle",
]
