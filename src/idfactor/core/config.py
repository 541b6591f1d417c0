"""
Configuration schema and loading for idfactor runs.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from idfactor.contracts.enums import RecordVariant
from idfactor.contracts.schema import FragmentSpec, RecordSchema
from idfactor.core.schemas import schema_for


class FactorSettings(BaseModel):
    """Top-level configuration for one factoring run.

    Example YAML:
        variant: compromised
        delimiter: ","        # input file; quote it, a bare | starts a YAML block scalar
        output_delimiter: "|"
        output_dir: ./out
        map_file: identity_map.psv
        fragments: [name_dob, ssn, address, phone, email]
    """

    model_config = {"frozen": True, "extra": "forbid"}

    variant: RecordVariant = Field(
        default=RecordVariant.AT_RISK,
        description="Input record layout: at_risk (plain) or compromised (with breach id)",
    )
    delimiter: str = Field(
        default="|",
        description="Single field delimiter of the input file",
    )
    output_delimiter: str = Field(
        default="|",
        description="Single field delimiter of every fragment store and the identity map",
    )
    output_dir: Path = Field(
        default=Path("."),
        description="Directory receiving the fragment stores and the mapping file",
    )
    map_file: str | None = Field(
        default=None,
        description="File name of the reversible identity map (omit to skip writing it)",
    )
    fragments: list[str] | None = Field(
        default=None,
        description="Fragment kinds to produce (default: every kind the schema declares)",
    )
    encoding: str = Field(
        default="utf-8",
        description="Text encoding of input and output files",
    )
    max_workers: int | None = Field(
        default=None,
        gt=0,
        description="Concurrent fragment writers (default: one per configured kind)",
    )

    @field_validator("delimiter", "output_delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Delimiter must be exactly one usable character."""
        # Import inside function body to avoid circular imports (engine.runner imports this module)
        from idfactor.engine.writer import check_delimiter

        check_delimiter(v)
        return v

    @field_validator("map_file")
    @classmethod
    def validate_map_file(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("map_file must not be blank")
        return v

    @field_validator("fragments")
    @classmethod
    def validate_unique_fragments(cls, v: list[str] | None) -> list[str] | None:
        """Ensure fragment kinds are listed at most once and not empty."""
        if v is None:
            return v
        if not v:
            raise ValueError("fragments must name at least one kind when given")
        duplicates = sorted({kind for kind in v if v.count(kind) > 1})
        if duplicates:
            raise ValueError(f"Duplicate fragment kind(s): {duplicates}")
        return v

    @model_validator(mode="after")
    def validate_fragments_exist(self) -> "FactorSettings":
        """Ensure every requested fragment kind is declared by the variant's schema."""
        if self.fragments is not None:
            available = schema_for(self.variant).kinds
            unknown = [kind for kind in self.fragments if kind not in available]
            if unknown:
                raise ValueError(f"Unknown fragment kind(s) {unknown}. Available kinds: {available}")
        return self

    @property
    def schema(self) -> RecordSchema:
        return schema_for(self.variant)

    @property
    def fragment_specs(self) -> tuple[FragmentSpec, ...]:
        """Configured fragment specs in schema declaration order."""
        return self.schema.select(self.fragments)

    @property
    def map_path(self) -> Path | None:
        if self.map_file is None:
            return None
        return self.output_dir / self.map_file


def load_settings(config_path: Path | None = None, **overrides: Any) -> FactorSettings:
    """Load settings from environment variables and an optional YAML file.

    Uses Dynaconf for multi-source loading with precedence:
    1. Explicit overrides (CLI flags) - highest priority
    2. Environment variables (IDFACTOR_*)
    3. Config file, when one is given
    4. Defaults from the Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file (None: environment only)
        overrides: Values that replace whatever the file or environment set;
            None values are ignored

    Returns:
        Validated FactorSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="IDFACTOR",
        settings_files=[] if config_path is None else [str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; drop its own bookkeeping keys
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config.update({k: v for k, v in overrides.items() if v is not None})

    return FactorSettings(**raw_config)
