"""Configuration model for the ingestkit-markup stage.

Provides ``MarkupProcessorConfig`` with all tunable parameters and sensible
defaults.  Supports loading overrides from YAML or JSON files via the
``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib
import re

from pydantic import BaseModel, Field, model_validator

_ELEMENT_NAME = re.compile(r"[A-Za-z][A-Za-z0-9:_.-]*")
_ENTITY_NAME = re.compile(r"[A-Za-z][A-Za-z0-9]*")


class MarkupProcessorConfig(BaseModel):
    """All tunable parameters with sensible defaults for markup stripping."""

    # --- Identity ---
    parser_version: str = "ingestkit_markup:1.0.0"
    tenant_id: str | None = None

    # --- Field Selection ---
    fields: list[str] = Field(
        default_factory=list,
        description="Ordered names of the document fields to strip.",
    )
    space_normalize: bool = Field(
        default=True,
        description="Collapse whitespace in stripped values.",
    )

    # --- Scanner ---
    opaque_elements: list[str] = Field(
        default_factory=lambda: ["script", "style"],
        description="Elements whose whole content is discarded up to the matching end tag.",
    )
    extra_entities: dict[str, str] = Field(
        default_factory=dict,
        description="Named entities added to the built-in HTML table (name -> replacement).",
    )
    read_buffer_size: int = Field(
        default=4096,
        ge=16,
        description="Number of characters read from the input per scanner refill.",
    )
    max_entity_length: int = Field(
        default=32,
        ge=1,
        le=256,
        description="Longest entity body examined before '&' is emitted literally.",
    )

    @model_validator(mode="after")
    def _validate_names(self) -> MarkupProcessorConfig:
        # A field listed twice would be stripped twice ("&amp;lt;" -> "<").
        self.fields = list(dict.fromkeys(self.fields))
        for name in self.opaque_elements:
            if not _ELEMENT_NAME.fullmatch(name):
                raise ValueError(f"opaque_elements contains an invalid element name: {name!r}")
        for name in self.extra_entities:
            if not _ENTITY_NAME.fullmatch(name):
                raise ValueError(f"extra_entities contains an invalid entity name: {name!r}")
            if len(name) > self.max_entity_length:
                raise ValueError(
                    f"extra_entities name {name!r} is longer than "
                    f"max_entity_length={self.max_entity_length}"
                )
        return self

    @classmethod
    def from_file(cls, path: str) -> MarkupProcessorConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Any keys present in the file override the
        corresponding defaults; keys not present retain their defaults.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            try:
                import yaml  # type: ignore[import-untyped]
            except ImportError as exc:
                raise ImportError(
                    "pyyaml is required to load YAML config files. "
                    "Install it with: pip install ingestkit-markup[yaml]"
                ) from exc
            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
