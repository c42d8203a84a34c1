"""Configuration model and I/O for lensum record shapes.

The lensout text format carries no bin count or shear style, so readers get
them out of band from a small YAML/JSON config validated by pydantic.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError
from .types import ShearStyle

if TYPE_CHECKING:
    from ..records.collection import LensumCollection


class LensumConfig(BaseModel):
    """Shape of the lensum records of one run."""

    nbin: int = Field(description="Number of radial bins", ge=1)
    shear_style: ShearStyle = Field(
        default=ShearStyle.REDUCED, description="Shear accumulation mode"
    )
    nlens: int | None = Field(default=None, description="Number of lenses", ge=0)

    @field_validator("shear_style", mode="before")
    @classmethod
    def validate_shear_style(cls, v: Any) -> ShearStyle:
        """Accept style names in any case and the legacy integer codes."""
        try:
            return ShearStyle.parse(v)
        except ConfigError as e:
            raise ValueError(str(e)) from e

    @property
    def tokens_per_record(self) -> int:
        return self.shear_style.tokens_per_record(self.nbin)

    def new_collection(self, n: int | None = None) -> LensumCollection:
        """Allocate a zeroed collection of this shape.

        Args:
            n: Number of lenses; defaults to ``nlens``

        Raises:
            ConfigError: If neither ``n`` nor ``nlens`` is set
        """
        from ..records.collection import LensumCollection

        if n is None:
            n = self.nlens
        if n is None:
            raise ConfigError("Number of lenses not given and nlens not configured")
        return LensumCollection(n, self.nbin, self.shear_style)


def load_config(path: str | Path) -> LensumConfig:
    """Load configuration from a YAML or JSON file.

    Args:
        path: Path to configuration file

    Returns:
        Validated LensumConfig

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If config is unparsable or invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        try:
            if path.suffix.lower() in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                # Try YAML first, then JSON
                content = f.read()
                try:
                    data = yaml.safe_load(content)
                except yaml.YAMLError:
                    data = json.loads(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping, got {type(data).__name__}")

    try:
        return LensumConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e


def save_config(cfg: LensumConfig, path: str | Path) -> None:
    """Save configuration to YAML or JSON file.

    Args:
        cfg: Configuration to save
        path: Output file path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = cfg.model_dump(mode="json", exclude_none=True)

    with open(path, "w") as f:
        if path.suffix.lower() in [".yaml", ".yml"]:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(data, f, indent=2)


__all__ = [
    "LensumConfig",
    "load_config",
    "save_config",
]
