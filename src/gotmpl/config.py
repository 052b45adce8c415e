"""Configuration parsing for gotmpl.yaml"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from gotmpl.exceptions import ConfigError

CONFIG_FILENAME = "gotmpl.yaml"


class EmitterConfig(BaseModel):
    """Where the output-emission function lives in generated programs."""

    package: str = Field(default="fmt", description="Go import path")
    function: str = Field(default="Print", description="Function called per literal")

    @property
    def name(self) -> str:
        """Default local name of the package (last path element)."""
        return posixpath.basename(self.package)


class FormatterConfig(BaseModel):
    """How the final Go source is validated and printed."""

    backend: Literal["auto", "gofmt", "builtin"] = "auto"
    command: list[str] = Field(default_factory=lambda: ["gofmt"])
    indent: int = Field(default=2, description="Spaces per indentation level")

    @field_validator("indent")
    @classmethod
    def check_indent(cls, value: int) -> int:
        if value < 1:
            raise ValueError("indent must be at least 1")
        return value

    @field_validator("command")
    @classmethod
    def check_command(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("formatter command must not be empty")
        return value


class CompilerConfig(BaseModel):
    """Full gotmpl.yaml configuration"""

    site_root: Path = Field(
        default_factory=Path.cwd, description="Base for absolute template references"
    )
    merge_literals: bool = True
    wrap_main: bool = True
    main_package: str = "main"
    template_suffix: str = ".tmpl"
    output_suffix: str = ".go"
    emitter: EmitterConfig = Field(default_factory=EmitterConfig)
    formatter: FormatterConfig = Field(default_factory=FormatterConfig)

    @classmethod
    def load(cls, path: Path) -> "CompilerConfig":
        """Load config from yaml file; a missing file gives the defaults."""
        if not path.exists():
            return cls()

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(path, str(exc)) from exc

        if not isinstance(data, dict):
            raise ConfigError(path, "top level must be a mapping")

        try:
            config = cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(path, str(exc)) from exc

        # A relative site root is relative to the file that names it.
        if "site_root" in data and not config.site_root.is_absolute():
            config.site_root = path.parent / config.site_root
        return config


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Find gotmpl.yaml in the start directory or its parents."""
    cwd = start or Path.cwd()
    for parent in [cwd] + list(cwd.parents):
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None
