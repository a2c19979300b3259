# src/ledgerlab/core/config.py
"""
Configuration schema and loading for ledgerlab.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class BinarySettings(BaseModel):
    """Locations of the external executables.

    tendermint and tmux are resolved on PATH; the MANY binaries are
    looked up under build_dir.
    """

    model_config = {"frozen": True}

    tendermint: str = Field(default="tendermint", description="Consensus engine executable")
    tmux: str = Field(default="tmux", description="Terminal multiplexer executable")
    build_dir: Path = Field(
        default=Path("./target/debug"),
        description="Directory holding the built application binaries",
    )
    ledger: str = Field(default="many-ledger", description="Ledger application binary")
    kvstore: str = Field(default="many-kvstore", description="Key-value store binary")
    abci: str = Field(default="many-abci", description="Protocol bridge binary")
    gateway: str = Field(default="http_proxy", description="HTTP gateway binary")

    def path_for(self, binary: str) -> str:
        """Resolve a binary key (ledger, kvstore, abci, gateway) to a path."""
        if binary not in ("ledger", "kvstore", "abci", "gateway"):
            raise ValueError(f"Unknown binary: {binary}")
        return str(self.build_dir.absolute() / getattr(self, binary))


class IdentitySettings(BaseModel):
    """Credential file shared by every application-facing process."""

    model_config = {"frozen": True}

    pem: Path = Field(
        default_factory=lambda: Path.home() / "Identities" / "id1.pem",
        description="PEM identity passed to applications, bridges and gateway",
    )


class StagingSettings(BaseModel):
    """Initial-state files for the applications."""

    model_config = {"frozen": True}

    ledger_state: Path = Field(default=Path("./staging/ledger_state.json"))
    kvstore_state: Path = Field(default=Path("./staging/kvstore_state.json"))


class SessionSettings(BaseModel):
    """tmux session configuration."""

    model_config = {"frozen": True}

    name: str = Field(default="many", description="Session name")
    shell: str | None = Field(
        default=None,
        description="Command for the final operator window (defaults to $SHELL)",
    )
    attach: bool = Field(default=True, description="Attach after launching")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        # tmux treats ':' and '.' as target separators
        if not v or ":" in v or "." in v:
            raise ValueError(f"invalid tmux session name: {v!r}")
        return v

    def resolved_shell(self) -> str:
        return self.shell or os.environ.get("SHELL", "/bin/sh")


class ConsensusSettings(BaseModel):
    """Optional consensus tuning written into every node's config.toml.

    Unset fields leave the engine defaults alone.
    """

    model_config = {"frozen": True}

    create_empty_blocks: bool | None = None
    create_empty_blocks_interval: str | None = None
    timeout_commit: str | None = None
    timeout_precommit: str | None = None

    def overrides(self) -> tuple[tuple[str, Any], ...]:
        """Key-path assignments for the fields that are set."""
        return tuple(
            (f"consensus.{name.replace('_', '-')}", value)
            for name, value in self.model_dump().items()
            if value is not None
        )


class LoggingSettings(BaseModel):
    """structlog output configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_output: bool = Field(default=False, description="Render logs as JSON lines")


class LedgerlabSettings(BaseModel):
    """Top-level ledgerlab configuration.

    Every section has defaults matching the standard MANY checkout layout,
    so an empty settings file (or none at all) is valid.
    """

    model_config = {"frozen": True}

    binaries: BinarySettings = Field(default_factory=BinarySettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    staging: StagingSettings = Field(default_factory=StagingSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    consensus: ConsensusSettings = Field(default_factory=ConsensusSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Path | None = None) -> LedgerlabSettings:
    """Load settings from an optional YAML file with environment overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (LEDGERLAB_*) - highest priority
    2. Config file, when given
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: LEDGERLAB_SESSION__NAME for nested keys.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given but doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="LEDGERLAB",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; nested dicts keep their own casing
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {
        k.lower(): _lower_keys(v)
        for k, v in dynaconf_settings.as_dict().items()
        if k not in internal_keys
    }
    return LedgerlabSettings(**raw_config)


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value
