# Server configuration record.
# Created: 2026-10-16
#
# Built once at startup (from the CLI or by tests) and shared read-only by
# every request handler through ``app.state.settings``.

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_ADDRESS = "127.0.0.1"
DEFAULT_PORT = 5000


class Settings(BaseModel):
    """Immutable server configuration."""

    model_config = ConfigDict(frozen=True)

    address: str = DEFAULT_ADDRESS
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    path: Path = Field(default=Path("."), validate_default=True)
    readonly: bool = False
    auth: str | None = None

    @field_validator("path")
    @classmethod
    def _canonicalize_path(cls, value: Path) -> Path:
        value = Path(value).expanduser()
        if not value.exists():
            raise ValueError(f'path "{value}" doesn\'t exist')
        try:
            return (Path.cwd() / value).resolve(strict=True)
        except OSError as e:
            raise ValueError(f'failed to access path "{value}": {e}') from e

    @field_validator("auth")
    @classmethod
    def _empty_auth_is_none(cls, value: str | None) -> str | None:
        return value or None

    def display_address(self, port: int | None = None) -> str:
        """``host:port`` as shown in the startup banner (IPv6 hosts bracketed)."""
        host = f"[{self.address}]" if ":" in self.address else self.address
        return f"{host}:{self.port if port is None else port}"
