from __future__ import annotations

import json
import secrets
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from fragkit.auth import TOKEN_COOKIE
from fragkit.home import FragkitPaths

DEFAULT_DENYLIST: tuple[str, ...] = (
    "token",
    "session",
    "session_id",
    "sessionid",
    "csrf",
    "csrf_token",
    "auth",
    "auth_token",
    "jwt",
    "bearer",
    "id",
    TOKEN_COOKIE,
)


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class CookieConfig(BaseModel):
    """Attributes of the per-field state cookies."""

    path: str = Field(default="/")
    max_age: int | None = Field(
        default=60 * 60 * 24 * 30,
        ge=0,
        description="Lifetime in seconds; null writes session cookies.",
    )
    samesite: Literal["lax", "strict", "none"] = Field(default="lax")
    secure: bool = Field(default=False)
    httponly: bool = Field(
        default=False,
        description="State cookies stay readable by the client-side cookie cleaner.",
    )


class StateUrlsConfig(BaseModel):
    """Bookmark redirect settings: promote cookie state into the visible URL."""

    enabled: bool = Field(default=True)
    denylist: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DENYLIST),
        description="Cookie names that are never copied into a URL.",
    )
    exempt_prefixes: list[str] = Field(
        default_factory=lambda: ["/static", "/healthz", "/login", "/logout"],
        description="Path prefixes that are never redirected.",
    )

    def deny(self, *names: str) -> StateUrlsConfig:
        merged = list(self.denylist)
        merged.extend(n for n in names if n not in merged)
        return self.model_copy(update={"denylist": merged})


class AuthConfig(BaseModel):
    install_token: str | None = Field(default=None)
    login_path: str = Field(default="/login")


class FragkitConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    cookies: CookieConfig = Field(default_factory=CookieConfig)
    state_urls: StateUrlsConfig = Field(default_factory=StateUrlsConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_config(paths: FragkitPaths) -> FragkitConfig:
    """Load config from ${FRAGKIT_HOME}/config/fragkit.json.

    - If missing: returns defaults.
    - Validation is performed by Pydantic.
    """

    if not paths.config_path.exists():
        return FragkitConfig()

    raw = _read_json(paths.config_path)
    return FragkitConfig.model_validate(raw)


def write_config(paths: FragkitPaths, config: FragkitConfig) -> None:
    payload = config.model_dump(mode="json", exclude_none=True)
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def ensure_install_token(paths: FragkitPaths, config: FragkitConfig) -> FragkitConfig:
    """Ensure a per-install auth token exists and is stored in config."""

    raw = (config.auth.install_token or "").strip()
    if raw:
        return config

    token = secrets.token_urlsafe(32)
    updated_auth = config.auth.model_copy(update={"install_token": token})
    updated = config.model_copy(update={"auth": updated_auth})
    write_config(paths, updated)
    return updated
