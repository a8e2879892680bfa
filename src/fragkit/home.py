from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FragkitPaths:
    home: Path
    config_dir: Path
    logs_dir: Path

    @property
    def config_path(self) -> Path:
        return self.config_dir / "fragkit.json"

    @property
    def log_path(self) -> Path:
        return self.logs_dir / "fragkit.log"


def resolve_fragkit_home(environ: dict[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ

    raw = (env.get("FRAGKIT_HOME") or "").strip()
    if raw:
        candidate = Path(raw).expanduser()
        # Relative values are anchored at the user's home, never at CWD.
        if not candidate.is_absolute():
            candidate = (Path.home() / candidate).resolve()
        else:
            candidate = candidate.resolve()
        return candidate

    if sys.platform.startswith("win"):
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            return (Path(base) / "fragkit").resolve()
        return (Path.home() / "AppData" / "Local" / "fragkit").resolve()

    if sys.platform == "darwin":
        return (Path.home() / "Library" / "Application Support" / "fragkit").resolve()

    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return (Path(xdg) / "fragkit").resolve()
    return (Path.home() / ".local" / "share" / "fragkit").resolve()


def ensure_fragkit_layout(home: Path) -> FragkitPaths:
    home.mkdir(parents=True, exist_ok=True)

    config_dir = home / "config"
    logs_dir = home / "logs"
    for path in (config_dir, logs_dir):
        path.mkdir(parents=True, exist_ok=True)

    return FragkitPaths(home=home, config_dir=config_dir, logs_dir=logs_dir)
