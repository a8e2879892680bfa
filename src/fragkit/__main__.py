from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

import uvicorn

from fragkit.config import load_config
from fragkit.demo import create_demo_app
from fragkit.home import ensure_fragkit_layout, resolve_fragkit_home


def main() -> None:
    home = resolve_fragkit_home()
    paths = ensure_fragkit_layout(home)
    config = load_config(paths)

    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            RotatingFileHandler(
                paths.log_path,
                maxBytes=config.logging.max_size_mb * 1024 * 1024,
                backupCount=config.logging.backup_count,
                encoding="utf-8",
            ),
            logging.StreamHandler(),
        ],
    )

    host = os.environ.get("FRAGKIT_BIND") or config.network.bind_host
    env_port = os.environ.get("FRAGKIT_PORT")
    port = int(env_port) if env_port else config.network.port

    uvicorn.run(create_demo_app(), host=host, port=port)


if __name__ == "__main__":
    main()
