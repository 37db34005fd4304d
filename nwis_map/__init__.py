"""
nwis_map – USGS site maps with Alaska, Hawaii and Puerto Rico moved in.
Top-level package.  Exposes the project paths and
configures logging early so every sub-module inherits it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Final

__all__ = ["logger", "DATA_DIR", "OUTPUT_DIR", "PROJECT_ROOT"]

# ---------- paths ----------
PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parent.parent
DATA_DIR: Final[Path] = Path(os.getenv("NWIS_MAP_DATA_DIR", PROJECT_ROOT / "data"))
OUTPUT_DIR: Final[Path] = Path(os.getenv("NWIS_MAP_OUTPUT_DIR", PROJECT_ROOT / "output"))

# ---------- logging ----------
LOG_LEVEL = os.getenv("NWIS_MAP_LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger("nwis_map")
logger.debug("Logging initialised (level=%s)", LOG_LEVEL)

# ---------- runtime self-check ----------
for _path in (DATA_DIR, OUTPUT_DIR):
    if not _path.exists():
        try:
            _path.mkdir(parents=True, exist_ok=True)
            logger.info("Created missing directory %s", _path)
        except OSError as exc:
            logger.error("Cannot create %s – %s", _path, exc, exc_info=True)
            raise
