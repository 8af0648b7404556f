from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        raw_dir = os.environ.get("FIXIT_HOME")
        data_dir = Path(raw_dir) if raw_dir else Path.home() / ".fixit"
        log_level = os.environ.get("FIXIT_LOG_LEVEL", "INFO").upper()
        return cls(data_dir=data_dir.expanduser().resolve(), log_level=log_level)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
