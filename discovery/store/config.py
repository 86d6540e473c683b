from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class StoreConfig:
    """
    Location of the JSON record files backing the in-memory store.
    """

    data_dir: Path = Path(os.getenv("DISCOVERY_DATA_DIR", str(_DEFAULT_DATA_DIR)))
    contractors_filename: str = "contractors.json"
    users_filename: str = "users.json"
    events_filename: str = "events.json"
    jobs_filename: str = "jobs.json"

    @property
    def contractors_path(self) -> Path:
        return self.data_dir / self.contractors_filename

    @property
    def users_path(self) -> Path:
        return self.data_dir / self.users_filename

    @property
    def events_path(self) -> Path:
        return self.data_dir / self.events_filename

    @property
    def jobs_path(self) -> Path:
        return self.data_dir / self.jobs_filename


DEFAULT_STORE_CONFIG = StoreConfig()
