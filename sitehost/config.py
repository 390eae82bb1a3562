import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    admin_secret: str = "dev-secret"
    log_level: str = "INFO"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "sitehost.sqlite3"

    @property
    def objects_dir(self) -> Path:
        return self.data_dir / "objects"


def load_config() -> AppConfig:
    load_dotenv()
    return AppConfig(
        data_dir=Path(os.getenv("SITEHOST_DATA_DIR", "data")),
        admin_secret=os.getenv("SITEHOST_ADMIN_SECRET", "dev-secret"),
        log_level=os.getenv("SITEHOST_LOG_LEVEL", "INFO").upper(),
    )
