import os
from dataclasses import dataclass
from typing import Optional

CART_STORAGE_KEY = "cart"
SESSION_STORAGE_KEY = "podstore.auth.session"
CURRENCY_SYMBOL = "R$"


def _env_flag(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings. Built from PODSTORE_* environment variables by
    `from_env`, or constructed directly (tests point it at a temp dir).
    """

    db_path: str = "data/db.sqlite"
    storage_path: str = "data/local-storage.json"
    read_retries: int = 3
    read_retry_delay: float = 0.2
    seed: bool = True
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        data_dir = os.getenv("PODSTORE_DATA_DIR", "data")
        return cls(
            db_path=os.getenv("PODSTORE_DB_PATH", os.path.join(data_dir, "db.sqlite")),
            storage_path=os.getenv(
                "PODSTORE_STORAGE_PATH", os.path.join(data_dir, "local-storage.json")
            ),
            read_retries=max(1, int(os.getenv("PODSTORE_READ_RETRIES", "3"))),
            read_retry_delay=float(os.getenv("PODSTORE_READ_RETRY_DELAY", "0.2")),
            seed=_env_flag("PODSTORE_SEED", True),
            admin_email=os.getenv("PODSTORE_ADMIN_EMAIL") or None,
            admin_password=os.getenv("PODSTORE_ADMIN_PASSWORD") or None,
        )
