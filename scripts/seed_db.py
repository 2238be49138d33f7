from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from club_attendance.database.bootstrap import ensure_demo_users
from club_attendance.database.connection import DBConfig, DatabaseConnection

logger = logging.getLogger("seed_db")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(settings.DB_CONFIG))

    ensure_demo_users(conn)
    cfg = conn.config
    logger.info("Seeded demo accounts -> %s@%s:%s/%s", cfg.user, cfg.host, cfg.port, cfg.database)


if __name__ == "__main__":
    main()
