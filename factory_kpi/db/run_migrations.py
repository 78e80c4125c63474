"""
Alembic without alembic.ini.

The script location points at factory_kpi/db/migrations and the URL comes from the
DB settings, so the same commands work for MSSQL and SQLite deployments:

    python -m factory_kpi.db.run_migrations upgrade head
    python -m factory_kpi.db.run_migrations downgrade -1
    python -m factory_kpi.db.run_migrations current

The application calls main(["upgrade", "head"]) at startup when
RUN_MIGRATIONS_ON_STARTUP is enabled.
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from alembic import command
from alembic.config import Config

from factory_kpi.db.config import Settings, get_settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

# command name -> (alembic function, default arguments)
COMMANDS: Dict[str, tuple[Callable[..., object], Sequence[str]]] = {
    "upgrade": (command.upgrade, ("head",)),
    "downgrade": (command.downgrade, ("-1",)),
    "stamp": (command.stamp, ("head",)),
    "current": (command.current, ()),
    "history": (command.history, ()),
    "heads": (command.heads, ()),
}


# PUBLIC_INTERFACE
def build_config(settings: Optional[Settings] = None) -> Config:
    """Alembic Config for this package; env.py swaps in the async driver when online."""
    settings = settings or get_settings()
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # ConfigParser interpolation would choke on url-escaped passwords
    cfg.set_main_option("sqlalchemy.url", settings.sync_database_url.replace("%", "%%"))
    return cfg


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Run one Alembic command, e.g. main(["upgrade", "head"])."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(f"Usage: python -m factory_kpi.db.run_migrations <{'|'.join(COMMANDS)}> [args]")
        sys.exit(1)

    name, rest = args[0], args[1:]
    if name not in COMMANDS:
        print(f"Unsupported Alembic command: {name}")
        sys.exit(2)

    func, defaults = COMMANDS[name]
    logger.info("alembic %s %s", name, " ".join(rest or defaults))
    func(build_config(), *(rest or defaults))


if __name__ == "__main__":
    main()
