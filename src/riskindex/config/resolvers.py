# config/resolvers.py
from pathlib import Path
from typing import Optional
from platformdirs import user_data_dir

from riskindex.domain.exceptions import ConfigurationError

APP = "riskindex"
SCHEMA_VERSION = 1  # increment when schema changes

def default_db_path() -> Path:
    p = Path(user_data_dir(APP))
    p.mkdir(parents=True, exist_ok=True)
    return p / f"riskindex-v{SCHEMA_VERSION}.sqlite"

def resolve_db_path(db_path: Optional[str], *, must_exist: bool = False) -> Path:
    """
    Decide which record store we are using for this run:
    - an explicit path wins; otherwise the per-user default location
    - must_exist=True: read-only commands refuse to create an empty store
    """
    p = Path(db_path).expanduser() if db_path else default_db_path()
    if must_exist and not p.exists():
        raise ConfigurationError(
            f"Record store not found: {p}", config_field="database.path"
        ).add_suggestion("Submit an assessment first or pass --db")
    return p
