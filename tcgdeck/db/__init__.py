from tcgdeck.db.database import get_session, init_db
from tcgdeck.db.operations import (
    delete_entry,
    get_entry,
    list_keys,
    namespace_usage,
    upsert_entry,
)

__all__ = [
    "delete_entry",
    "get_entry",
    "get_session",
    "init_db",
    "list_keys",
    "namespace_usage",
    "upsert_entry",
]
