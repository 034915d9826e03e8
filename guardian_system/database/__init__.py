from .connection import DB_URL, get_db_connection, get_db_url
from .models import Base, HistoryEntry

__all__ = [
    'DB_URL',
    'get_db_connection',
    'get_db_url',
    'Base',
    'HistoryEntry',
]
