"""
Guardian System - Database Connection
Engine / session factory setup for the history store
"""

import os
import logging
from typing import Optional, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)

# Default: a SQLite file next to the working directory
DB_URL = 'sqlite:///guardian_history.db'


def get_db_url() -> str:
    """Database URL from GUARDIAN_DB_URL, falling back to DB_URL."""
    return os.getenv('GUARDIAN_DB_URL', DB_URL)


def get_db_connection(url: Optional[str] = None, echo: bool = False) -> Tuple[Engine, sessionmaker]:
    """
    Create the engine and a session factory, creating tables if needed.

    In-memory SQLite URLs share a single connection so every thread sees
    the same database.

    Args:
        url:  SQLAlchemy URL. Defaults to get_db_url().
        echo: Log emitted SQL.

    Returns:
        (engine, session_factory)
    """
    url = url or get_db_url()

    kwargs = {'echo': echo}
    if url.startswith('sqlite'):
        kwargs['connect_args'] = {'check_same_thread': False}
        if url in ('sqlite://', 'sqlite:///:memory:'):
            kwargs['poolclass'] = StaticPool

    engine = create_engine(url, **kwargs)
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    logger.info(f"✓ Connected to history database ({engine.url.render_as_string(hide_password=True)})")
    return engine, session_factory
