"""Database engine and session dependency"""

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlmodel import Session

from fest_registry.config import config

# Database URL from config
DATABASE_URL = config["database_url"]

# Validate DATABASE_URL exists
if not DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is not set. "
        "Set DATABASE_URL in the deployment dashboard or local .env file."
    )


def build_engine(database_url: str):
    """Create an engine; SQLite gets a busy timeout so concurrent writers queue."""
    connect_args = {}
    if make_url(database_url).get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(
        database_url,
        echo=os.getenv("DEBUG", "false").lower() == "true",
        pool_pre_ping=True,
        connect_args=connect_args,
    )


# Create engine
engine = build_engine(DATABASE_URL)


def get_db():
    """Get database session"""
    with Session(engine) as session:
        yield session
