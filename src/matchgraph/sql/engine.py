from __future__ import annotations

import os
from typing import Optional

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from matchgraph.core.config import build_database_url_from_env

Base = declarative_base()

# Postgres pool size; crawl units beyond it wait for a free connection
DEFAULT_POOL_SIZE = 15


def resolve_database_url(url: Optional[str] = None) -> str:
    """Resolve the database URL.

    Resolution order:
    - explicit ``url`` arg
    - env ``MATCHGRAPH_DATABASE_URL``
    - env ``DATABASE_URL``
    - component envs (MATCHGRAPH_DB_HOST/USER/[PASSWORD]/[NAME]/[PORT]/[SSLMODE])
    """
    database_url = (
        url
        or os.getenv("MATCHGRAPH_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or build_database_url_from_env()
    )
    if not database_url:
        raise RuntimeError(
            "No database URL provided. Set MATCHGRAPH_DATABASE_URL or DATABASE_URL, "
            "or provide component env vars (MATCHGRAPH_DB_HOST/USER/[PASSWORD]/[NAME]/[PORT]/[SSLMODE])."
        )
    # Some hosts hand out postgres://..., SQLAlchemy expects postgresql://...
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def create_engine(
    url: Optional[str] = None,
    *,
    echo: bool = False,
    pool_size: int = DEFAULT_POOL_SIZE,
) -> Engine:
    """Create a SQLAlchemy engine shared by the control loop and workers."""
    database_url = resolve_database_url(url)
    if database_url.startswith("sqlite"):
        return _sa_create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
    return _sa_create_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=0,
        pool_pre_ping=True,
    )
