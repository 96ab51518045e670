"""
Accès PostgreSQL (psycopg 3).
- get_conn(): connexion courte, commit si le bloc réussit, rollback sinon.
- Isolation READ COMMITTED: les écritures concurrentes sur un même produit sont
  sérialisées par les UPDATE gardés par une clause WHERE (voir checkout.repository).
"""
import logging
from contextlib import contextmanager
from typing import Iterator

import psycopg
from psycopg import IsolationLevel
from psycopg.rows import dict_row

from storefront.config import DATABASE_URL, DB_STATEMENT_TIMEOUT_MS

logger = logging.getLogger(__name__)

def connect() -> psycopg.Connection:
    conn = psycopg.connect(
        DATABASE_URL,
        row_factory=dict_row,
        options=f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}",
    )
    conn.isolation_level = IsolationLevel.READ_COMMITTED
    return conn

@contextmanager
def get_conn() -> Iterator[psycopg.Connection]:
    conn = connect()
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()

def ping() -> bool:
    """Vérifie que la base répond (utilisé par /health/database)."""
    try:
        with get_conn() as conn:
            conn.execute("SELECT 1").fetchone()
        return True
    except psycopg.Error:
        logger.exception("database ping failed")
        return False
