"""
Database access for the admin backend

Centralizes every way of reaching the data:
- Supabase client (PostgREST, default table store)
- psycopg2 direct connections (transactional table store)
- get_table_store(): the process-wide TableStore selected by settings

Author: Kuantum Ticaret
Date: 2025-11-02
"""
import logging
import time
from functools import lru_cache

import psycopg2
from psycopg2.extras import RealDictCursor
from supabase import create_client, Client

from .config import settings
from .table_store import (
    PostgresTableStore,
    StoreConfigurationError,
    SupabaseTableStore,
    TableStore,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Supabase Client
# ============================================================================

@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    FastAPI dependency returning the shared Supabase client

    Usage:
        @app.get("/data")
        def get_data(sb: Client = Depends(get_supabase)):
            ...
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise StoreConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured")

    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


# ============================================================================
# psycopg2 Connection with Retry Logic (SSL Failure Recovery)
# ============================================================================

def get_db_connection_dict_with_retry(max_retries=None, retry_delay=1.0):
    """
    Get a psycopg2 connection with RealDictCursor and automatic retry

    Only establishing the connection is retried; statements executed on it
    never are.

    Args:
        max_retries: Maximum number of connection attempts (default: DB_CONNECT_RETRIES)
        retry_delay: Initial delay between retries in seconds (default: 1.0)

    Returns:
        psycopg2 connection with RealDictCursor

    Raises:
        StoreConfigurationError: If DATABASE_URL is not configured
        psycopg2.OperationalError: If all retry attempts fail
    """
    database_url = settings.DATABASE_URL
    if not database_url:
        raise StoreConfigurationError("DATABASE_URL not configured")

    max_retries = max_retries or settings.DB_CONNECT_RETRIES
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            return psycopg2.connect(
                database_url,
                cursor_factory=RealDictCursor,
                connect_timeout=settings.CONNECTION_TIMEOUT
            )

        except psycopg2.OperationalError as e:
            last_error = e
            error_msg = str(e)

            if "SSL connection has been closed unexpectedly" in error_msg:
                logger.warning(f"SSL connection error on attempt {attempt}/{max_retries}: {error_msg}")
            else:
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {error_msg}")

            if attempt < max_retries:
                # Exponential backoff
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)

    logger.error(f"All {max_retries} connection attempts failed")
    raise last_error


# ============================================================================
# Table Store selection
# ============================================================================

@lru_cache(maxsize=1)
def get_table_store() -> TableStore:
    """Return the TableStore for the configured backend"""
    backend = settings.TABLE_STORE_BACKEND.lower()

    if backend == "supabase":
        logger.info("Using Supabase table store")
        return SupabaseTableStore(get_supabase())

    if backend == "postgres":
        if not settings.DATABASE_URL:
            raise StoreConfigurationError("DATABASE_URL not configured")
        logger.info("Using Postgres table store")
        return PostgresTableStore(get_db_connection_dict_with_retry)

    raise StoreConfigurationError(f"Unknown TABLE_STORE_BACKEND: {settings.TABLE_STORE_BACKEND}")
