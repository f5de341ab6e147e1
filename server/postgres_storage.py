"""PostgreSQL storage implementation."""

import logging
import os
import psycopg2

from core.interfaces import KeyValueStore

logger = logging.getLogger(__name__)


class PostgresStorage(KeyValueStore):
    """PostgreSQL-based key-value storage."""

    def __init__(self, db_url: str = None):
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/wordcraft'
        )
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key VARCHAR(255) PRIMARY KEY,
                    value TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_kv_store_updated
                ON kv_store(updated_at)
            """)
        self._conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def get(self, key: str) -> str | None:
        with self.conn.cursor() as cur:
            cur.execute("SELECT value FROM kv_store WHERE key = %s", (key,))
            row = cur.fetchone()
            if row:
                return row[0]
            return None

    def set(self, key: str, value: str) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (key)
                    DO UPDATE SET value = EXCLUDED.value, updated_at = CURRENT_TIMESTAMP
                """, (key, value))
            self.conn.commit()
        except psycopg2.Error as e:
            logger.error(f"Error saving {key}: {e}")
            self.conn.rollback()
            raise

    def delete(self, key: str) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("DELETE FROM kv_store WHERE key = %s", (key,))
            self.conn.commit()
        except psycopg2.Error as e:
            logger.error(f"Error deleting {key}: {e}")
            self.conn.rollback()
            raise
