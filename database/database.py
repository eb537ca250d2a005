"""
Database connection and transaction management using raw PostgreSQL
Every booking mutation runs inside a single transaction obtained from here
"""
import logging
import os
import sys
import threading
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from psycopg2 import pool, extras
from psycopg2.extensions import ISOLATION_LEVEL_READ_COMMITTED
from dotenv import load_dotenv

# Support running this module directly (``python database/database.py``)
if __package__ in (None, ""):
    current_dir = Path(__file__).resolve().parent
    repo_root = current_dir.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from backend.errors import PoolExhausted

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = 'postgresql://localhost/flight_booking'
TABLES = ('bookings', 'flights', 'users')


def _env_int(name, default):
    value = os.getenv(name)
    return int(value) if value not in (None, '') else default


class DatabaseManager:
    """
    Owner of the connection pool and the transaction boundary.

    The pool is created by ``initialize_pool`` and torn down by
    ``close_all_connections``; nothing is opened at construction time.
    """

    def __init__(self, database_url=None, min_connections=None, max_connections=None,
                 pool_timeout=None, lock_timeout_ms=None, statement_timeout_ms=None):
        """
        Initialize database manager

        Args:
            database_url: Database connection URL (defaults to env variable)
            min_connections: Connections opened eagerly by the pool
            max_connections: Upper bound on concurrently checked-out connections
            pool_timeout: Seconds to wait for a free connection before giving up
            lock_timeout_ms: Per-transaction row-lock wait limit
            statement_timeout_ms: Per-transaction statement limit
        """
        self.database_url = database_url or os.getenv('DATABASE_URL', DEFAULT_DATABASE_URL)

        self.min_connections = min_connections if min_connections is not None else _env_int('DB_POOL_MIN', 2)
        self.max_connections = max_connections if max_connections is not None else _env_int('DB_POOL_MAX', 10)
        self.pool_timeout = pool_timeout if pool_timeout is not None else float(os.getenv('DB_POOL_TIMEOUT', '30'))
        self.lock_timeout_ms = (lock_timeout_ms if lock_timeout_ms is not None
                                else _env_int('DB_LOCK_TIMEOUT_MS', 5000))
        self.statement_timeout_ms = (statement_timeout_ms if statement_timeout_ms is not None
                                     else _env_int('DB_STATEMENT_TIMEOUT_MS', 30000))

        if self.min_connections < 0 or self.max_connections < 1 or self.min_connections > self.max_connections:
            raise ValueError("Invalid pool bounds: "
                             f"min={self.min_connections}, max={self.max_connections}")

        self.db_config = self._parse_database_url(self.database_url)
        self.connection_pool = None
        self._slots = threading.BoundedSemaphore(self.max_connections)
        self._lock = threading.Lock()

    def __enter__(self):
        self.initialize_pool()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close_all_connections()
        return False

    def _parse_database_url(self, url):
        """Parse database URL into connection parameters"""
        if url.startswith('postgresql://') or url.startswith('postgres://'):
            url = url.replace('postgresql://', '').replace('postgres://', '')

            # user:password@host:port/database
            if '@' in url:
                auth, location = url.split('@', 1)
                if ':' in auth:
                    user, password = auth.split(':', 1)
                else:
                    user, password = auth, None
            else:
                user, password = None, None
                location = url

            if '/' in location:
                host_port, database = location.split('/', 1)
            else:
                host_port, database = location, 'flight_booking'

            if ':' in host_port:
                host, port = host_port.split(':', 1)
                port = int(port)
            else:
                host, port = host_port or 'localhost', 5432

            config = {
                'database': database,
                'host': host,
                'port': port,
            }

            if user:
                config['user'] = user
            if password:
                config['password'] = password

            return config

        raise ValueError(f"Unsupported database URL: {url!r}")

    def initialize_pool(self):
        """Create the connection pool. Calling it twice is harmless."""
        with self._lock:
            if self.connection_pool is not None:
                return
            try:
                self.connection_pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self.min_connections,
                    maxconn=self.max_connections,
                    **self.db_config
                )
            except psycopg2.Error as e:
                raise RuntimeError(f"Failed to create database connection pool: {e}") from e

        logger.info("Connection pool initialized (%d-%d connections) for %s/%s",
                    self.min_connections, self.max_connections,
                    self.db_config['host'], self.db_config['database'])

    @property
    def is_initialized(self):
        return self.connection_pool is not None

    def get_connection(self, timeout=None):
        """
        Get a connection from the pool, waiting while the pool is exhausted

        Raises:
            PoolExhausted: If no connection frees up within the timeout
        """
        if self.connection_pool is None:
            raise RuntimeError("Connection pool is not initialized")

        wait = self.pool_timeout if timeout is None else timeout
        if not self._slots.acquire(timeout=wait):
            raise PoolExhausted(f"No database connection available after {wait:g}s")

        try:
            return self.connection_pool.getconn()
        except Exception:
            self._slots.release()
            raise

    def return_connection(self, conn, close=False):
        """Return a connection to the pool (``close`` discards it instead)"""
        try:
            if self.connection_pool is not None:
                self.connection_pool.putconn(conn, close=bool(close or conn.closed))
        finally:
            self._slots.release()

    def close_all_connections(self):
        """Close all connections in the pool"""
        with self._lock:
            if self.connection_pool is not None:
                self.connection_pool.closeall()
                self.connection_pool = None
                logger.info("Connection pool closed")

    def ping(self):
        """Return True when the database answers a trivial query"""
        try:
            with self.get_cursor() as cursor:
                cursor.execute("SELECT 1 AS ok")
                return cursor.fetchone()['ok'] == 1
        except (psycopg2.Error, RuntimeError):
            logger.warning("Database ping failed", exc_info=True)
            return False

    def create_tables(self):
        """Create all database tables from schema"""
        schema_file = Path(__file__).parent / 'schema.sql'

        if not schema_file.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_file}")

        with open(schema_file, 'r') as f:
            schema_sql = f.read()

        with self.transaction() as conn:
            with conn.cursor() as cursor:
                cursor.execute(schema_sql)

    def drop_tables(self):
        """Drop all database tables (use with caution!)"""
        with self.transaction() as conn:
            with conn.cursor() as cursor:
                for table in TABLES:
                    cursor.execute(f"DROP TABLE IF EXISTS {table} CASCADE")

    def _apply_timeouts(self, cursor):
        """Scope lock and statement limits to the current transaction only"""
        cursor.execute(
            "SELECT set_config('lock_timeout', %s, true), set_config('statement_timeout', %s, true)",
            (f"{self.lock_timeout_ms}ms", f"{self.statement_timeout_ms}ms")
        )

    def _rollback(self, conn):
        """Roll back; a failure here is logged and reported, never raised."""
        try:
            conn.rollback()
            return True
        except Exception:
            logger.error("Rollback failed; discarding connection", exc_info=True)
            return False

    @contextmanager
    def get_cursor(self, cursor_factory=None):
        """
        Get a cursor with automatic connection management

        Usage:
            with db.get_cursor() as cursor:
                cursor.execute("SELECT * FROM users")
                results = cursor.fetchall()
        """
        with self.transaction() as conn:
            with conn.cursor(cursor_factory=cursor_factory or extras.RealDictCursor) as cursor:
                yield cursor

    @contextmanager
    def transaction(self):
        """
        Provide a transactional scope with a connection

        Commits when the block exits normally. Any exception, including an
        abandoned generator or interrupt, rolls back before the connection
        goes back to the pool.

        Usage:
            with db.transaction() as conn:
                with conn.cursor() as cursor:
                    cursor.execute("INSERT INTO users ...")
        """
        conn = self.get_connection()
        discard = False
        try:
            conn.set_isolation_level(ISOLATION_LEVEL_READ_COMMITTED)
            conn.autocommit = False
            try:
                with conn.cursor() as cursor:
                    self._apply_timeouts(cursor)
                yield conn
                conn.commit()
            except BaseException:
                discard = not self._rollback(conn)
                raise
        finally:
            self.return_connection(conn, close=discard)

    def run_transaction(self, work):
        """
        Run ``work(conn)`` in one transaction and return its result.

        No retries: whatever ``work`` or the commit raises reaches the caller
        unchanged, after the rollback.
        """
        with self.transaction() as conn:
            return work(conn)


def init_db():
    """Initialize database with tables"""
    with DatabaseManager() as db_manager:
        db_manager.create_tables()
    print("Database initialized successfully!")


if __name__ == "__main__":
    init_db()
