"""
PostgreSQL storage for user profiles and penpal requests.

Uses psycopg2 for PostgreSQL connections with connection pooling.
"""

import json
import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import psycopg2
from psycopg2 import pool

from globetalk.errors import BackendUnavailable
from globetalk.models.penpal_request import Participant, PenpalRequest, RequestStatus
from globetalk.models.user_profile import UserProfile
from globetalk.storage.penpal_store import PenpalStore, PenpalTransaction
from globetalk.storage.user_directory import DirectoryTransaction, UserDirectory
from globetalk.utils.constants import (
    DEFAULT_POOL_MAX,
    DEFAULT_POOL_MIN,
    ENV_DATABASE_URL,
    ENV_POOL_MAX,
    ENV_POOL_MIN,
)


logger = logging.getLogger(__name__)


USER_COLUMNS = "user_id, username, languages, region, hobbies, bio, matched_with"

PENPAL_COLUMNS = (
    "id, users, user_ids, requested_by, requested_to, status, "
    "created_at, updated_at, accepted_by, declined_by"
)


class _PooledStore:
    """
    Connection pool handling shared by both stores.
    Why: one pool per process, created on first use and passed around.
    """

    def __init__(
        self,
        connection_string: Optional[str] = None,
        connection_pool: Optional[pool.ThreadedConnectionPool] = None,
    ):
        """
        Initialize store with database connection.

        Args:
            connection_string: PostgreSQL connection string.
                             Defaults to DATABASE_URL env var.
            connection_pool: An existing pool to share with another store.
        """
        self.connection_string = connection_string or os.getenv(ENV_DATABASE_URL)
        self._pool = connection_pool

    @property
    def connection_pool(self) -> pool.ThreadedConnectionPool:
        if not self._pool:
            try:
                self._pool = pool.ThreadedConnectionPool(
                    int(os.getenv(ENV_POOL_MIN, DEFAULT_POOL_MIN)),
                    int(os.getenv(ENV_POOL_MAX, DEFAULT_POOL_MAX)),
                    self.connection_string,
                )
            except psycopg2.Error as e:
                raise BackendUnavailable(f"Cannot connect to database: {e}") from e
        return self._pool

    def _get_connection(self):
        """Get a connection from the pool."""
        try:
            return self.connection_pool.getconn()
        except psycopg2.Error as e:
            raise BackendUnavailable(f"No database connection available: {e}") from e

    def _release_connection(self, conn, broken: bool = False):
        """Return connection to pool, closing it instead if it is broken."""
        if self._pool:
            if broken:
                self._pool.putconn(conn, close=True)
            else:
                self._pool.putconn(conn)

    def _rollback(self, conn) -> bool:
        """
        Roll back the open transaction.

        Returns:
            False if the connection itself is gone and must not be reused
        """
        try:
            conn.rollback()
            return True
        except psycopg2.Error as e:
            logger.warning("Rollback failed, discarding connection: %s", e)
            return False

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        """Cursor for a single statement batch, committed on success."""
        conn = self._get_connection()
        broken = False
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except psycopg2.Error as e:
            broken = not self._rollback(conn)
            raise BackendUnavailable(f"Database error: {e}") from e
        finally:
            self._release_connection(conn, broken)

    @contextmanager
    def _transaction_cursor(self) -> Iterator[Any]:
        """
        Cursor for a read-modify-write transaction.

        Database errors become BackendUnavailable; any other exception
        raised by the caller (e.g. a detected conflict) rolls back and
        propagates unchanged.
        """
        conn = self._get_connection()
        broken = False
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except psycopg2.Error as e:
            broken = not self._rollback(conn)
            logger.error("Transaction rolled back: %s", e)
            raise BackendUnavailable(f"Transaction failed: {e}") from e
        except Exception:
            broken = not self._rollback(conn)
            raise
        finally:
            self._release_connection(conn, broken)

    def close(self) -> None:
        """Close all connections in the pool."""
        if self._pool:
            self._pool.closeall()
            self._pool = None


# =============================================================================
# User directory
# =============================================================================

def _row_to_profile(row) -> UserProfile:
    return UserProfile(
        user_id=row[0],
        username=row[1],
        languages=row[2],
        region=row[3],
        hobbies=row[4],
        bio=row[5],
        matched_with=row[6],
    )


class _PostgresDirectoryTransaction(DirectoryTransaction):

    def __init__(self, cur) -> None:
        self._cur = cur

    def get_profiles(self, *user_ids: str) -> Dict[str, UserProfile]:
        # Lock in id order so concurrent pairs cannot deadlock
        self._cur.execute(f"""
            SELECT {USER_COLUMNS}
            FROM users
            WHERE user_id = ANY(%s)
            ORDER BY user_id
            FOR UPDATE
        """, (list(user_ids),))
        return {row[0]: _row_to_profile(row) for row in self._cur.fetchall()}

    def add_match(self, user_id: str, partner_id: str) -> None:
        self._cur.execute("""
            UPDATE users
            SET matched_with = array_append(COALESCE(matched_with, '{}'), %s)
            WHERE user_id = %s
              AND NOT (%s = ANY(COALESCE(matched_with, '{}')))
        """, (partner_id, user_id, partner_id))


class PostgresUserDirectory(_PooledStore, UserDirectory):
    """
    PostgreSQL user directory.
    Why: profiles are shared by every worker process.
    """

    def init_schema(self) -> None:
        """Create the users table if it doesn't exist."""
        with self._cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    user_id TEXT PRIMARY KEY,
                    username TEXT NOT NULL DEFAULT 'Anonymous',
                    languages TEXT[] NOT NULL DEFAULT '{}',
                    region TEXT NOT NULL DEFAULT '',
                    hobbies TEXT[] NOT NULL DEFAULT '{}',
                    bio TEXT NOT NULL DEFAULT '',
                    matched_with TEXT[] NOT NULL DEFAULT '{}'
                );

                CREATE INDEX IF NOT EXISTS idx_users_region
                ON users(region);

                CREATE INDEX IF NOT EXISTS idx_users_languages
                ON users USING GIN (languages);
            """)

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE user_id = %s",
                (user_id,)
            )
            row = cur.fetchone()
        return _row_to_profile(row) if row else None

    def find_by_language_and_region(self, language: str, region: str) -> List[UserProfile]:
        with self._cursor() as cur:
            cur.execute(f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE %s = ANY(languages) AND region = %s
            """, (language, region))
            rows = cur.fetchall()
        return [_row_to_profile(row) for row in rows]

    def save_profile(self, profile: UserProfile) -> str:
        """
        Save or update a user profile.

        Args:
            profile: UserProfile to save

        Returns:
            user_id of saved profile
        """
        with self._cursor() as cur:
            cur.execute(f"""
                INSERT INTO users ({USER_COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (user_id) DO UPDATE SET
                    username = EXCLUDED.username,
                    languages = EXCLUDED.languages,
                    region = EXCLUDED.region,
                    hobbies = EXCLUDED.hobbies,
                    bio = EXCLUDED.bio,
                    matched_with = EXCLUDED.matched_with
            """, (
                profile.user_id,
                profile.username,
                profile.languages,
                profile.region,
                profile.hobbies,
                profile.bio,
                profile.matched_with,
            ))
        return profile.user_id

    @contextmanager
    def transaction(self) -> Iterator[DirectoryTransaction]:
        with self._transaction_cursor() as cur:
            yield _PostgresDirectoryTransaction(cur)


# =============================================================================
# Penpal store
# =============================================================================

def _row_to_request(row) -> PenpalRequest:
    users = row[1]
    if isinstance(users, str):
        users = json.loads(users)
    return PenpalRequest(
        id=row[0],
        users=[Participant(**u) for u in users],
        user_ids=row[2],
        requested_by=row[3],
        requested_to=row[4],
        status=RequestStatus(row[5]),
        created_at=row[6],
        updated_at=row[7],
        accepted_by=row[8],
        declined_by=row[9],
    )


class _PostgresPenpalTransaction(PenpalTransaction):

    def __init__(self, cur) -> None:
        self._cur = cur

    def get_request(self, pair_id: str) -> Optional[PenpalRequest]:
        # Row locks cannot cover a record that does not exist yet, so the
        # pair id itself is locked for the rest of the transaction.
        self._cur.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (pair_id,))
        self._cur.execute(
            f"SELECT {PENPAL_COLUMNS} FROM penpals WHERE id = %s FOR UPDATE",
            (pair_id,)
        )
        row = self._cur.fetchone()
        return _row_to_request(row) if row else None

    def save_request(self, request: PenpalRequest) -> None:
        self._cur.execute(f"""
            INSERT INTO penpals ({PENPAL_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
                users = EXCLUDED.users,
                user_ids = EXCLUDED.user_ids,
                requested_by = EXCLUDED.requested_by,
                requested_to = EXCLUDED.requested_to,
                status = EXCLUDED.status,
                created_at = EXCLUDED.created_at,
                updated_at = EXCLUDED.updated_at,
                accepted_by = EXCLUDED.accepted_by,
                declined_by = EXCLUDED.declined_by
        """, (
            request.id,
            json.dumps([p.model_dump() for p in request.users]),
            request.user_ids,
            request.requested_by,
            request.requested_to,
            request.status.value,
            request.created_at,
            request.updated_at,
            request.accepted_by,
            request.declined_by,
        ))


class PostgresPenpalStore(_PooledStore, PenpalStore):
    """PostgreSQL penpal ledger store."""

    def init_schema(self) -> None:
        """Create the penpals table if it doesn't exist."""
        with self._cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS penpals (
                    id TEXT PRIMARY KEY,
                    users JSONB NOT NULL,
                    user_ids TEXT[] NOT NULL,
                    requested_by TEXT NOT NULL,
                    requested_to TEXT NOT NULL,
                    status TEXT NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL,
                    accepted_by TEXT,
                    declined_by TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_penpals_listing
                ON penpals(status, created_at DESC, id DESC);
            """)

    def get_request(self, pair_id: str) -> Optional[PenpalRequest]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {PENPAL_COLUMNS} FROM penpals WHERE id = %s",
                (pair_id,)
            )
            row = cur.fetchone()
        return _row_to_request(row) if row else None

    def query_requests(
        self,
        *,
        status: RequestStatus,
        limit: int,
        participant: Optional[str] = None,
        requested_to: Optional[str] = None,
        requested_by: Optional[str] = None,
        start_after: Optional[str] = None,
    ) -> List[PenpalRequest]:
        clauses = ["status = %s"]
        params: List[Any] = [status.value]

        if participant is not None:
            clauses.append("%s = ANY(user_ids)")
            params.append(participant)
        if requested_to is not None:
            clauses.append("requested_to = %s")
            params.append(requested_to)
        if requested_by is not None:
            clauses.append("requested_by = %s")
            params.append(requested_by)

        with self._cursor() as cur:
            if start_after:
                cur.execute(
                    "SELECT created_at, id FROM penpals WHERE id = %s",
                    (start_after,)
                )
                cursor_row = cur.fetchone()
                if cursor_row:
                    clauses.append("(created_at, id) < (%s, %s)")
                    params.extend([cursor_row[0], cursor_row[1]])

            params.append(limit)
            cur.execute(f"""
                SELECT {PENPAL_COLUMNS}
                FROM penpals
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at DESC, id DESC
                LIMIT %s
            """, tuple(params))
            rows = cur.fetchall()

        return [_row_to_request(row) for row in rows]

    @contextmanager
    def transaction(self) -> Iterator[PenpalTransaction]:
        with self._transaction_cursor() as cur:
            yield _PostgresPenpalTransaction(cur)
