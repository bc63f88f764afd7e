"""
PostgreSQL repository adapters - Implement AccountRepository and OtpRepository.

This module provides the PostgreSQL implementations of the domain's
repository ports using psycopg3 with raw SQL.

Concurrency Design:
-------------------
No application-level locks are used. Each operation relies on the
database for atomicity:

1. **Unique constraints** on accounts.email and accounts.name: two
   concurrent signups for the same slot cannot both insert; the loser's
   UniqueViolation is reported as a failed insert.

2. **Single-row upsert** for code issue: otp_codes is keyed by email, so
   INSERT ... ON CONFLICT DO UPDATE leaves exactly one code per email no
   matter how many issuers race.

3. **SELECT FOR UPDATE** for code consumption: the row is locked, compared
   with secrets.compare_digest(), and deleted in one transaction, so a code
   is handed out to at most one caller.

4. **Explicit cascade**: deleting an account removes its members and events
   in the same transaction before the account row itself.
"""

import logging
import secrets
from datetime import datetime
from pathlib import Path
from uuid import UUID

from psycopg import Cursor, errors
from psycopg_pool import ConnectionPool

from clubauth.domain.ports import Account

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = "id, name, description, email, password_hash, verified, created_at"


def _row_to_account(row: tuple) -> Account:
    return Account(
        id=row[0],
        name=row[1],
        description=row[2],
        email=row[3],
        password_hash=row[4],
        verified=row[5],
        created_at=row[6],
    )


def _delete_owned(cursor: Cursor, account_id: UUID) -> int:
    """Delete an account's child rows, then the account. Returns accounts removed."""
    cursor.execute("DELETE FROM members WHERE account_id = %s", (account_id,))
    cursor.execute("DELETE FROM events WHERE account_id = %s", (account_id,))
    cursor.execute("DELETE FROM accounts WHERE id = %s", (account_id,))
    return cursor.rowcount


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def get(self, account_id: UUID) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (account_id,))
            row = cursor.fetchone()
        return _row_to_account(row) if row else None

    def get_by_email(self, email: str) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _row_to_account(row) if row else None

    def find_conflicts(self, email: str, name: str) -> list[Account]:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s OR name = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, name))
            rows = cursor.fetchall()
        return [_row_to_account(row) for row in rows]

    def insert(self, account: Account) -> bool:
        """
        Insert a new account row.

        The UNIQUE constraints on email and name are the backstop against
        concurrent signups; a violation is reported as False, not raised.
        """
        sql = """
            INSERT INTO accounts (id, name, description, email, password_hash, verified, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            try:
                cursor.execute(
                    sql,
                    (
                        account.id,
                        account.name,
                        account.description,
                        account.email,
                        account.password_hash,
                        account.verified,
                        account.created_at,
                    ),
                )
            except errors.UniqueViolation:
                conn.rollback()
                return False
            conn.commit()
            return True

    def delete_unverified(self, account_id: UUID) -> bool:
        """
        Delete an account only while it is still unverified.

        The row is locked first so a concurrent verification cannot slip in
        between the state check and the delete.
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                "SELECT verified FROM accounts WHERE id = %s FOR UPDATE", (account_id,)
            )
            row = cursor.fetchone()
            if row is None or row[0]:
                conn.commit()
                return False
            deleted = _delete_owned(cursor, account_id)
            conn.commit()
            return deleted == 1

    def set_verified(self, account_id: UUID) -> None:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("UPDATE accounts SET verified = TRUE WHERE id = %s", (account_id,))
            conn.commit()

    def set_password_hash(self, account_id: UUID, password_hash: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                "UPDATE accounts SET password_hash = %s WHERE id = %s",
                (password_hash, account_id),
            )
            conn.commit()
            return cursor.rowcount == 1

    def delete(self, account_id: UUID) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            deleted = _delete_owned(cursor, account_id)
            conn.commit()
            return deleted == 1


class PostgresOtpRepository:
    """
    Implements OtpRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def replace(self, email: str, code: str, issued_at: datetime) -> None:
        """
        Store a new code for email, overwriting any earlier one.

        Uses INSERT ... ON CONFLICT DO UPDATE for an atomic single-row swap.
        """
        sql = """
            INSERT INTO otp_codes (email, code, issued_at)
            VALUES (%s, %s, %s)
            ON CONFLICT (email) DO UPDATE
            SET code = EXCLUDED.code,
                issued_at = EXCLUDED.issued_at
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, code, issued_at))
            conn.commit()

    def take(self, email: str, code: str) -> datetime | None:
        """
        Remove and return the issue time of a matching code.

        Uses SELECT FOR UPDATE so concurrent consumers of the same code
        serialize; the second one finds the row already gone.
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                "SELECT code, issued_at FROM otp_codes WHERE email = %s FOR UPDATE",
                (email,),
            )
            row = cursor.fetchone()
            if row is None or not secrets.compare_digest(row[0].encode(), code.encode()):
                conn.commit()
                return None

            cursor.execute("DELETE FROM otp_codes WHERE email = %s", (email,))
            conn.commit()
            return row[1]

    def delete_all(self, email: str) -> int:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM otp_codes WHERE email = %s", (email,))
            conn.commit()
            return cursor.rowcount


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: clubauth/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
