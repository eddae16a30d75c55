"""PostgreSQL attendance repository."""
import asyncio
import psycopg2
from psycopg2 import errors, sql
from psycopg2.extras import RealDictCursor
from typing import Optional
from contextlib import contextmanager

from scanqueue import settings
from scanqueue.errors import RepositoryError
from scanqueue.logging_conf import logger
from scanqueue.repository import InsertOutcome, Member

ATTENDANCE_STATUS = "Present"


class Database:
    """Database connection and attendance operations."""

    def __init__(self, dsn: Optional[str] = None, members_table: Optional[str] = None,
                 attendance_table: Optional[str] = None):
        self.dsn = dsn or settings.DATABASE_URL
        self.members_table = sql.Identifier(members_table or settings.MEMBERS_TABLE)
        self.attendance_table = sql.Identifier(attendance_table or settings.ATTENDANCE_TABLE)
        self._conn = None

    @property
    def conn(self):
        """Get or create database connection."""
        if self._conn is None or self._conn.closed:
            try:
                self._conn = psycopg2.connect(self.dsn)
            except psycopg2.OperationalError as e:
                raise RepositoryError(f"Cannot connect to database: {e}") from e
        return self._conn

    def close(self):
        """Close database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            self._conn = None

    @contextmanager
    def cursor(self):
        """Context manager for cursor with auto-commit/rollback."""
        cur = self.conn.cursor(cursor_factory=RealDictCursor)
        try:
            yield cur
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            cur.close()

    def ensure_schema(self) -> None:
        """Create member and attendance tables with one record per member per day."""
        with self.cursor() as cur:
            cur.execute(sql.SQL("""
                CREATE TABLE IF NOT EXISTS {members} (
                    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    id_number TEXT NOT NULL UNIQUE,
                    missionary_name TEXT NOT NULL,
                    chapter TEXT,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """).format(members=self.members_table))
            cur.execute(sql.SQL("""
                CREATE TABLE IF NOT EXISTS {attendance} (
                    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    missionary_id UUID NOT NULL REFERENCES {members}(id) ON DELETE CASCADE,
                    missionary_name TEXT NOT NULL,
                    chapter TEXT,
                    attendance_status TEXT NOT NULL DEFAULT 'Present',
                    attendance_date DATE NOT NULL DEFAULT CURRENT_DATE,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    UNIQUE (missionary_id, attendance_date)
                )
            """).format(attendance=self.attendance_table, members=self.members_table))
        logger.info("Attendance schema ready")

    def get_member(self, id_number: str) -> Optional[Member]:
        """Fetch a member by ID number."""
        with self.cursor() as cur:
            cur.execute(sql.SQL("""
                SELECT id, id_number, missionary_name, chapter
                FROM {members}
                WHERE id_number = %s
                LIMIT 1
            """).format(members=self.members_table), (id_number,))
            row = cur.fetchone()
        if row is None:
            return None
        return Member(
            id=str(row["id"]),
            id_number=row["id_number"],
            name=row["missionary_name"],
            chapter=row["chapter"],
        )

    def record_attendance(self, member: Member) -> InsertOutcome:
        """Insert today's attendance; a uniqueness violation means already marked."""
        try:
            with self.cursor() as cur:
                cur.execute(sql.SQL("""
                    INSERT INTO {attendance} (missionary_id, missionary_name, chapter, attendance_status)
                    VALUES (%s, %s, %s, %s)
                """).format(attendance=self.attendance_table),
                    (member.id, member.name, member.chapter, ATTENDANCE_STATUS))
        except errors.UniqueViolation:
            return InsertOutcome.CONFLICT
        except psycopg2.OperationalError as e:
            raise RepositoryError(f"Database unavailable: {e}") from e
        except psycopg2.Error as e:
            logger.warning(f"Attendance insert rejected for {member.id_number}: {e}",
                           extra={"identifier": member.id_number})
            return InsertOutcome.ERROR
        return InsertOutcome.SUCCESS


class AsyncPostgresRepository:
    """Runs blocking ``Database`` calls off the event loop."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or Database()

    async def lookup_by_identifier(self, identifier: str) -> Optional[Member]:
        return await asyncio.to_thread(self.db.get_member, identifier)

    async def insert_attendance(self, member: Member) -> InsertOutcome:
        return await asyncio.to_thread(self.db.record_attendance, member)

    def close(self) -> None:
        self.db.close()
