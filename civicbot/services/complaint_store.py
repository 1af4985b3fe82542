import logging
from contextlib import contextmanager
from typing import Iterator, Protocol

import psycopg2
from psycopg2.errors import UniqueViolation
from psycopg2.extras import Json, RealDictCursor

from civicbot.config import Settings
from civicbot.errors import DuplicateActiveTicket, TransientIOFailure
from civicbot.records import Citizen, InfrastructureRecord, ThreadMessage, Ticket

logger = logging.getLogger(__name__)

SITE_COLUMNS = (
    "site_id, name, department, kind, address, latitude, longitude, draft, created_by, photo_url, created_at"
)
TICKET_COLUMNS = "id, ticket_code, site_id, citizen, active, created_at"
ACTIVE_TICKET_INDEX = "ticket_one_active_per_site"
THREAD_COLUMNS = "ticket_code, action, sender, recipient, modality, payload, source_message_id, created_at"


class ComplaintStore(Protocol):
    def upsert_citizen(self, address: str, name: str) -> Citizen: ...

    def find_site(self, site_id: str) -> InfrastructureRecord | None: ...

    def create_site(self, record: InfrastructureRecord) -> InfrastructureRecord: ...

    def find_draft_sites(self, citizen: str) -> list[InfrastructureRecord]: ...

    def finalize_site(
        self, site_id: str, address: str, latitude: float, longitude: float
    ) -> InfrastructureRecord | None: ...

    def find_active_tickets(self, citizen: str, site_id: str | None = None) -> list[Ticket]: ...

    def find_ticket_by_code(self, ticket_code: str) -> Ticket | None: ...

    def create_ticket(self, site_id: str, citizen: str, ticket_code: str) -> Ticket: ...

    def append_thread_message(self, message: ThreadMessage) -> ThreadMessage: ...

    def list_thread_messages(self, ticket_code: str) -> list[ThreadMessage]: ...


def _site_from_row(row: dict) -> InfrastructureRecord:
    return InfrastructureRecord(
        site_id=row["site_id"],
        name=row["name"],
        department=row["department"],
        kind=row["kind"],
        address=row["address"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        draft=row["draft"],
        created_by=row["created_by"],
        photo_url=row["photo_url"],
        created_at=row["created_at"],
    )


def _ticket_from_row(row: dict) -> Ticket:
    return Ticket(
        id=row["id"],
        ticket_code=row["ticket_code"],
        site_id=row["site_id"],
        citizen=row["citizen"],
        active=row["active"],
        created_at=row["created_at"],
    )


def _thread_from_row(row: dict) -> ThreadMessage:
    return ThreadMessage(
        ticket_code=row["ticket_code"],
        action=row["action"],
        sender=row["sender"],
        recipient=row["recipient"],
        modality=row["modality"],
        payload=row["payload"] or {},
        source_message_id=row["source_message_id"],
        created_at=row["created_at"],
    )


def ticket_conflict(constraint_name: str | None, citizen: str, site_id: str, ticket_code: str) -> Exception:
    if constraint_name == ACTIVE_TICKET_INDEX:
        return DuplicateActiveTicket(citizen, site_id)
    return TransientIOFailure(f"Ticket code collision: {ticket_code}")


class PostgresComplaintStore:
    def __init__(self, settings: Settings) -> None:
        self.host = settings.postgres_host
        self.port = settings.postgres_port
        self.database = settings.postgres_db
        self.user = settings.postgres_user
        self.password = settings.postgres_password

    @contextmanager
    def _connect(self, on_unique_violation=None) -> Iterator[psycopg2.extensions.connection]:
        try:
            connection = psycopg2.connect(
                host=self.host,
                port=self.port,
                dbname=self.database,
                user=self.user,
                password=self.password,
            )
        except psycopg2.OperationalError as exc:
            raise TransientIOFailure(f"Database unavailable: {exc}") from exc
        try:
            yield connection
        except UniqueViolation as exc:
            connection.rollback()
            if on_unique_violation is not None:
                raise on_unique_violation(exc) from exc
            raise TransientIOFailure(f"Duplicate key: {exc}") from exc
        except psycopg2.Error as exc:
            connection.rollback()
            raise TransientIOFailure(f"Database error: {exc}") from exc
        finally:
            connection.close()

    def init_schema(self) -> None:
        statements = [
            """
            CREATE TABLE IF NOT EXISTS citizen (
                address TEXT PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS infrastructure (
                site_id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                department TEXT NOT NULL DEFAULT '',
                kind TEXT NOT NULL DEFAULT 'Query',
                address TEXT NOT NULL DEFAULT '',
                latitude DOUBLE PRECISION,
                longitude DOUBLE PRECISION,
                draft BOOLEAN NOT NULL DEFAULT TRUE,
                created_by TEXT NOT NULL,
                photo_url TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                CHECK (draft OR (latitude IS NOT NULL AND longitude IS NOT NULL))
            );
            """,
            """
            CREATE INDEX IF NOT EXISTS infrastructure_drafts_idx
            ON infrastructure (created_by, created_at DESC)
            WHERE draft;
            """,
            """
            CREATE TABLE IF NOT EXISTS ticket (
                id SERIAL PRIMARY KEY,
                ticket_code TEXT NOT NULL UNIQUE,
                site_id TEXT NOT NULL REFERENCES infrastructure (site_id),
                citizen TEXT NOT NULL,
                active BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
            """,
            f"""
            CREATE UNIQUE INDEX IF NOT EXISTS {ACTIVE_TICKET_INDEX}
            ON ticket (citizen, site_id)
            WHERE active;
            """,
            """
            CREATE TABLE IF NOT EXISTS ticket_thread (
                id SERIAL PRIMARY KEY,
                ticket_code TEXT NOT NULL REFERENCES ticket (ticket_code),
                action TEXT NOT NULL,
                sender TEXT NOT NULL,
                recipient TEXT NOT NULL DEFAULT '',
                modality TEXT NOT NULL,
                payload JSONB NOT NULL DEFAULT '{}'::jsonb,
                source_message_id TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
            """,
        ]

        with self._connect() as connection:
            with connection.cursor() as cursor:
                for statement in statements:
                    cursor.execute(statement)
                connection.commit()

    def upsert_citizen(self, address: str, name: str) -> Citizen:
        upsert_sql = """
        INSERT INTO citizen (address, name)
        VALUES (%(address)s, %(name)s)
        ON CONFLICT (address) DO UPDATE
        SET name = CASE WHEN EXCLUDED.name <> '' THEN EXCLUDED.name ELSE citizen.name END
        RETURNING address, name, created_at;
        """

        with self._connect() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(upsert_sql, {"address": address, "name": name or ""})
                row = cursor.fetchone()
                connection.commit()
                return Citizen(address=row["address"], name=row["name"], created_at=row["created_at"])

    def find_site(self, site_id: str) -> InfrastructureRecord | None:
        query = f"""
        SELECT {SITE_COLUMNS}
        FROM infrastructure
        WHERE site_id = %s;
        """

        with self._connect() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, (site_id,))
                row = cursor.fetchone()
                return _site_from_row(row) if row else None

    def create_site(self, record: InfrastructureRecord) -> InfrastructureRecord:
        insert_sql = f"""
        INSERT INTO infrastructure (
            site_id, name, department, kind, address, latitude, longitude, draft, created_by, photo_url
        )
        VALUES (
            %(site_id)s, %(name)s, %(department)s, %(kind)s, %(address)s,
            %(latitude)s, %(longitude)s, %(draft)s, %(created_by)s, %(photo_url)s
        )
        RETURNING {SITE_COLUMNS};
        """
        payload = {
            "site_id": record.site_id,
            "name": record.name,
            "department": record.department,
            "kind": record.kind,
            "address": record.address,
            "latitude": record.latitude,
            "longitude": record.longitude,
            "draft": record.draft,
            "created_by": record.created_by,
            "photo_url": record.photo_url,
        }

        def collision(exc: UniqueViolation) -> Exception:
            return TransientIOFailure(f"Site id collision: {record.site_id}")

        with self._connect(on_unique_violation=collision) as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(insert_sql, payload)
                row = cursor.fetchone()
                connection.commit()

        logger.info("Created %s site record %s", "draft" if record.draft else "located", record.site_id)
        return _site_from_row(row)

    def find_draft_sites(self, citizen: str) -> list[InfrastructureRecord]:
        query = f"""
        SELECT {SITE_COLUMNS}
        FROM infrastructure
        WHERE created_by = %s AND draft
        ORDER BY created_at DESC;
        """

        with self._connect() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, (citizen,))
                return [_site_from_row(row) for row in cursor.fetchall()]

    def finalize_site(
        self, site_id: str, address: str, latitude: float, longitude: float
    ) -> InfrastructureRecord | None:
        update_sql = f"""
        UPDATE infrastructure
        SET address = %(address)s, latitude = %(latitude)s, longitude = %(longitude)s, draft = FALSE
        WHERE site_id = %(site_id)s AND draft
        RETURNING {SITE_COLUMNS};
        """

        with self._connect() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    update_sql,
                    {"site_id": site_id, "address": address, "latitude": latitude, "longitude": longitude},
                )
                row = cursor.fetchone()
                connection.commit()
                return _site_from_row(row) if row else None

    def find_active_tickets(self, citizen: str, site_id: str | None = None) -> list[Ticket]:
        query = f"SELECT {TICKET_COLUMNS} FROM ticket WHERE citizen = %(citizen)s AND active"
        if site_id is not None:
            query += " AND site_id = %(site_id)s"
        query += " ORDER BY created_at DESC, id DESC;"

        with self._connect() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, {"citizen": citizen, "site_id": site_id})
                return [_ticket_from_row(row) for row in cursor.fetchall()]

    def find_ticket_by_code(self, ticket_code: str) -> Ticket | None:
        query = f"""
        SELECT {TICKET_COLUMNS}
        FROM ticket
        WHERE ticket_code = %s;
        """

        with self._connect() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, (ticket_code,))
                row = cursor.fetchone()
                return _ticket_from_row(row) if row else None

    def create_ticket(self, site_id: str, citizen: str, ticket_code: str) -> Ticket:
        insert_sql = f"""
        INSERT INTO ticket (ticket_code, site_id, citizen, active)
        VALUES (%(ticket_code)s, %(site_id)s, %(citizen)s, TRUE)
        RETURNING {TICKET_COLUMNS};
        """

        def conflict(exc: UniqueViolation) -> Exception:
            return ticket_conflict(exc.diag.constraint_name, citizen, site_id, ticket_code)

        with self._connect(on_unique_violation=conflict) as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    insert_sql,
                    {"ticket_code": ticket_code, "site_id": site_id, "citizen": citizen},
                )
                row = cursor.fetchone()
                connection.commit()

        logger.info("Created ticket %s for site %s", ticket_code, site_id)
        return _ticket_from_row(row)

    def append_thread_message(self, message: ThreadMessage) -> ThreadMessage:
        insert_sql = f"""
        INSERT INTO ticket_thread (
            ticket_code, action, sender, recipient, modality, payload, source_message_id
        )
        VALUES (
            %(ticket_code)s, %(action)s, %(sender)s, %(recipient)s, %(modality)s,
            %(payload)s, %(source_message_id)s
        )
        RETURNING {THREAD_COLUMNS};
        """

        with self._connect() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    insert_sql,
                    {
                        "ticket_code": message.ticket_code,
                        "action": message.action,
                        "sender": message.sender,
                        "recipient": message.recipient,
                        "modality": message.modality,
                        "payload": Json(message.payload),
                        "source_message_id": message.source_message_id,
                    },
                )
                row = cursor.fetchone()
                connection.commit()

        logger.info("Added %s message to ticket %s", message.modality, message.ticket_code)
        return _thread_from_row(row)

    def list_thread_messages(self, ticket_code: str) -> list[ThreadMessage]:
        query = f"""
        SELECT {THREAD_COLUMNS}
        FROM ticket_thread
        WHERE ticket_code = %s
        ORDER BY id ASC;
        """

        with self._connect() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, (ticket_code,))
                return [_thread_from_row(row) for row in cursor.fetchall()]
