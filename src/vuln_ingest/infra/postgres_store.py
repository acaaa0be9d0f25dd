from __future__ import annotations

import logging
from typing import Any, Sequence

import psycopg
from psycopg import conninfo as pg_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from ..core.domain.errors import StorageError
from ..core.domain.models import VulnerabilityRecord
from ..core.ports.storage_port import VulnerabilityStorePort

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS vulnerabilities (
    id VARCHAR(255) NOT NULL,
    severity VARCHAR(50) NOT NULL,
    cvss DECIMAL(4,1) NOT NULL,
    status VARCHAR(50) NOT NULL,
    package_name VARCHAR(255) NOT NULL,
    current_version VARCHAR(50) NOT NULL,
    fixed_version VARCHAR(50),
    description TEXT NOT NULL,
    published_date TIMESTAMPTZ,
    link TEXT,
    risk_factors TEXT[],
    source_file VARCHAR(255) NOT NULL,
    scan_time TIMESTAMPTZ NOT NULL,
    PRIMARY KEY (id, source_file)
)
"""

UPSERT_SQL = """
INSERT INTO vulnerabilities (
    id, severity, cvss, status, package_name, current_version,
    fixed_version, description, published_date, link, risk_factors,
    source_file, scan_time
) VALUES (
    %(id)s, %(severity)s, %(cvss)s, %(status)s, %(package_name)s, %(current_version)s,
    %(fixed_version)s, %(description)s, %(published_date)s, %(link)s, %(risk_factors)s,
    %(source_file)s, %(scan_time)s
) ON CONFLICT (id, source_file) DO UPDATE SET
    severity = EXCLUDED.severity,
    cvss = EXCLUDED.cvss,
    status = EXCLUDED.status,
    package_name = EXCLUDED.package_name,
    current_version = EXCLUDED.current_version,
    fixed_version = EXCLUDED.fixed_version,
    description = EXCLUDED.description,
    published_date = EXCLUDED.published_date,
    link = EXCLUDED.link,
    risk_factors = EXCLUDED.risk_factors,
    scan_time = EXCLUDED.scan_time
"""

SELECT_BY_SEVERITY_SQL = """
SELECT id, severity, cvss, status, package_name, current_version,
    fixed_version, description, published_date, link, risk_factors,
    source_file, scan_time
FROM vulnerabilities
WHERE severity = %(severity)s
ORDER BY scan_time DESC
"""


def build_conninfo(host: str, port: int, user: str, password: str, dbname: str) -> str:
    return pg_conninfo.make_conninfo(
        host=host, port=port, user=user, password=password, dbname=dbname, sslmode="disable"
    )


def _to_params(record: VulnerabilityRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "severity": record.severity,
        "cvss": record.cvss,
        "status": record.status,
        "package_name": record.package_name,
        "current_version": record.current_version,
        "fixed_version": record.fixed_version,
        "description": record.description,
        "published_date": record.published_date,
        "link": record.link,
        "risk_factors": list(record.risk_factors),
        "source_file": record.source_file,
        "scan_time": record.scan_time,
    }


def _from_row(row: dict[str, Any]) -> VulnerabilityRecord:
    return VulnerabilityRecord(
        id=row["id"],
        severity=row["severity"],
        cvss=float(row["cvss"]),
        status=row["status"],
        package_name=row["package_name"],
        current_version=row["current_version"],
        fixed_version=row["fixed_version"],
        description=row["description"],
        published_date=row["published_date"],
        link=row["link"],
        risk_factors=tuple(row["risk_factors"] or ()),
        source_file=row["source_file"],
        scan_time=row["scan_time"],
    )


class PostgresVulnerabilityStore(VulnerabilityStorePort):
    """PostgreSQL-backed store; one pooled connection and one transaction per upsert batch."""

    def __init__(self, pool: ConnectionPool, *, init_schema: bool = True) -> None:
        self._pool = pool
        if init_schema:
            self.init_schema()

    @classmethod
    def connect(
        cls,
        conninfo: str,
        *,
        pool_size: int = 4,
        connect_timeout: float = 30.0,
        init_schema: bool = True,
    ) -> PostgresVulnerabilityStore:
        logger.info("Opening PostgreSQL pool (max_size=%d)", pool_size)
        pool = ConnectionPool(conninfo, min_size=1, max_size=pool_size, open=False)
        try:
            pool.open(wait=True, timeout=connect_timeout)
        except psycopg.Error as e:
            pool.close()
            raise StorageError(f"failed to connect to database: {e}") from e
        return cls(pool, init_schema=init_schema)

    def init_schema(self) -> None:
        try:
            with self._pool.connection() as conn:
                conn.execute(SCHEMA_SQL)
        except psycopg.Error as e:
            raise StorageError(f"failed to create schema: {e}") from e

    def upsert(self, records: Sequence[VulnerabilityRecord]) -> None:
        if not records:
            return
        params = [_to_params(r) for r in records]
        try:
            with self._pool.connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.executemany(UPSERT_SQL, params)
        except psycopg.Error as e:
            raise StorageError(f"failed to save {len(records)} vulnerabilities: {e}") from e
        logger.debug("Upserted %d vulnerabilities", len(records))

    def query_by_severity(self, severity: str) -> Sequence[VulnerabilityRecord]:
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(SELECT_BY_SEVERITY_SQL, {"severity": severity})
                    rows = cur.fetchall()
        except psycopg.Error as e:
            raise StorageError(f"failed to query vulnerabilities: {e}") from e
        return [_from_row(row) for row in rows]

    def close(self) -> None:
        self._pool.close()

    def __enter__(self) -> PostgresVulnerabilityStore:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
