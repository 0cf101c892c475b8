"""
Versioned schema migrator.

Migrations are v<NNN>_<name>.sql files in this directory, applied in
version order and recorded with a checksum in schema_migrations. A file
whose checksum no longer matches its applied version stops the run.
"""

import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from stockledger.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
FILENAME_PATTERN = re.compile(r"v(\d+)_(.+)\.sql")

REQUIRED_TABLES = (
    "schema_migrations",
    "units_of_measure",
    "categories",
    "warehouses",
    "products",
    "stock_movements",
)

APPEND_ONLY_TRIGGER = "trg_movements_no_update"

NEGATIVE_BALANCES = """
    SELECT product_id, warehouse_id,
           SUM(CASE direction WHEN 'IN' THEN quantity ELSE -quantity END) AS balance
    FROM stock_movements
    GROUP BY product_id, warehouse_id
    HAVING balance < 0
"""


@dataclass
class MigrationInfo:
    """A migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = FILENAME_PATTERN.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        return cls(version=match[1], name=match[2], path=path, checksum=digest[:16])

    def script(self) -> str:
        return self.path.read_text(encoding="utf-8")


@dataclass
class MigrationResult:
    """Outcome of applying one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def _resolve_path(db_path: Path | None) -> Path:
    return db_path if db_path is not None else get_settings().storage.db_path


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to their checksums; empty before v001 runs."""
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
    except aiosqlite.OperationalError:
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied) if applied else None


def discover_migrations() -> list[MigrationInfo]:
    """Migration files in version order; malformed names are skipped."""
    found = []
    for path in sorted(MIGRATIONS_DIR.glob("v*.sql")):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return found


async def apply_migration(
    conn: aiosqlite.Connection,
    migration: MigrationInfo,
) -> MigrationResult:
    """Run one migration script and record it in schema_migrations."""
    logger.info("applying_migration", version=migration.version, name=migration.name)
    started = time.perf_counter()
    result = MigrationResult(migration.version, migration.name, True, 0)

    try:
        await conn.executescript(migration.script())
        await conn.execute(
            "INSERT OR REPLACE INTO schema_migrations "
            "(version, name, checksum, execution_time_ms) VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, _elapsed_ms(started)),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        result.success = False
        result.error = str(e)

    result.execution_time_ms = _elapsed_ms(started)
    if result.success:
        logger.info(
            "migration_applied",
            version=migration.version,
            execution_time_ms=result.execution_time_ms,
        )
    else:
        logger.error("migration_failed", version=migration.version, error=result.error)
    return result


def create_backup(db_path: Path) -> Path:
    """Copy the database file aside and return the copy's path."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.info("database_restored_from_backup", backup_path=str(backup_path))


async def _pending(conn: aiosqlite.Connection) -> list[MigrationInfo] | None:
    """Migrations still to run, or None when an applied file was edited."""
    applied = await get_applied_migrations(conn)
    pending = []
    for migration in discover_migrations():
        recorded = applied.get(migration.version)
        if recorded is None:
            pending.append(migration)
        elif recorded != migration.checksum:
            logger.error(
                "migration_checksum_changed",
                version=migration.version,
                recorded=recorded,
                on_disk=migration.checksum,
            )
            return None
    return pending


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the catalog and ledger schema up to date.

    Args:
        db_path: Database file (default from settings)
        create_backup_before: Copy an existing database aside first; the
            copy is restored if migrating raises and removed after a clean run

    Returns:
        One result per attempted migration. Empty when nothing was pending
        or an applied migration file has been edited.
    """
    db_path = _resolve_path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None
    results: list[MigrationResult] = []

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")

            for migration in await _pending(conn) or []:
                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    break
                cursor = await conn.execute("PRAGMA foreign_key_check")
                if await cursor.fetchall():
                    logger.error("foreign_key_violations", version=migration.version)
                    break
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path is not None and backup_path.exists():
            restore_backup(db_path, backup_path)
        raise

    if backup_path is not None and all(r.success for r in results):
        backup_path.unlink()
        logger.info("backup_cleaned_up")
    return results


run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict[str, Any]:
    """Current version plus applied and pending migration versions."""
    db_path = _resolve_path(db_path)
    discovered = [m.version for m in discover_migrations()]

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": discovered,
            "total_migrations": len(discovered),
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)
    return {
        "exists": True,
        "current_version": max(applied) if applied else None,
        "applied_migrations": list(applied),
        "pending_migrations": [v for v in discovered if v not in applied],
        "total_migrations": len(discovered),
    }


def _check(name: str, passed: bool, **extra: Any) -> dict[str, Any]:
    return {"check": name, "status": "PASS" if passed else "FAIL", **extra}


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict[str, Any]]:
    """
    SQLite integrity checks plus the ledger's own guarantees.

    The ledger checks (append-only trigger present, no negative balance)
    only run when the stock_movements table exists.
    """
    db_path = _resolve_path(db_path)
    checks = []

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = await cursor.fetchall()
        checks.append(_check("foreign_keys", not fk_violations, violations=len(fk_violations)))

        cursor = await conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()
        checks.append(_check("integrity", integrity == "ok", result=integrity))

        cursor = await conn.execute("SELECT type, name FROM sqlite_master")
        objects = {(kind, name) for kind, name in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if ("table", t) not in objects]
        checks.append(_check("required_tables", not missing, missing=missing))

        if ("table", "stock_movements") in objects:
            checks.append(
                _check("append_only_ledger", ("trigger", APPEND_ONLY_TRIGGER) in objects)
            )
            cursor = await conn.execute(NEGATIVE_BALANCES)
            negative = [
                {"product_id": p, "warehouse_id": w, "balance": b}
                for p, w, b in await cursor.fetchall()
            ]
            checks.append(_check("non_negative_balances", not negative, negative=negative))

    return checks
