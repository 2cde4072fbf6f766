"""
Versioned schema migrations for the inventory database.

Migration files live beside this module as ``v<NNN>_<name>.sql`` and are
applied in version order. Each applied file is recorded in
``schema_migrations`` together with a checksum of its text; a recorded file
whose text has since changed is never re-run.

Run as ``inventory-migrate`` to migrate, ``--status`` to list versions or
``--verify`` to check the stored ledger and price history.
"""

import argparse
import asyncio
import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from src.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")

REQUIRED_TABLES = (
    "items",
    "stock_entries",
    "item_prices",
    "item_price_history",
    "inventory_transactions",
    "transaction_lines",
    "supplier_item_prices",
    "schema_migrations",
)

PRICE_HISTORY_TRIGGERS = (
    "trg_price_history_no_update",
    "trg_price_history_no_delete",
)


@dataclass
class MigrationInfo:
    """One migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if match is None:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        return cls(version=match[1], name=match[2], path=path, checksum=digest[:16])


@dataclass
class MigrationResult:
    """Outcome of applying one migration file."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations() -> list[MigrationInfo]:
    """Migration files in ``MIGRATIONS_DIR``, oldest first."""
    found = []
    for path in sorted(MIGRATIONS_DIR.glob("v*.sql")):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("migration_file_ignored", path=str(path), error=str(e))
    return found


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Recorded versions mapped to their checksums; empty on a new database."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations ORDER BY version")
    except aiosqlite.OperationalError:
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied) if applied else None


async def _apply(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    started = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        await conn.execute(
            "INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms) "
            "VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed_ms()),
        )
        await conn.commit()
    except Exception as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, name=migration.name, error=str(e))
        return MigrationResult(migration.version, migration.name, False, elapsed_ms(), str(e))

    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=elapsed_ms(),
    )
    return MigrationResult(migration.version, migration.name, True, elapsed_ms())


def create_backup(db_path: Path) -> Path:
    """Copy the database file next to itself with a timestamped suffix."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.info("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the database up to the newest migration.

    Pending files are applied one at a time and the run stops at the first
    failure. An existing database is backed up first; the backup is removed
    once every pending file has applied, and copied back if the run raises.

    Returns:
        One result per migration attempted. Empty when nothing was pending.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)

    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None
    results: list[MigrationResult] = []

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            applied = await get_applied_migrations(conn)

            for migration in discover_migrations():
                recorded = applied.get(migration.version)
                if recorded is not None:
                    if recorded != migration.checksum:
                        logger.warning(
                            "migration_checksum_changed",
                            version=migration.version,
                            recorded=recorded,
                            on_disk=migration.checksum,
                        )
                    continue

                result = await _apply(conn, migration)
                results.append(result)
                if not result.success:
                    break

                cursor = await conn.execute("PRAGMA foreign_key_check")
                if await cursor.fetchall():
                    logger.error("migration_left_foreign_key_violations", version=migration.version)
                    break
    except Exception as e:
        logger.error("database_initialization_failed", db_path=str(db_path), error=str(e))
        if backup_path is not None and backup_path.exists():
            restore_backup(db_path, backup_path)
        raise

    if backup_path is not None and all(r.success for r in results):
        backup_path.unlink()

    logger.info("database_initialized", db_path=str(db_path), applied=len(results))
    return results


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Applied and pending versions for the database at ``db_path``."""
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations()

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [],
            "total_migrations": len(discovered),
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    return {
        "exists": True,
        "current_version": max(applied) if applied else None,
        "applied_migrations": sorted(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


async def _scalar(conn: aiosqlite.Connection, sql: str):
    cursor = await conn.execute(sql)
    return (await cursor.fetchone())[0]


async def _names(conn: aiosqlite.Connection, sql: str) -> set[str]:
    cursor = await conn.execute(sql)
    return {row[0] for row in await cursor.fetchall()}


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Check the stored schema and ledger.

    Each entry has ``check`` and ``status`` (PASS, FAIL or WARN) plus
    check-specific details. Negative balances are legal in the ledger and
    only produce WARN.
    """
    db_path = db_path or get_settings().storage.db_path

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = len(await cursor.fetchall())
        integrity = await _scalar(conn, "PRAGMA integrity_check")

        tables = await _names(conn, "SELECT name FROM sqlite_master WHERE type = 'table'")
        missing_tables = [t for t in REQUIRED_TABLES if t not in tables]

        triggers = await _names(
            conn,
            "SELECT name FROM sqlite_master "
            "WHERE type = 'trigger' AND tbl_name = 'item_price_history'",
        )
        missing_triggers = sorted(set(PRICE_HISTORY_TRIGGERS) - triggers)

        orphans = await _scalar(
            conn,
            "SELECT COUNT(*) FROM stock_entries s "
            "LEFT JOIN items i ON i.id = s.item_id WHERE i.id IS NULL",
        )

        cursor = await conn.execute(
            "SELECT item_id, warehouse_id, quantity FROM stock_entries "
            "WHERE CAST(quantity AS REAL) < 0 ORDER BY item_id, warehouse_id"
        )
        negative = [
            {"item_id": item_id, "warehouse_id": warehouse_id, "quantity": quantity}
            for item_id, warehouse_id, quantity in await cursor.fetchall()
        ]

    def status(ok: bool, failure: str = "FAIL") -> str:
        return "PASS" if ok else failure

    return [
        {"check": "foreign_keys", "status": status(not fk_violations), "violations": fk_violations},
        {"check": "integrity", "status": status(integrity == "ok"), "result": integrity},
        {"check": "required_tables", "status": status(not missing_tables), "missing": missing_tables},
        {"check": "orphan_stock_entries", "status": status(not orphans), "orphans": orphans},
        {
            "check": "price_history_append_only",
            "status": status(not missing_triggers),
            "missing": missing_triggers,
        },
        {"check": "negative_balances", "status": status(not negative, "WARN"), "entries": negative},
    ]


def _print_status(status: dict) -> None:
    print(f"Database exists: {status['exists']}")
    print(f"Current version: {status['current_version'] or 'none'}")
    print(f"Applied: {', '.join(status['applied_migrations']) or '-'}")
    print(f"Pending: {', '.join(status['pending_migrations']) or '-'}")


def _print_checks(checks: list[dict]) -> None:
    for entry in checks:
        print(f"[{entry['status']}] {entry['check']}")
        if entry["status"] == "PASS":
            continue
        for key, value in entry.items():
            if key not in ("check", "status"):
                print(f"    {key}: {value}")


def _print_results(results: list[MigrationResult]) -> None:
    if not results:
        print("Schema is up to date")
    for result in results:
        outcome = "OK" if result.success else "FAILED"
        print(f"[{outcome}] v{result.version} {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"    {result.error}")


def main() -> None:
    """Entry point for ``inventory-migrate``."""
    parser = argparse.ArgumentParser(description="Migrate or inspect the inventory database")
    parser.add_argument("--db-path", type=Path, help="database file (default from settings)")
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--status", action="store_true", help="list applied and pending versions")
    action.add_argument("--verify", action="store_true", help="check schema and ledger integrity")
    parser.add_argument("--no-backup", action="store_true", help="skip the pre-migration backup")
    args = parser.parse_args()
    configure_logging()

    if args.status:
        _print_status(asyncio.run(get_migration_status(args.db_path)))
    elif args.verify:
        _print_checks(asyncio.run(verify_schema_integrity(args.db_path)))
    else:
        _print_results(
            asyncio.run(initialize_database(args.db_path, create_backup_before=not args.no_backup))
        )


if __name__ == "__main__":
    main()
