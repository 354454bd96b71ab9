"""Apply pending SQL migrations: ``python -m db.migrate`` from ``backend/``."""
import asyncio
from pathlib import Path
import asyncpg
from db.database import DB_URL

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def list_migrations(directory: Path = MIGRATIONS_DIR):
    return sorted(path for path in directory.glob("*.sql"))


async def apply_migrations(db, directory: Path = MIGRATIONS_DIR):
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            name VARCHAR(255) PRIMARY KEY,
            applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """
    )
    rows = await db.fetch("SELECT name FROM schema_migrations")
    applied = {row["name"] for row in rows}
    newly_applied = []
    for path in list_migrations(directory):
        if path.name in applied:
            print(f"Bỏ qua migration đã chạy: {path.name}")
            continue
        async with db.transaction():
            await db.execute(path.read_text(encoding="utf-8"))
            await db.execute(
                "INSERT INTO schema_migrations (name) VALUES ($1)", path.name
            )
        print(f"Đã chạy migration: {path.name}")
        newly_applied.append(path.name)
    return newly_applied


async def main():
    conn = await asyncpg.connect(dsn=DB_URL)
    try:
        applied = await apply_migrations(conn)
        print(f"Hoàn tất, {len(applied)} migration mới")
    finally:
        await conn.close()


if __name__ == "__main__":
    asyncio.run(main())
