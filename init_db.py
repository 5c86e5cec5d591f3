import asyncio
import sys
import os

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy import text
from carenotify.core.database import engine, Base, create_all_tables
# Registers every table on Base.metadata
from carenotify.models import user, care, notification, medication_schedule

async def init_db():
    print("Starting CareNotify database initialization...", flush=True)

    try:
        print(f"Creating tables: {', '.join(sorted(Base.metadata.tables))}", flush=True)
        await create_all_tables()

        print("SUCCESS: All tables created successfully!", flush=True)

        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT version();"))
            print(f"Database Version: {result.scalar()}", flush=True)

    except Exception as e:
        print(f"ERROR: Database initialization failed: {e}", flush=True)
        if "ssl" in str(e).lower():
            print("Hint: managed Postgres hosts usually need sslmode=require in DATABASE_URL.", flush=True)
    finally:
        await engine.dispose()

if __name__ == "__main__":
    asyncio.run(init_db())
