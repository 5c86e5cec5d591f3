from logging.config import fileConfig

from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context
import os
import sys

sys.path.append(os.getcwd())

from carenotify.core.config import settings
from carenotify.core.database import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Migrations run on the sync psycopg driver
db_url = settings.DATABASE_URL
if db_url.startswith("postgresql+asyncpg://"):
    db_url = db_url.replace("postgresql+asyncpg://", "postgresql+psycopg://", 1)

# ConfigParser interpolation
config.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))

from carenotify.models.user import User
from carenotify.models.care import Patient, Doctor, Appointment, Prescription, PrescriptionItem
from carenotify.models.notification import Notification
from carenotify.models.medication_schedule import MedicationSchedule

target_metadata = Base.metadata

def run_migrations_offline() -> None:
    """Emit SQL for the URL alone, without a live connection."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection, target_metadata=target_metadata
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
