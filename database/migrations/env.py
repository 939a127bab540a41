import os, sys
from logging.config import fileConfig
from alembic import context
from sqlalchemy import engine_from_config, pool

# 프로젝트 루트 (database/migrations/ 기준 두 단계 상위)
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from database.base import Base, DATABASE_URL
import models  # metrics + chat 모델 등록

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# 앱과 같은 DATABASE_URL 사용
config.set_main_option("sqlalchemy.url", DATABASE_URL)

target_metadata = Base.metadata

# chatbot / conversation / message 는 챗 플랫폼이 관리 → autogenerate 대상 제외
EXTERNAL_TABLES = {"chatbot", "conversation", "message"}


def include_object(obj, name, type_, reflected, compare_to):
    if type_ == "table" and name in EXTERNAL_TABLES:
        return False
    return True


def run_migrations_offline():
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
