# INSERT ... ON CONFLICT 헬퍼 (PostgreSQL / SQLite 공통)
from __future__ import annotations
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def dialect_insert(db: Session, model):
    """세션에 바인딩된 DB 방언의 insert() 를 돌려준다. on_conflict_do_update 지원 방언만 허용."""
    name = db.get_bind().dialect.name
    try:
        return _INSERTS[name](model)
    except KeyError:
        raise NotImplementedError(f"upsert is not supported on dialect '{name}'") from None
