from contextlib import contextmanager
from typing import Iterable, List, Sequence
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.core.database import SessionLocal
from app.core.logging_config import get_logger

logger = get_logger("db_transaction")

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


@contextmanager
def db_transaction(db: Session = None):
    if db is None:
        db = SessionLocal()
        should_close = True
    else:
        should_close = False
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Transaction rolled back: {str(e)}", exc_info=True)
        raise
    finally:
        if should_close:
            db.close()


def insert_ignore_conflicts(
    db: Session,
    model,
    rows: Iterable[dict],
    conflict_columns: Sequence[str],
) -> int:
    """
    Bulk insert rows, silently skipping any row that collides with the unique
    constraint over ``conflict_columns``. Returns the number of rows inserted.

    SQLite and PostgreSQL use ``INSERT ... ON CONFLICT DO NOTHING``. Other
    dialects insert row by row inside savepoints and drop duplicate-key errors.
    """
    rows: List[dict] = list(rows)
    if not rows:
        return 0

    dialect = db.get_bind().dialect.name
    insert_fn = _UPSERT_DIALECTS.get(dialect)
    if insert_fn is not None:
        stmt = insert_fn(model).values(rows).on_conflict_do_nothing(
            index_elements=list(conflict_columns)
        )
        result = db.execute(stmt)
        inserted = result.rowcount if result.rowcount is not None and result.rowcount >= 0 else len(rows)
        return inserted

    inserted = 0
    for row in rows:
        try:
            with db.begin_nested():
                db.add(model(**row))
            inserted += 1
        except IntegrityError:
            logger.debug(
                f"Skipped duplicate {model.__tablename__} row",
                extra={"row": {k: row.get(k) for k in conflict_columns}},
            )
    return inserted
