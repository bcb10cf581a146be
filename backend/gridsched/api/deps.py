from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from gridsched.db.row_store import RowStore
from gridsched.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_row_store(db: Session = Depends(get_db)) -> RowStore:
    return RowStore(db)
