"""Shared DB helpers for the Streamlit kitchen board."""

from datetime import datetime

from sqlalchemy.orm import Session

from cafeteria.db import session as db_session
from cafeteria.db.base import Base

Base.metadata.create_all(bind=db_session.engine)


def get_session() -> Session:
    return db_session.SessionLocal()


def now_string() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M")
