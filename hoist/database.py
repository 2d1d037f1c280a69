from sqlmodel import Session, SQLModel, create_engine

from hoist.config import settings

connect_args = {"check_same_thread": False} if settings.is_sqlite else {}

engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, connect_args=connect_args)


def create_db_and_tables() -> None:
    if settings.is_sqlite and ":memory:" not in settings.DATABASE_URL:
        # WAL mode for better read performance
        with engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
