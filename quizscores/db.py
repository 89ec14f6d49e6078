"""
Store interface and the SQLAlchemy-backed relational store.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import BigInteger, Column, Integer, String, Text, create_engine, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from quizscores.errors import DuplicateScoreError, StoreUnavailableError
from quizscores.records import ScoreRecord, sort_by_received


class ScoreStore(Protocol):
    """
    Operations every durable store provides.

    Stores raise StoreUnavailableError for transient failures and
    DuplicateScoreError when an id is already taken. Malformed stored data is
    the store's own concern and reads as empty.
    """

    mode: str

    def list_all(self) -> list[ScoreRecord]:
        ...

    def append(self, record: ScoreRecord) -> None:
        ...

    def clear_all(self) -> None:
        ...

    def has_name(self, name: str) -> bool:
        ...


Base = declarative_base()


class ScoreRow(Base):
    __tablename__ = "scores"

    # Lowercase column names match tables created with unquoted identifiers.
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    name = Column(Text, nullable=False, index=True)
    email = Column(Text, nullable=True)
    score = Column(Integer, nullable=True)
    answered_questions = Column("answeredquestions", Integer, nullable=True)
    total_questions = Column("totalquestions", Integer, nullable=True)
    time_taken = Column("timetaken", Text, nullable=True)
    reason = Column(Text, nullable=True)
    received_at = Column("receivedat", String(64), nullable=True, index=True)
    date = Column(String(64), nullable=True)

    @classmethod
    def from_record(cls, record: ScoreRecord) -> "ScoreRow":
        return cls(
            id=record.id,
            name=record.name,
            email=record.email,
            score=record.score,
            answered_questions=record.answered_questions,
            total_questions=record.total_questions,
            time_taken=record.time_taken,
            reason=record.reason,
            received_at=record.received_at,
            date=record.date,
        )

    def to_record(self) -> ScoreRecord:
        return ScoreRecord(
            id=self.id,
            name=self.name,
            email=self.email,
            score=self.score,
            answered_questions=self.answered_questions,
            total_questions=self.total_questions,
            time_taken=self.time_taken,
            reason=self.reason,
            received_at=self.received_at,
            date=self.date,
        )


class SqlScoreStore:
    """
    SQLAlchemy-backed store. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    mode = "postgres"

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlScoreStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def list_all(self) -> list[ScoreRecord]:
        try:
            with self.Session() as session:
                stmt = select(ScoreRow).order_by(ScoreRow.received_at.asc())
                rows = session.execute(stmt).scalars()
                return sort_by_received(row.to_record() for row in rows)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Failed to read scores: {exc}") from exc

    def append(self, record: ScoreRecord) -> None:
        try:
            with self.Session() as session:
                session.add(ScoreRow.from_record(record))
                session.commit()
        except IntegrityError as exc:
            raise DuplicateScoreError(record.id) from exc
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Failed to insert score: {exc}") from exc

    def clear_all(self) -> None:
        try:
            with self.Session() as session:
                session.execute(delete(ScoreRow))
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Failed to clear scores: {exc}") from exc

    def has_name(self, name: str) -> bool:
        try:
            with self.Session() as session:
                stmt = select(ScoreRow.id).where(ScoreRow.name == name).limit(1)
                return session.execute(stmt).first() is not None
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Failed to query scores: {exc}") from exc
