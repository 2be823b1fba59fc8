import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import Base
from models.badge import Badge, UserBadge  # noqa: F401
from models.game_score import GameScore  # noqa: F401
from models.lesson import Lesson  # noqa: F401
from models.lesson_completion import LessonCompletion  # noqa: F401
from models.streak_log import StreakLog  # noqa: F401
from models.user_progress import UserProgress


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # let SQLAlchemy drive BEGIN so SAVEPOINTs behave
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_progress(db):
    def _make(user_id="u1", **fields):
        progress = UserProgress(
            user_id=user_id,
            total_xp=fields.pop("total_xp", 0),
            level=fields.pop("level", 1),
            level_title=fields.pop("level_title", "Prompt Curious"),
            current_streak=fields.pop("current_streak", 0),
            longest_streak=fields.pop("longest_streak", 0),
            lessons_completed=fields.pop("lessons_completed", 0),
            **fields,
        )
        db.add(progress)
        db.commit()
        return progress
    return _make


@pytest.fixture
def make_badge(db):
    def _make(slug, requirement, xp_bonus=0, category="progress", is_secret=False):
        badge = Badge(
            slug=slug,
            name=slug.replace("-", " ").title(),
            category=category,
            requirement=requirement,
            xp_bonus=xp_bonus,
            is_secret=is_secret,
        )
        db.add(badge)
        db.commit()
        return badge
    return _make


class FixedClock:
    def __init__(self, day):
        self.day = day

    def __call__(self):
        return self.day


@pytest.fixture
def clock():
    return FixedClock(date(2024, 3, 10))
