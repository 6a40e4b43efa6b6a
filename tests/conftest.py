"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JSON_LOGS", "false")

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.pool import NullPool

from core.config import settings
from database.engine import Base
from database.models import Job, User, UserType


def make_token(user_id: int, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Mint an access token the way the identity service does."""
    payload = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def build_users() -> SimpleNamespace:
    """Fresh, unsaved users covering every role."""
    return SimpleNamespace(
        employer=User(
            name="Erin Employer",
            email="erin@acme.test",
            avatar="erin.png",
            user_type=UserType.EMPLOYER,
        ),
        other_employer=User(
            name="Oscar Other",
            email="oscar@globex.test",
            avatar="oscar.png",
            user_type=UserType.EMPLOYER,
        ),
        recruiter=User(
            name="Rita Recruiter",
            email="rita@acme.test",
            avatar="rita.png",
            user_type=UserType.EMPLOYER,
        ),
        applicant=User(
            name="Ada Applicant",
            email="ada@example.test",
            phone="555-0100",
            linkedin="https://linkedin.com/in/ada",
            user_type=UserType.JOBSEEKER,
        ),
        second_applicant=User(
            name="Ben Builder",
            email="ben@example.test",
            user_type=UserType.JOBSEEKER,
        ),
        admin=User(
            name="Alex Admin",
            email="alex@platform.test",
            user_type=UserType.ADMIN,
        ),
    )


@pytest.fixture
def database_path(tmp_path):
    return tmp_path / "pipeline.db"


@pytest.fixture
async def engine(database_path):
    """Async engine on a fresh on-disk SQLite database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def people(db):
    """One user per role, saved."""
    users = build_users()
    db.add_all(list(vars(users).values()))
    await db.commit()
    return users


@pytest.fixture
async def job(db, people):
    """Job owned by `people.employer`."""
    job = Job(
        employer_id=people.employer.id,
        title="Backend Engineer",
        company="Acme",
        location="Remote",
    )
    db.add(job)
    await db.commit()
    return job


@pytest.fixture
async def other_job(db, people):
    """Job owned by `people.other_employer`."""
    job = Job(
        employer_id=people.other_employer.id,
        title="Data Analyst",
        company="Globex",
        location="Berlin",
    )
    db.add(job)
    await db.commit()
    return job
