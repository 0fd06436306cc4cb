import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from hms.core.base import Base
from hms.modules.patients.models import Patient
import hms.modules.history.models  # noqa: F401


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def add_patient(session):
    async def _add(code: int, name: str, age: int = 30, sex: str = "M", **extra) -> Patient:
        first, _, second = name.partition(" ")
        obj = Patient(
            code=code,
            first_name=first,
            second_name=second or first,
            name=name,
            age=age,
            sex=sex,
            **extra,
        )
        session.add(obj)
        await session.commit()
        # later lookups load their own instance, with the photo relationship
        session.expunge(obj)
        return obj
    return _add
