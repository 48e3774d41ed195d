import os
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest

TEST_DB_FILE = Path(tempfile.gettempdir()) / f"test_intern_tasks_{uuid4().hex}.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_FILE.as_posix()}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("DB_BOOTSTRAP_MODE", "off")

from app import models  # noqa: E402,F401
from app.database.base import Base  # noqa: E402
from app.database.session import SessionLocal, engine  # noqa: E402
from app.models.task import Task  # noqa: E402
from app.models.user import User  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    engine.dispose()
    if TEST_DB_FILE.exists():
        TEST_DB_FILE.unlink()
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        if TEST_DB_FILE.exists():
            TEST_DB_FILE.unlink()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_user(db, role: str, registration_step: int = 4, name: str = "") -> User:
    suffix = uuid4().hex[:8]
    user = User(
        full_name=name or f"{role.title()} {suffix}",
        email=f"{role}.{suffix}@test.local",
        role=role,
        registration_step=registration_step,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db_session) -> User:
    return create_user(db_session, "admin", name="Admin Revisor")


@pytest.fixture
def intern(db_session) -> User:
    return create_user(db_session, "intern", name="Estagiario Teste")


@pytest.fixture
def curriculum(db_session) -> list[Task]:
    """Tarefas nas posições 1, 2 e 3."""
    tasks = [
        Task(title=f"Tarefa {order}", description=f"Descricao da tarefa {order}", task_order=order)
        for order in (1, 2, 3)
    ]
    db_session.add_all(tasks)
    db_session.commit()
    for task in tasks:
        db_session.refresh(task)
    return tasks


@pytest.fixture
def make_user(db_session):
    def factory(role: str = "intern", registration_step: int = 4, name: str = "") -> User:
        return create_user(db_session, role, registration_step=registration_step, name=name)

    return factory
