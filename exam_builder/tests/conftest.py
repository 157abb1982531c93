"""Shared pytest fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from exam_builder.db.session import build_engine, get_db, init_db
from exam_builder.services.exam_service import ExamService


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with foreign keys on."""
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def service(db):
    return ExamService(db)


@pytest.fixture
def client(session_factory):
    """TestClient whose requests hit the in-memory database."""
    from exam_builder.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_exam(service):
    from exam_builder.schemas.exam import ExamCreate

    def _make(title="Algebra Quiz", description=None):
        return service.create_exam(ExamCreate(title=title, description=description))

    return _make


@pytest.fixture
def make_question(service):
    from exam_builder.models.question import QuestionType
    from exam_builder.schemas.exam import QuestionCreate

    def _make(exam_id, type=QuestionType.MULTIPLE_CHOICE, text="2+2=?", points=1.0, order_index=0):
        return service.create_question(
            QuestionCreate(
                exam_id=exam_id,
                type=type,
                question_text=text,
                points=points,
                order_index=order_index,
            )
        )

    return _make
