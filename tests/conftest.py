import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from survey_lifecycle.config import settings
from survey_lifecycle.database import Base, get_db
from survey_lifecycle.main import app
from survey_lifecycle.schemas.survey import SurveyCreate
from survey_lifecycle.services import survey_service

TEST_DB_URL = "sqlite:///./test_survey_lifecycle.db"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_survey(db):
    def _make(name: str = "CSAT", actor_id: str = "admin1", **fields):
        return survey_service.create_survey(db, SurveyCreate(name=name, **fields), actor_id)
    return _make


def get_token(actor_id: str, roles=("admin",)) -> str:
    payload = {"sub": actor_id, "roles": list(roles)}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def auth_headers(actor_id: str = "admin1", roles=("admin",)) -> dict:
    return {"Authorization": f"Bearer {get_token(actor_id, roles)}"}
