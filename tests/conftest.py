import os
import time
import uuid

# Settings are read on import of medcamp.main; point them at test values first.
TEST_JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"

os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_KEY"] = "test-anon-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_VERIFY_MODE"] = "jwt"
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["DB_CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import update
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from medcamp.database import get_engine
from medcamp.main import app
from medcamp.models.user import Profile


def make_token(
    sub,
    email="alice@camp.org",
    expires_in=3600,
    secret=TEST_JWT_SECRET,
    **extra,
):
    now = int(time.time())
    payload = {
        "sub": str(sub) if sub is not None else None,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
        **extra,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def jwt_secret():
    return TEST_JWT_SECRET


@pytest.fixture
def mint_token():
    return make_token


@pytest.fixture
def engine():
    # One shared in-memory connection, visible from the app's worker threads.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.pop(get_engine, None)


@pytest.fixture
def add_profile(session):
    def _add(role="user", email=None, name=None, **fields):
        profile = Profile(
            id=fields.pop("id", None) or uuid.uuid4(),
            email=email or f"{uuid.uuid4().hex[:8]}@camp.org",
            name=name,
            role=role,
            **fields,
        )
        session.add(profile)
        session.commit()
        if role is None:
            # The model fills in the default role; store a real NULL.
            session.exec(  # type: ignore[call-overload]
                update(Profile).where(Profile.id == profile.id).values(role=None)
            )
            session.commit()
        session.refresh(profile)
        return profile

    return _add


@pytest.fixture
def headers_for():
    def _headers(profile):
        token = make_token(profile.id, email=profile.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def patient(add_profile):
    return add_profile(role="user", email="patient@camp.org", name="Pat")


@pytest.fixture
def admin(add_profile):
    return add_profile(role="admin", email="admin@camp.org", name="Ada")


@pytest.fixture
def patient_headers(patient, headers_for):
    return headers_for(patient)


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)
