import uuid

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlmodel import select

from medcamp.core.errors import ProfileUnavailable
from medcamp.core.identity import Principal
from medcamp.models.user import Profile
from medcamp.repositories.user_repo import UserRepository
from medcamp.services.profile_resolver import ProfileResolver


@pytest.fixture
def repo():
    return UserRepository()


@pytest.fixture
def resolver(repo):
    return ProfileResolver(repo)


def _principal(sub=None, email="new@camp.org"):
    sub = sub or uuid.uuid4()
    return Principal(subject_id=sub, email=email, claims={"sub": str(sub)})


def test_missing_profile_is_provisioned_as_user(session, resolver):
    principal = _principal(email="first.visit@camp.org")

    user = resolver.resolve(session, principal)

    assert user.id == principal.subject_id
    assert user.email == "first.visit@camp.org"
    assert user.role == "user"

    row = session.get(Profile, principal.subject_id)
    assert row is not None
    assert row.role == "user"
    assert row.email == "first.visit@camp.org"


def test_existing_profile_is_returned_unchanged(session, resolver, add_profile):
    admin = add_profile(role="admin", email="boss@camp.org")

    user = resolver.resolve(session, _principal(admin.id, email="boss@camp.org"))

    assert user.role == "admin"
    assert session.exec(select(Profile)).all() == [admin]


def test_missing_role_is_backfilled(session, resolver, add_profile):
    legacy = add_profile(role=None)
    assert legacy.role is None

    user = resolver.resolve(session, _principal(legacy.id, email=legacy.email))

    assert user.role == "user"
    session.expire_all()
    assert session.get(Profile, legacy.id).role == "user"


def test_failed_backfill_still_admits_as_user(session, resolver, repo, add_profile, monkeypatch):
    legacy = add_profile(role=None)
    assert legacy.role is None

    def refuse(*args, **kwargs):
        raise OperationalError("UPDATE users", {}, Exception("permission denied for table users"))

    monkeypatch.setattr(repo, "update_role", refuse)

    user = resolver.resolve(session, _principal(legacy.id, email=legacy.email))

    assert user.role == "user"
    session.expire_all()
    assert session.get(Profile, legacy.id).role is None


def test_failed_provisioning_is_terminal(session, resolver, repo, monkeypatch):
    def refuse(*args, **kwargs):
        raise ProgrammingError(
            "INSERT INTO users", {}, Exception("new row violates row-level security policy")
        )

    monkeypatch.setattr(repo, "insert_if_absent", refuse)

    with pytest.raises(ProfileUnavailable) as err:
        resolver.resolve(session, _principal())
    assert err.value.status_code == 401


def test_provisioned_row_hidden_from_caller_is_terminal(session, resolver, repo, monkeypatch):
    monkeypatch.setattr(repo, "insert_if_absent", lambda *args, **kwargs: None)

    with pytest.raises(ProfileUnavailable):
        resolver.resolve(session, _principal())


def test_insert_if_absent_is_idempotent(session, repo):
    sub = uuid.uuid4()

    first = repo.insert_if_absent(session, sub, "twice@camp.org", "user")
    second = repo.insert_if_absent(session, sub, "twice@camp.org", "user")

    assert first.id == second.id == sub
    assert len(session.exec(select(Profile)).all()) == 1


def test_insert_if_absent_keeps_existing_row(session, repo, add_profile):
    admin = add_profile(role="admin", email="keep@camp.org")

    row = repo.insert_if_absent(session, admin.id, "keep@camp.org", "user")

    assert row.role == "admin"
