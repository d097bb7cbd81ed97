import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import portal.db.models  # noqa: F401
from portal.api.v1.routes.deps import get_auth_client, get_db
from portal.core.errors import Unauthorized
from portal.db.base import Base
from portal.db.models.admin_audit_log import AdminAuditLog
from portal.db.models.profile import Profile
from portal.db.models.user_role import UserRole
from portal.integrations.supabase_auth import AuthUser
from portal.main import app

ADMIN_OPS_URL = "/api/v1/admin-ops"


class FakeAuthClient:
    """Stands in for the hosted auth provider: tokens map to user ids."""

    def __init__(self):
        self.tokens: dict[str, str] = {}
        self.deleted: list[tuple[str, bool]] = []

    def issue(self, user_id) -> str:
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = str(user_id)
        return token

    def get_user(self, token: str) -> AuthUser:
        user_id = self.tokens.get(token)
        if not user_id:
            raise Unauthorized("Invalid or expired token")
        return AuthUser(id=user_id, email=None)

    def delete_user(self, user_id: str, should_soft_delete: bool = False) -> None:
        self.deleted.append((user_id, should_soft_delete))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def auth():
    return FakeAuthClient()


@pytest.fixture
def client(session_factory, auth):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_client] = lambda: auth
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


_phone_seq = iter(range(10_000_000, 99_999_999))


@pytest.fixture
def make_member(db):
    """Create an active, fully registered member; pass keyword overrides for anything else."""

    def _make(*roles: str, **fields) -> Profile:
        n = next(_phone_seq)
        values = {
            "full_name": f"Member {n}",
            "phone": f"+2547{n:08d}",
            "email": f"member{n}@example.org",
            "id_number": str(n),
            "location": "Nairobi",
            "occupation": "Farmer",
            "membership_number": f"MBR-{n}",
            "status": "active",
            "registration_fee_paid": True,
        }
        values.update(fields)
        profile = Profile(**values)
        db.add(profile)
        db.commit()
        for role in roles:
            db.add(UserRole(user_id=profile.id, role=role))
        db.commit()
        return profile

    return _make


@pytest.fixture
def headers_for(auth):
    def _headers(profile: Profile) -> dict[str, str]:
        return {"Authorization": f"Bearer {auth.issue(profile.id)}"}

    return _headers


@pytest.fixture
def admin(make_member):
    return make_member("member", "admin")


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)


def roles_of(db, user_id) -> set[str]:
    return set(db.execute(select(UserRole.role).where(UserRole.user_id == user_id)).scalars().all())


def audit_count(db, action: str | None = None) -> int:
    stmt = select(func.count(AdminAuditLog.id))
    if action:
        stmt = stmt.where(AdminAuditLog.action == action)
    return db.execute(stmt).scalar_one()


# Refresh only the returned row; objects held by the test stay readable even after their row is deleted.
def reload(db, profile_id) -> Profile | None:
    stmt = select(Profile).where(Profile.id == profile_id).execution_options(populate_existing=True)
    return db.execute(stmt).scalar_one_or_none()
