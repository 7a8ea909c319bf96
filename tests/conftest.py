"""
Pytest configuration and fixtures for CMS API tests.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cms_api.auth import create_access_token, get_password_hash, verify_password
from cms_api.database import Base, get_db
from cms_api.limiter import limiter
from cms_api.main import app
from cms_api.schemas.auth import Role, UserCreate
from cms_api.schemas.posts import PostCreate
from cms_api.schemas.taxonomy import CategoryCreate, PlacementCreate, SubCategory
from cms_api.services.posts import PostLifecycleEngine
from cms_api.services.registries import CategoryRegistry, PlacementRegistry
from cms_api.services.users import UserService
from cms_api.store import UNIQUE_FIELDS, InMemoryDocumentStore, SqlDocumentStore

# Disable rate limiting for tests
limiter.enabled = False

# Use in-memory SQLite for tests with shared connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Global session for sharing across requests
_test_session = None


def get_test_db():
    """Get the shared test database session."""
    yield _test_session


class FakeClock:
    """Controllable clock for lifecycle tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ============================================================
# DATABASE / HTTP
# ============================================================

@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    global _test_session

    Base.metadata.create_all(bind=engine)
    _test_session = TestingSessionLocal()
    app.dependency_overrides[get_db] = get_test_db

    yield _test_session

    app.dependency_overrides.clear()
    _test_session.close()
    _test_session = None
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def sql_store(db):
    """Document store on the shared test session."""
    return SqlDocumentStore(db, unique_fields=UNIQUE_FIELDS)


@pytest.fixture(scope="function")
def make_user(sql_store):
    """Factory creating a user with the given role."""
    users = UserService(sql_store, hash_password=get_password_hash, verify_password=verify_password)
    created = []

    def _make(role: Role = Role.AUTHOR, email: str = None, password: str = "password123", **extra):
        email = email or f"{Role(role).value}{len(created) + 1}@example.com"
        user = users.create(UserCreate(
            email=email,
            password=password,
            first_name=extra.pop("first_name", Role(role).value.title()),
            last_name=extra.pop("last_name", "User"),
            role=role,
            **extra,
        ))
        created.append(user)
        return user

    return _make


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user['id']})}"}


@pytest.fixture
def headers_for():
    """Bearer headers for any user document."""
    return bearer


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, email="admin@example.com")


@pytest.fixture
def editor(make_user):
    return make_user(Role.EDITOR, email="editor@example.com")


@pytest.fixture
def author(make_user):
    return make_user(Role.AUTHOR, email="author@example.com")


@pytest.fixture
def viewer(make_user):
    return make_user(Role.VIEWER, email="viewer@example.com")


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def editor_headers(editor):
    return bearer(editor)


@pytest.fixture
def author_headers(author):
    return bearer(author)


@pytest.fixture
def viewer_headers(viewer):
    return bearer(viewer)


@pytest.fixture
def category(sql_store):
    """A category stored in the test database."""
    return CategoryRegistry(sql_store).create(CategoryCreate(name="News", slug="news"))


@pytest.fixture
def placement(sql_store):
    """A placement stored in the test database."""
    return PlacementRegistry(sql_store).create(
        PlacementCreate(name="Featured Content", slug="featured-content", sub_category=SubCategory.FEATURED)
    )


# ============================================================
# IN-MEMORY SERVICES
# ============================================================

@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemoryDocumentStore(unique_fields=UNIQUE_FIELDS)


@pytest.fixture
def categories(store, clock):
    return CategoryRegistry(store, clock)


@pytest.fixture
def placements(store, clock):
    return PlacementRegistry(store, clock)


@pytest.fixture
def lifecycle(store, categories, placements, clock):
    return PostLifecycleEngine(store, categories, placements, clock)


@pytest.fixture
def taxonomy(categories, placements):
    """Two categories and two placements, returned as a dict of ids."""
    return {
        "c1": categories.create(CategoryCreate(name="News", slug="news"))["id"],
        "c2": categories.create(CategoryCreate(name="Sports", slug="sports"))["id"],
        "p1": placements.create(PlacementCreate(name="Top", slug="top", sub_category=SubCategory.TOPNAV))["id"],
        "p2": placements.create(PlacementCreate(name="Footer", slug="footer", sub_category=SubCategory.FOOTER))["id"],
    }


@pytest.fixture
def new_post(taxonomy):
    """Build a PostCreate with sensible defaults."""
    counter = {"n": 0}

    def _build(**overrides):
        counter["n"] += 1
        values = {
            "title": f"Post {counter['n']}",
            "slug": f"post-{counter['n']}",
            "category_id": taxonomy["c1"],
            "placement_id": taxonomy["p1"],
        }
        values.update(overrides)
        return PostCreate(**values)

    return _build
