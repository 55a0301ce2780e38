# Test configuration
import os

# Set test environment variables BEFORE importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DATABASE_URL"] = "mongodb://localhost:27017"
os.environ["DATABASE_NAME"] = "tours_test"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only-32chars"
os.environ["JWT_EXPIRES_IN_DAYS"] = "1"
os.environ["BCRYPT_ROUNDS"] = "4"  # Lower rounds for faster tests
os.environ["CORS_ORIGINS"] = "*"

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from models import Tour, User
from schemas import TourCreate
from security import create_access_token


@pytest.fixture(autouse=True)
def mongo(monkeypatch):
    """Fresh in-memory MongoDB for every test."""
    monkeypatch.setattr(database, "MongoClient", mongomock.MongoClient)
    monkeypatch.setattr(database, "_client", None)
    database.ensure_indexes()
    yield database.get_db()
    database.close_client()


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client


def _create_user(role="user", email=None, password="test1234"):
    return User.create(
        {
            "name": f"Test {role.title()}",
            "email": email or f"{role}@example.com",
            "password": password,
            "role": role,
        }
    )


def _headers(user):
    return {"Authorization": f"Bearer {create_access_token(str(user['_id']))}"}


@pytest.fixture
def user():
    return _create_user("user")


@pytest.fixture
def admin():
    return _create_user("admin")


@pytest.fixture
def user_headers(user):
    return _headers(user)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


def _tour_payload(**overrides):
    payload = {
        "name": "The Forest Hiker",
        "duration": 5,
        "max_group_size": 25,
        "difficulty": "easy",
        "ratings_average": 4.7,
        "ratings_quantity": 37,
        "price": 397,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "image_cover": "tour-1-cover.jpg",
        "images": ["tour-1-1.jpg", "tour-1-2.jpg"],
        "start_dates": ["2021-04-25T09:00:00Z", "2021-07-20T09:00:00Z"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_tour():
    def _make(**overrides):
        data = _tour_payload(**overrides)
        return Tour.create(TourCreate(**data).model_dump())

    return _make


@pytest.fixture
def make_user():
    return _create_user


@pytest.fixture
def headers_for():
    return _headers


@pytest.fixture
def tour_payload():
    return _tour_payload
