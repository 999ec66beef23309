from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from restaurant_api import models
from restaurant_api.auth import hash_password
from restaurant_api.db import Database
from restaurant_api.events import EventBus
from restaurant_api.main import create_app
from restaurant_api.storage import ImageStore

API = "/api/v1"
PASSWORD = "s3cret-pass"


@pytest.fixture(scope="function")
def database() -> Generator:
    # In-memory SQLite shared by every session through a single connection
    db = Database("sqlite://", poolclass=StaticPool)
    db.create_all()
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture(scope="function")
def db_session(database) -> Generator:
    with database.session() as db:
        yield db


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def image_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture(scope="function")
def client(database, events, image_dir):
    app = create_app(database=database, events=events, images=ImageStore(str(image_dir)))
    with TestClient(app) as c:
        yield c


def make_user(db, email="alice@example.com", role="user", password=PASSWORD, username=None):
    user = models.User(
        username=username or email.split("@")[0],
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_dish(db, name="Shoyu Ramen", price="9.50", ingredients="noodles, broth", image_path=None):
    dish = models.Dish(name=name, price=Decimal(price), ingredients=ingredients, image_path=image_path)
    db.add(dish)
    db.commit()
    db.refresh(dish)
    return dish


def login(client, email, password=PASSWORD):
    """Log in through the API; the client's cookie jar keeps the tokens."""
    r = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r


@pytest.fixture
def user(db_session):
    return make_user(db_session, "alice@example.com")


@pytest.fixture
def admin(db_session):
    return make_user(db_session, "admin@example.com", role="admin")


@pytest.fixture
def dish(db_session):
    return make_dish(db_session)
