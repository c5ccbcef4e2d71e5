import os
from pathlib import Path

from dotenv import load_dotenv
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["PYTEST_RUN"] = "1"
os.environ.setdefault("AUTO_CREATE_TABLES", "0")

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / ".env.test")

from thread_inbox.main import app
from thread_inbox.api.dependencies import get_db
from thread_inbox.api.auth import token_for
from thread_inbox.database import Base
from thread_inbox.models import Booking, Campaign, Celebrity, User, UserRole


@pytest.fixture
def Session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def db(Session):
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def http(Session):
    from fastapi.testclient import TestClient

    def override_db():
        session = Session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user.id, user.role)}"}


def make_user(db, username: str, role: UserRole = UserRole.CUSTOMER, **kwargs) -> User:
    user = User(username=username, email=f"{username}@example.com", role=role, **kwargs)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_celebrity(db, name: str = "Nova", image_url: str | None = None) -> Celebrity:
    celeb = Celebrity(name=name, image_url=image_url)
    db.add(celeb)
    db.commit()
    db.refresh(celeb)
    return celeb


def make_booking(db, user: User, celeb: Celebrity, **kwargs) -> Booking:
    booking = Booking(user_id=user.id, celebrity_id=celeb.id, **kwargs)
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def make_campaign(db, user: User, celeb: Celebrity, **kwargs) -> Campaign:
    campaign = Campaign(user_id=user.id, celebrity_id=celeb.id, **kwargs)
    db.add(campaign)
    db.commit()
    db.refresh(campaign)
    return campaign
