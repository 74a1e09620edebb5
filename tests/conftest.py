import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from quotation.database import Base, get_db
from quotation.main import app
from quotation.models.article import Article
from quotation.models.block import Block, BlockContent
from quotation.models.change_history import ChangeHistory
from quotation.models.client import Client
from quotation.models.language import Language
from quotation.models.sales_opportunity import SalesOpportunity
from quotation.models.user import User

TEST_DB_URL = "sqlite:///./test_quotation.db"

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
def seed_users(db):
    users = {
        "admin": User(email="admin@example.com", name="Admin", role="admin"),
        "sales": User(email="sales@example.com", name="Sales One", role="sales"),
        "other": User(email="other@example.com", name="Sales Two", role="sales"),
        "viewer": User(email="viewer@example.com", name="Viewer", role="viewer"),
    }
    for u in users.values():
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


@pytest.fixture
def seed_languages(db):
    languages = {
        "de": Language(value="de", label="Deutsch", is_default=True),
        "en": Language(value="en", label="English"),
    }
    for language in languages.values():
        db.add(language)
    db.commit()
    for language in languages.values():
        db.refresh(language)
    return languages


@pytest.fixture
def seed_client(db, seed_languages):
    client = Client(foreign_id="K-1", name="Muster GmbH", language_id=seed_languages["de"].id)
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


@pytest.fixture
def seed_article(db, seed_languages):
    """Article with German and English content, written without change history."""
    article = Article(number="A-100", price=Decimal("10.00"))
    db.add(article)
    db.flush()
    db.add_all([
        BlockContent(article_id=article.id, title="Artikel", content="Text", language_id=seed_languages["de"].id),
        BlockContent(article_id=article.id, title="Article", content="Text", language_id=seed_languages["en"].id),
    ])
    db.commit()
    db.refresh(article)
    return article


@pytest.fixture
def seed_block(db, seed_languages):
    block = Block(name="Einleitung", standard=True, position=1)
    db.add(block)
    db.flush()
    db.add(BlockContent(block_id=block.id, title="Einleitung", content="Hallo", language_id=seed_languages["de"].id))
    db.commit()
    db.refresh(block)
    return block


@pytest.fixture
def seed_opportunity(db, seed_users, seed_client):
    opportunity = SalesOpportunity(
        client_id=seed_client.id,
        keyword="Neubau Halle 3",
        crm_id="CRM-7",
        status="in_progress",
        created_by=seed_users["sales"].id,
    )
    db.add(opportunity)
    db.commit()
    db.refresh(opportunity)
    return opportunity


def history_rows(db, entity_type=None, entity_id=None):
    query = db.query(ChangeHistory)
    if entity_type is not None:
        query = query.filter(ChangeHistory.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(ChangeHistory.entity_id == entity_id)
    return query.order_by(ChangeHistory.id).all()


def get_token(client, email: str) -> str:
    resp = client.post("/api/auth/login", json={"email": email})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client, email: str) -> dict:
    return {"Authorization": f"Bearer {get_token(client, email)}"}
