"""Seed the database with users, languages, clients and standard blocks.

Seeded rows are written directly and carry no change history.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from decimal import Decimal

from quotation.database import SessionLocal, engine, Base
import quotation.models  # noqa: F401

from quotation.models.article import Article
from quotation.models.block import Block, BlockContent
from quotation.models.client import Client
from quotation.models.language import Language
from quotation.models.user import User
from quotation.utils.permissions import ADMIN, SALES, VIEWER


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(User).count() > 0:
            print("Database already seeded. Skipping.")
            return

        db.add_all([
            User(email="admin@example.com", name="Anna Admin", role=ADMIN),
            User(email="sales1@example.com", name="Stefan Vertrieb", role=SALES),
            User(email="sales2@example.com", name="Sabine Vertrieb", role=SALES),
            User(email="viewer@example.com", name="Victor Viewer", role=VIEWER),
        ])

        german = Language(value="de", label="Deutsch", is_default=True)
        english = Language(value="en", label="English", is_default=False)
        db.add_all([german, english])
        db.flush()

        db.add_all([
            Client(foreign_id="K-10001", name="Muster GmbH", address="Hauptstr. 1, 10115 Berlin", language_id=german.id),
            Client(foreign_id="K-10002", name="Example Ltd.", address="1 High Street, London", language_id=english.id),
        ])

        intro = Block(name="Einleitung", standard=True, mandatory=True, position=1)
        terms = Block(name="Zahlungsbedingungen", standard=True, mandatory=False, position=2)
        db.add_all([intro, terms])
        db.flush()
        db.add_all([
            BlockContent(block_id=intro.id, title="Einleitung", content="Vielen Dank für Ihre Anfrage.", language_id=german.id),
            BlockContent(block_id=intro.id, title="Introduction", content="Thank you for your inquiry.", language_id=english.id),
            BlockContent(block_id=terms.id, title="Zahlungsbedingungen", content="Zahlbar innerhalb von 30 Tagen.", language_id=german.id),
        ])

        db.add(Article(number="A-1000", price=Decimal("120.00")))

        db.commit()
        print("Seed data inserted successfully.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
