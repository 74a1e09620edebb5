"""Lock and audit behaviour across three users editing one article."""

from decimal import Decimal

import pytest

from quotation.models.article import Article
from quotation.models.block import BlockContent
from quotation.schemas.article import ArticleCreate, ArticleUpdate
from quotation.schemas.content import BlockContentIn
from quotation.services import article_service, lock_service
from quotation.services.audit_service import EntityType
from quotation.utils.errors import LockConflict
from tests.conftest import history_rows


def test_three_users_edit_one_article(db, seed_users, seed_languages):
    u1, u2, u3 = seed_users["sales"], seed_users["other"], seed_users["admin"]

    a1 = article_service.create_article(
        db, ArticleCreate(number="A1", price=Decimal("10.00"), with_default_calculations=False), u1
    )
    assert [row.action for row in history_rows(db, "articles", a1.id)] == ["INSERT"]

    article_service.save_article_content(
        db,
        a1.id,
        [
            BlockContentIn(title="Titel", language_id=seed_languages["de"].id),
            BlockContentIn(title="Title", language_id=seed_languages["en"].id),
        ],
        u1,
    )

    lock_service.check_editable(db, EntityType.ARTICLES, a1.id, u2)
    lock_service.acquire_lock(db, EntityType.ARTICLES, a1.id, u2)

    with pytest.raises(LockConflict) as exc:
        lock_service.check_editable(db, EntityType.ARTICLES, a1.id, u3)
    assert exc.value.locked_by == u2.id

    with pytest.raises(LockConflict):
        article_service.save_article(db, a1.id, ArticleUpdate(price=Decimal("99.00")), u3)

    article_service.save_article(db, a1.id, ArticleUpdate(price=Decimal("12.00")), u2)
    updates = [row for row in history_rows(db, "articles", a1.id) if row.action == "UPDATE"]
    assert len(updates) == 1
    assert updates[0].changed_fields == {"price": {"old": "10.00", "new": "12.00"}}
    assert updates[0].user_id == u2.id

    before = len(history_rows(db))
    article_service.delete_article(db, a1.id, u2)
    new_rows = history_rows(db)[before:]
    assert [(row.entity_type, row.action) for row in new_rows] == [
        ("block_content", "DELETE"),
        ("block_content", "DELETE"),
        ("articles", "DELETE"),
    ]

    db.expire_all()
    assert db.get(Article, a1.id).deleted is True
    contents = db.query(BlockContent).filter(BlockContent.article_id == a1.id).all()
    assert len(contents) == 2
    assert all(content.deleted for content in contents)
