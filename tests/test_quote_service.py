from decimal import Decimal

import pytest

from quotation.models.quote import Quote, QuotePosition, QuoteVersion
from quotation.schemas.quote import QuoteCreate, QuotePositionCreate, QuotePositionUpdate, QuoteUpdate, QuoteVersionUpdate
from quotation.services import lock_service, quote_service
from quotation.services.audit_service import EntityType
from quotation.utils.errors import LockConflict, NotFound
from tests.conftest import history_rows


@pytest.fixture
def quote(db, seed_users, seed_opportunity, seed_languages):
    return quote_service.create_quote(
        db,
        QuoteCreate(sales_opportunity_id=seed_opportunity.id, title="Halle 3", language_id=seed_languages["de"].id),
        seed_users["sales"],
    )


def _first_version(quote):
    return quote.variants[0].versions[0]


def test_create_quote_builds_default_variant_and_version(db, quote):
    assert quote.quote_number == "0001"
    assert len(quote.variants) == 1
    variant = quote.variants[0]
    assert variant.is_default is True
    assert variant.variant_number == 1
    assert [(v.version_number, v.is_latest) for v in variant.versions] == [(1, True)]
    assert [row.action for row in history_rows(db)] == ["INSERT", "INSERT", "INSERT"]


def test_create_quote_for_missing_opportunity(db, seed_users, seed_languages):
    with pytest.raises(NotFound):
        quote_service.create_quote(
            db, QuoteCreate(sales_opportunity_id=404, language_id=seed_languages["de"].id), seed_users["sales"]
        )


def test_save_quote_respects_quote_lock(db, seed_users, quote):
    lock_service.acquire_lock(db, EntityType.QUOTES, quote.id, seed_users["other"])

    with pytest.raises(LockConflict):
        quote_service.save_quote(db, quote.id, QuoteUpdate(title="Neu"), seed_users["sales"])

    saved = quote_service.save_quote(db, quote.id, QuoteUpdate(title="Neu"), seed_users["other"])
    assert saved.title == "Neu"
    assert saved.modified_by == seed_users["other"].id


def test_positions_follow_version_lock(db, seed_users, seed_article, quote):
    version = _first_version(quote)
    lock_service.acquire_lock(db, EntityType.QUOTE_VERSIONS, version.id, seed_users["other"])
    data = QuotePositionCreate(article_id=seed_article.id, position_number=1, quantity=Decimal("3"), unit_price=Decimal("2.50"))

    with pytest.raises(LockConflict):
        quote_service.add_quote_position(db, version.id, data, seed_users["sales"])

    position = quote_service.add_quote_position(db, version.id, data, seed_users["other"])
    assert position.total_price == Decimal("7.50")

    updated = quote_service.update_quote_position(db, position.id, QuotePositionUpdate(quantity=Decimal("4")), seed_users["other"])
    assert updated.total_price == Decimal("10.00")

    with pytest.raises(LockConflict):
        quote_service.delete_quote_position(db, position.id, seed_users["sales"])
    quote_service.delete_quote_position(db, position.id, seed_users["other"])

    actions = [row.action for row in history_rows(db, "quote_positions", position.id)]
    assert actions == ["INSERT", "UPDATE", "DELETE"]


def test_save_quote_version(db, seed_users, quote):
    version = _first_version(quote)
    saved = quote_service.save_quote_version(db, version.id, QuoteVersionUpdate(accepted=True), seed_users["sales"])
    assert saved.accepted is True
    assert history_rows(db, "quote_versions", version.id)[-1].changed_fields == {
        "accepted": {"old": False, "new": True}
    }


def test_new_version_becomes_latest(db, seed_users, quote):
    variant = quote.variants[0]
    version = quote_service.create_quote_version(db, variant.id, seed_users["sales"])

    assert version.version_number == 2
    db.expire_all()
    latest = db.query(QuoteVersion).filter(QuoteVersion.variant_id == variant.id, QuoteVersion.is_latest == True).all()  # noqa: E712
    assert [v.id for v in latest] == [version.id]


def test_create_quote_variant(db, seed_users, seed_languages, quote):
    variant = quote_service.create_quote_variant(db, quote.id, seed_languages["en"].id, seed_users["sales"])
    assert variant.variant_number == 2
    assert variant.is_default is False
    assert len(variant.versions) == 1


def test_delete_quote_cascades_through_hierarchy(db, seed_users, seed_article, seed_block, quote):
    version = _first_version(quote)
    user = seed_users["sales"]
    quote_service.add_quote_position(db, version.id, QuotePositionCreate(article_id=seed_article.id, position_number=1), user)
    quote_service.add_quote_position(db, version.id, QuotePositionCreate(block_id=seed_block.id, position_number=2), user)

    before = len(history_rows(db))
    quote_service.delete_quote(db, quote.id, user)
    rows = history_rows(db)[before:]

    assert [row.entity_type for row in rows] == [
        "quote_positions",
        "quote_positions",
        "quote_versions",
        "quote_variants",
        "quotes",
    ]
    assert all(row.action == "DELETE" for row in rows)
    assert rows[2].change_metadata["parentEntityType"] == "quote_variants"
    db.expire_all()
    assert all(p.deleted for p in db.query(QuotePosition).all())


def test_copy_quote_copies_hierarchy(db, seed_users, seed_article, quote):
    version = _first_version(quote)
    quote_service.add_quote_position(
        db, version.id, QuotePositionCreate(article_id=seed_article.id, position_number=1), seed_users["sales"]
    )

    copy = quote_service.copy_quote(db, quote.id, seed_users["other"])

    assert copy.quote_number == "0001 (Kopie)"
    assert copy.created_by == seed_users["other"].id
    copied_version = _first_version(copy)
    assert copied_version.id != version.id
    assert [p.article_id for p in copied_version.positions] == [seed_article.id]
    assert quote_service.get_quote_change_history(db, copy.id)[0]["metadata"] == {"originalEntityId": quote.id}


def test_saving_deleted_quote_hierarchy_writes_nothing(db, seed_users, quote):
    user = seed_users["sales"]
    version = _first_version(quote)
    variant_id = quote.variants[0].id
    quote_service.delete_quote(db, quote.id, user)
    before = len(history_rows(db))

    with pytest.raises(NotFound):
        quote_service.save_quote(db, quote.id, QuoteUpdate(title="Neu"), user)
    with pytest.raises(NotFound):
        quote_service.save_quote_version(db, version.id, QuoteVersionUpdate(accepted=True), user)
    with pytest.raises(NotFound):
        quote_service.create_quote_version(db, variant_id, user)

    db.expire_all()
    assert db.get(Quote, quote.id).title == "Halle 3"
    assert db.get(QuoteVersion, version.id).accepted is False
    assert db.query(QuoteVersion).filter(QuoteVersion.variant_id == variant_id).count() == 1
    assert len(history_rows(db)) == before


def test_quote_number_skips_numbers_of_deleted_quotes(db, seed_users, seed_opportunity, seed_languages, quote):
    data = QuoteCreate(sales_opportunity_id=seed_opportunity.id, language_id=seed_languages["de"].id)
    second = quote_service.create_quote(db, data, seed_users["sales"])
    assert second.quote_number == "0002"

    quote_service.delete_quote(db, quote.id, seed_users["sales"])
    third = quote_service.create_quote(db, data, seed_users["sales"])

    assert third.quote_number == "0003"


def test_quote_number_steps_past_manual_numbers(db, seed_users, seed_opportunity, seed_languages, quote):
    user = seed_users["sales"]
    quote_service.create_quote(
        db,
        QuoteCreate(sales_opportunity_id=seed_opportunity.id, language_id=seed_languages["de"].id, quote_number="0003"),
        user,
    )

    generated = quote_service.create_quote(
        db, QuoteCreate(sales_opportunity_id=seed_opportunity.id, language_id=seed_languages["de"].id), user
    )

    assert generated.quote_number == "0004"
