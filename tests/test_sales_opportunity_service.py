import pytest

from quotation.models.sales_opportunity import SalesOpportunity
from quotation.schemas.quote import QuoteCreate
from quotation.schemas.sales_opportunity import SalesOpportunityCreate, SalesOpportunityUpdate
from quotation.services import quote_service, sales_opportunity_service
from quotation.utils.errors import NotFound, OperationNotAllowed
from tests.conftest import history_rows


def test_create_sales_opportunity(db, seed_users, seed_client):
    opportunity = sales_opportunity_service.create_sales_opportunity(
        db, SalesOpportunityCreate(client_id=seed_client.id, keyword="Dach"), seed_users["sales"]
    )

    assert opportunity.created_by == seed_users["sales"].id
    assert opportunity.client_name == "Muster GmbH"
    assert opportunity.quotes_count == 0
    assert history_rows(db, "sales_opportunities", opportunity.id)[0].action == "INSERT"


def test_create_requires_existing_client(db, seed_users):
    with pytest.raises(NotFound):
        sales_opportunity_service.create_sales_opportunity(
            db, SalesOpportunityCreate(client_id=404), seed_users["sales"]
        )


def test_save_tracks_modified_by(db, seed_users, seed_opportunity):
    saved = sales_opportunity_service.save_sales_opportunity(
        db, seed_opportunity.id, SalesOpportunityUpdate(status="won"), seed_users["other"]
    )

    assert saved.status == "won"
    assert saved.modified_by == seed_users["other"].id
    entry = history_rows(db, "sales_opportunities", seed_opportunity.id)[0]
    assert entry.changed_fields == {"status": {"old": "in_progress", "new": "won"}}


def test_delete_refused_while_quotes_exist(db, seed_users, seed_opportunity, seed_languages):
    quote_service.create_quote(
        db,
        QuoteCreate(sales_opportunity_id=seed_opportunity.id, language_id=seed_languages["de"].id),
        seed_users["sales"],
    )

    with pytest.raises(OperationNotAllowed):
        sales_opportunity_service.delete_sales_opportunity(db, seed_opportunity.id, seed_users["sales"])

    db.expire_all()
    assert db.get(SalesOpportunity, seed_opportunity.id).deleted is False


def test_delete_and_restore(db, seed_users, seed_opportunity):
    sales_opportunity_service.delete_sales_opportunity(db, seed_opportunity.id, seed_users["sales"])
    with pytest.raises(NotFound):
        sales_opportunity_service.get_sales_opportunity_with_change_attribution(db, seed_opportunity.id)

    restored = sales_opportunity_service.restore_sales_opportunity(db, seed_opportunity.id, seed_users["sales"])
    assert restored.deleted is False
    history = sales_opportunity_service.get_sales_opportunity_change_history(db, seed_opportunity.id)
    assert [entry["action"] for entry in history] == ["UPDATE", "DELETE"]


def test_copy_resets_status_and_crm_link(db, seed_users, seed_opportunity):
    copy = sales_opportunity_service.copy_sales_opportunity(db, seed_opportunity.id, seed_users["other"])

    assert copy.keyword == "Neubau Halle 3 (Kopie)"
    assert copy.status == "open"
    assert copy.crm_id is None
    assert copy.created_by == seed_users["other"].id
    assert history_rows(db, "sales_opportunities", copy.id)[0].change_metadata == {
        "originalEntityId": seed_opportunity.id
    }


def test_saving_deleted_opportunity_writes_nothing(db, seed_users, seed_opportunity):
    sales_opportunity_service.delete_sales_opportunity(db, seed_opportunity.id, seed_users["sales"])
    before = len(history_rows(db))

    with pytest.raises(NotFound):
        sales_opportunity_service.save_sales_opportunity(
            db, seed_opportunity.id, SalesOpportunityUpdate(keyword="Neu"), seed_users["sales"]
        )

    db.expire_all()
    assert db.get(SalesOpportunity, seed_opportunity.id).keyword == "Neubau Halle 3"
    assert len(history_rows(db)) == before
