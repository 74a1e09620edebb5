"""Sales opportunity service."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from quotation.database import atomic
from quotation.models.client import Client
from quotation.models.quote import Quote
from quotation.models.sales_opportunity import SalesOpportunity
from quotation.models.user import User
from quotation.schemas.sales_opportunity import SalesOpportunityCreate, SalesOpportunityUpdate
from quotation.services.audit_service import EntityType, sales_opportunity_operations
from quotation.services.history_service import get_entity_history, get_last_changed_by
from quotation.services.lock_service import check_editable
from quotation.utils.errors import NotFound, OperationNotAllowed, persistence_errors
from quotation.utils.permissions import require_user

logger = logging.getLogger(__name__)


def _active_quotes(db: Session, sales_opportunity_id: int):
    return db.query(Quote).filter(
        Quote.sales_opportunity_id == sales_opportunity_id,
        Quote.deleted == False,  # noqa: E712
    )


def _require_client(db: Session, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id, Client.deleted == False).first()  # noqa: E712
    if not client:
        raise NotFound("Client not found", client_id)
    return client


def list_sales_opportunities(db: Session, include_deleted: bool = False) -> List[SalesOpportunity]:
    query = db.query(SalesOpportunity)
    if not include_deleted:
        query = query.filter(SalesOpportunity.deleted == False)  # noqa: E712
    return query.order_by(SalesOpportunity.updated_at.desc(), SalesOpportunity.id.desc()).all()


def _active_opportunity(db: Session, sales_opportunity_id: int) -> SalesOpportunity:
    opportunity = sales_opportunity_operations.get(db, sales_opportunity_id)
    if opportunity.deleted:
        raise NotFound("Sales opportunity not found", sales_opportunity_id)
    return opportunity


def get_sales_opportunity_with_change_attribution(db: Session, sales_opportunity_id: int) -> SalesOpportunity:
    opportunity = _active_opportunity(db, sales_opportunity_id)
    client = db.query(Client).filter(Client.id == opportunity.client_id).first()
    opportunity.client_name = client.name if client else None
    opportunity.quotes_count = _active_quotes(db, sales_opportunity_id).count()
    opportunity.last_changed_by = get_last_changed_by(db, EntityType.SALES_OPPORTUNITIES, sales_opportunity_id)
    return opportunity


def create_sales_opportunity(
    db: Session,
    data: SalesOpportunityCreate,
    acting_user: Optional[User],
) -> SalesOpportunity:
    user = require_user(acting_user)
    _require_client(db, data.client_id)
    payload = data.model_dump()
    payload.update(created_by=user.id, modified_by=user.id)
    with persistence_errors("Failed to create sales opportunity"):
        opportunity = sales_opportunity_operations.create(db, payload, user.id)
    return get_sales_opportunity_with_change_attribution(db, opportunity.id)


def save_sales_opportunity(
    db: Session,
    sales_opportunity_id: int,
    data: SalesOpportunityUpdate,
    acting_user: Optional[User],
) -> SalesOpportunity:
    user = require_user(acting_user)
    payload = data.model_dump(exclude_none=True)
    if "client_id" in payload:
        _require_client(db, payload["client_id"])
    with persistence_errors("Failed to save sales opportunity"), atomic(db):
        check_editable(db, EntityType.SALES_OPPORTUNITIES, sales_opportunity_id, user, lock_row=True)
        _active_opportunity(db, sales_opportunity_id)
        sales_opportunity_operations.update(
            db, sales_opportunity_id, payload, user.id, touch={"modified_by": user.id}
        )
    return get_sales_opportunity_with_change_attribution(db, sales_opportunity_id)


def delete_sales_opportunity(db: Session, sales_opportunity_id: int, acting_user: Optional[User]) -> SalesOpportunity:
    """Soft delete. Refused while the opportunity still has active quotes."""
    user = require_user(acting_user)
    with persistence_errors("Failed to delete sales opportunity"), atomic(db):
        check_editable(db, EntityType.SALES_OPPORTUNITIES, sales_opportunity_id, user, lock_row=True)
        if _active_quotes(db, sales_opportunity_id).count():
            raise OperationNotAllowed("Sales opportunity cannot be deleted while quotes exist")
        opportunity = sales_opportunity_operations.delete(db, sales_opportunity_id, user.id)
    logger.info("Sales opportunity %s deleted by user %s", sales_opportunity_id, user.id)
    return opportunity


def restore_sales_opportunity(db: Session, sales_opportunity_id: int, acting_user: Optional[User]) -> SalesOpportunity:
    user = require_user(acting_user)
    with persistence_errors("Failed to restore sales opportunity"), atomic(db):
        check_editable(db, EntityType.SALES_OPPORTUNITIES, sales_opportunity_id, user, lock_row=True)
        sales_opportunity_operations.restore(db, sales_opportunity_id, user.id)
    return get_sales_opportunity_with_change_attribution(db, sales_opportunity_id)


def copy_sales_opportunity(
    db: Session,
    original_sales_opportunity_id: int,
    acting_user: Optional[User],
) -> SalesOpportunity:
    """Copy an opportunity as a fresh open one without CRM link. Quotes are not copied."""
    user = require_user(acting_user)
    original = get_sales_opportunity_with_change_attribution(db, original_sales_opportunity_id)
    payload = {
        "client_id": original.client_id,
        "crm_id": None,
        "keyword": f"{original.keyword} (Kopie)" if original.keyword else "Kopie",
        "status": "open",
        "business_area": original.business_area,
        "sales_representative": original.sales_representative,
        "quote_volume": original.quote_volume,
        "order_inventory_specification": original.order_inventory_specification,
        "created_by": user.id,
        "modified_by": user.id,
    }
    with persistence_errors("Failed to copy sales opportunity"):
        copy = sales_opportunity_operations.create(
            db, payload, user.id, metadata={"originalEntityId": original.id}
        )
    return get_sales_opportunity_with_change_attribution(db, copy.id)


def get_sales_opportunity_change_history(
    db: Session,
    sales_opportunity_id: int,
    limit: Optional[int] = None,
) -> List[dict]:
    sales_opportunity_operations.get(db, sales_opportunity_id)
    return get_entity_history(db, EntityType.SALES_OPPORTUNITIES, sales_opportunity_id, limit)
