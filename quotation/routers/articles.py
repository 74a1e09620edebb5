"""Article endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quotation.database import get_db
from quotation.middleware.auth_middleware import get_current_user, require_roles
from quotation.models.user import User
from quotation.schemas.article import ArticleCopyRequest, ArticleCreate, ArticleDetailOut, ArticleOut, ArticleUpdate
from quotation.schemas.audit import ChangeHistoryOut
from quotation.schemas.content import BlockContentOut, ContentSaveRequest
from quotation.services import article_service
from quotation.utils.permissions import EDITOR_ROLES

router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.get("", response_model=List[ArticleOut])
def list_articles(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return article_service.list_articles(db)


@router.post("", response_model=ArticleDetailOut)
def create_article(
    data: ArticleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return article_service.create_article(db, data, current_user)


@router.post("/copy", response_model=ArticleDetailOut)
def copy_article(
    data: ArticleCopyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return article_service.copy_article(db, data.original_article_id, current_user)


@router.get("/{article_id}", response_model=ArticleDetailOut)
def get_article(article_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return article_service.get_article_with_change_attribution(db, article_id)


@router.put("/{article_id}", response_model=ArticleDetailOut)
def save_article(
    article_id: int,
    data: ArticleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return article_service.save_article(db, article_id, data, current_user)


@router.put("/{article_id}/content", response_model=List[BlockContentOut])
def save_article_content(
    article_id: int,
    data: ContentSaveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    return article_service.save_article_content(db, article_id, data.contents, current_user)


@router.delete("/{article_id}")
def delete_article(
    article_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
):
    article_service.delete_article(db, article_id, current_user)
    return {"message": "Article deleted"}


@router.get("/{article_id}/history", response_model=List[ChangeHistoryOut])
def article_history(
    article_id: int,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return article_service.get_article_change_history(db, article_id, limit)
