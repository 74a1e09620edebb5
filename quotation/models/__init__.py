"""SQLAlchemy model package."""

from quotation.models.user import User
from quotation.models.language import Language
from quotation.models.client import Client
from quotation.models.article import Article, ArticleCalculationItem
from quotation.models.block import Block, BlockContent
from quotation.models.sales_opportunity import SalesOpportunity
from quotation.models.quote import Quote, QuoteVariant, QuoteVersion, QuotePosition
from quotation.models.change_history import ChangeHistory

__all__ = [
    "User",
    "Language",
    "Client",
    "Article", "ArticleCalculationItem",
    "Block", "BlockContent",
    "SalesOpportunity",
    "Quote", "QuoteVariant", "QuoteVersion", "QuotePosition",
    "ChangeHistory",
]
