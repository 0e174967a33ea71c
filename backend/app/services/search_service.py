"""
Product discovery: browse and proximity search.

Browse mode filters by status, category and price range and sorts by
recency or price. Search mode matches a keyword against name, description
and category, keeps only active products within a radius of the caller's
location and always ranks by distance, nearest first.
"""
import logging
import math
from typing import List, Optional

from app.core.config import settings
from app.core.errors import ValidationError
from app.models.product import Category, ProductStatus
from app.models.query import CatalogPage, GeoQuery, ProductFilter, SortOrder
from app.repositories.base import CatalogStore
from app.utils.geolocation import parse_location

logger = logging.getLogger(__name__)

MAX_KEYWORD_LENGTH = 100


def validate_pagination(page: int, limit: int) -> None:
    """Reject out-of-range pagination instead of clamping it."""
    errors = []
    if page < 1:
        errors.append("page: Page must be at least 1")
    if not 1 <= limit <= settings.MAX_PAGE_SIZE:
        errors.append(f"limit: Limit must be between 1 and {settings.MAX_PAGE_SIZE}")
    if errors:
        raise ValidationError("Invalid pagination", errors=errors)


def validate_price_range(min_price: Optional[float], max_price: Optional[float]) -> None:
    errors: List[str] = []
    for field, value in (("minPrice", min_price), ("maxPrice", max_price)):
        if value is not None and (not math.isfinite(value) or value < 0):
            errors.append(f"{field}: Price bound must be a non-negative number")
    if not errors and min_price is not None and max_price is not None and min_price > max_price:
        errors.append("minPrice: Minimum price cannot exceed maximum price")
    if errors:
        raise ValidationError("Invalid price range", errors=errors)


def parse_category(category: Optional[str]) -> Optional[Category]:
    if category is None:
        return None
    try:
        return Category(category)
    except ValueError:
        allowed = ", ".join(c.value for c in Category)
        raise ValidationError("Invalid category", errors=[f"category: Must be one of {allowed}"])


def normalize_keyword(keyword: Optional[str]) -> str:
    term = (keyword or "").strip()
    if not term:
        raise ValidationError("Invalid search term", errors=["search: Search term is required"])
    if len(term) > MAX_KEYWORD_LENGTH:
        raise ValidationError(
            "Invalid search term",
            errors=[f"search: Search term cannot exceed {MAX_KEYWORD_LENGTH} characters"]
        )
    return term


def distance_to_meters(max_distance_km: Optional[float]) -> float:
    if max_distance_km is None:
        max_distance_km = settings.DEFAULT_SEARCH_RADIUS_KM
    if not math.isfinite(max_distance_km) or not 1 <= max_distance_km <= settings.MAX_SEARCH_RADIUS_KM:
        raise ValidationError(
            "Invalid distance",
            errors=[f"maxDistance: Max distance must be between 1 and {settings.MAX_SEARCH_RADIUS_KM:g} km"]
        )
    return max_distance_km * 1000


class SearchService:
    """Translates discovery parameters into catalog queries."""

    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog

    async def browse(
        self,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: SortOrder = SortOrder.NEWEST,
        page: int = 1,
        limit: Optional[int] = None,
        status: ProductStatus = ProductStatus.ACTIVE
    ) -> CatalogPage:
        limit = settings.DEFAULT_PAGE_SIZE if limit is None else limit
        validate_pagination(page, limit)
        validate_price_range(min_price, max_price)

        product_filter = ProductFilter(
            status=status,
            category=parse_category(category),
            min_price=min_price,
            max_price=max_price
        )
        items, total = await self.catalog.query(product_filter, sort_by, page, limit)
        return CatalogPage(items=items, total=total, page=page, limit=limit)

    async def browse_category(self, category: str, page: int = 1, limit: Optional[int] = None) -> CatalogPage:
        parse_category(category)
        return await self.browse(category=category, page=page, limit=limit)

    async def search(
        self,
        keyword: Optional[str],
        loc: Optional[str],
        category: Optional[str] = None,
        max_distance_km: Optional[float] = None,
        page: int = 1,
        limit: Optional[int] = None
    ) -> CatalogPage:
        """
        Keyword search ranked by distance from `loc` ("lat,lng").

        All input is validated before the catalog is queried.
        """
        limit = settings.DEFAULT_PAGE_SIZE if limit is None else limit
        term = normalize_keyword(keyword)
        lat, lng = parse_location(loc)
        geo = GeoQuery(lat=lat, lng=lng, max_distance_m=distance_to_meters(max_distance_km))
        validate_pagination(page, limit)

        product_filter = ProductFilter(
            status=ProductStatus.ACTIVE,
            category=parse_category(category),
            keyword=term
        )
        logger.debug("Searching %r within %.0fm of (%s, %s)", term, geo.max_distance_m, lat, lng)
        items, total = await self.catalog.search_near(product_filter, geo, page, limit)
        return CatalogPage(items=items, total=total, page=page, limit=limit)
