"""
Tests for browse and proximity search.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.core.errors import ValidationError
from app.models.query import SortOrder
from app.services.search_service import SearchService
from factories import DELHI, make_product, offset_north

DELHI_LOC = f"{DELHI[0]},{DELHI[1]}"


class TestBrowse:
    """Test browse mode."""

    @pytest.mark.asyncio
    async def test_price_desc(self, catalog):
        """Test sorting two products of a category by descending price."""
        a = await catalog.insert(make_product(name="A", price=100.0))
        b = await catalog.insert(make_product(name="B", price=200.0))

        page = await SearchService(catalog).browse(category="Electronics", sort_by=SortOrder.PRICE_DESC)

        assert [p.id for p in page.items] == [b.id, a.id]

    @pytest.mark.asyncio
    async def test_price_range_is_inclusive(self, catalog):
        for price in (10.0, 20.0, 30.0, 40.0):
            await catalog.insert(make_product(price=price))

        page = await SearchService(catalog).browse(min_price=20.0, max_price=30.0, sort_by=SortOrder.PRICE_ASC)

        assert [p.price for p in page.items] == [20.0, 30.0]
        assert page.total == 2

    @pytest.mark.asyncio
    async def test_status_filter(self, catalog):
        await catalog.insert(make_product(name="Live"))
        await catalog.insert(make_product(name="Gone", status="sold"))

        active = await SearchService(catalog).browse()
        sold = await SearchService(catalog).browse(status="sold")

        assert [p.name for p in active.items] == ["Live"]
        assert [p.name for p in sold.items] == ["Gone"]

    @pytest.mark.asyncio
    async def test_pagination_metadata(self, catalog):
        for i in range(5):
            await catalog.insert(make_product(name=f"Item {i}"))

        service = SearchService(catalog)
        first = await service.browse(page=1, limit=2)
        last = await service.browse(page=3, limit=2)

        assert first.total == 5
        assert first.total_pages == 3
        assert first.has_next is True
        assert len(last.items) == 1
        assert last.has_next is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page,limit", [(0, 20), (1, 0), (1, 101), (-1, 5)])
    async def test_out_of_range_pagination_is_rejected(self, page, limit):
        catalog = MagicMock()
        catalog.query = AsyncMock()

        with pytest.raises(ValidationError):
            await SearchService(catalog).browse(page=page, limit=limit)

        catalog.query.assert_not_called()

    @pytest.mark.asyncio
    async def test_inverted_price_range_is_rejected(self, catalog):
        with pytest.raises(ValidationError):
            await SearchService(catalog).browse(min_price=50.0, max_price=10.0)

    @pytest.mark.asyncio
    async def test_browse_category(self, catalog):
        await catalog.insert(make_product(name="Novel", category="Books"))
        await catalog.insert(make_product(name="Phone", category="Electronics"))

        page = await SearchService(catalog).browse_category("Books")

        assert [p.name for p in page.items] == ["Novel"]

    @pytest.mark.asyncio
    async def test_browse_unknown_category(self, catalog):
        with pytest.raises(ValidationError):
            await SearchService(catalog).browse_category("Spaceships")


class TestSearch:
    """Test search mode."""

    @pytest.mark.asyncio
    async def test_keyword_must_match(self, catalog):
        """Test a product is returned only when the keyword matches it."""
        product = await catalog.insert(make_product(name="Wooden dining table", description="Seats six"))
        service = SearchService(catalog)

        missing = await service.search("camera", DELHI_LOC)
        found = await service.search("DINING", DELHI_LOC)

        assert missing.items == []
        assert [p.id for p in found.items] == [product.id]

    @pytest.mark.asyncio
    async def test_matches_description_and_category(self, catalog):
        await catalog.insert(make_product(name="Thing", description="A red bicycle"))
        await catalog.insert(make_product(name="Other", category="Vehicles"))
        service = SearchService(catalog)

        assert len((await service.search("bicycle", DELHI_LOC)).items) == 1
        assert len((await service.search("vehicles", DELHI_LOC)).items) == 1

    @pytest.mark.asyncio
    async def test_ranked_by_distance_within_radius(self, catalog):
        for km in (40, 5, 120, 20, 0.5):
            await catalog.insert(make_product(name=f"Camera {km}km", lat=offset_north(km)))

        page = await SearchService(catalog).search("camera", DELHI_LOC)

        distances = [p.distance for p in page.items]
        assert distances == sorted(distances)
        assert all(d <= 50_000 for d in distances)
        assert [p.name for p in page.items] == ["Camera 0.5km", "Camera 5km", "Camera 20km", "Camera 40km"]

    @pytest.mark.asyncio
    async def test_custom_radius(self, catalog):
        await catalog.insert(make_product(name="Camera near", lat=offset_north(3)))
        await catalog.insert(make_product(name="Camera far", lat=offset_north(15)))

        page = await SearchService(catalog).search("camera", DELHI_LOC, max_distance_km=10)

        assert [p.name for p in page.items] == ["Camera near"]

    @pytest.mark.asyncio
    async def test_only_active(self, catalog):
        await catalog.insert(make_product(name="Camera", status="inactive"))

        page = await SearchService(catalog).search("camera", DELHI_LOC)

        assert page.total == 0

    @pytest.mark.asyncio
    async def test_category_filter(self, catalog):
        await catalog.insert(make_product(name="Camera book", category="Books"))
        await catalog.insert(make_product(name="Camera body", category="Electronics"))

        page = await SearchService(catalog).search("camera", DELHI_LOC, category="Books")

        assert [p.name for p in page.items] == ["Camera book"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("keyword,loc", [
        ("   ", DELHI_LOC),
        ("", DELHI_LOC),
        ("x" * 101, DELHI_LOC),
        ("camera", "1000,1000"),
        ("camera", "28.6"),
        ("camera", None),
    ])
    async def test_invalid_input_rejected_before_query(self, keyword, loc):
        catalog = MagicMock()
        catalog.search_near = AsyncMock()

        with pytest.raises(ValidationError):
            await SearchService(catalog).search(keyword, loc)

        catalog.search_near.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_distance_km", [0, 0.5, 1001, float("inf")])
    async def test_invalid_radius(self, max_distance_km):
        catalog = MagicMock()
        catalog.search_near = AsyncMock()

        with pytest.raises(ValidationError):
            await SearchService(catalog).search("camera", DELHI_LOC, max_distance_km=max_distance_km)

        catalog.search_near.assert_not_called()

    @pytest.mark.asyncio
    async def test_radius_is_sent_in_meters(self):
        catalog = MagicMock()
        catalog.search_near = AsyncMock(return_value=([], 0))

        await SearchService(catalog).search("  camera ", DELHI_LOC, max_distance_km=25)

        product_filter, geo, page, limit = catalog.search_near.call_args.args
        assert product_filter.keyword == "camera"
        assert geo.max_distance_m == 25_000
        assert (page, limit) == (1, 20)
