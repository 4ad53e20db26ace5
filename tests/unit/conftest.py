"""Fixtures specific to unit tests."""

from typing import Any, Callable, List, Optional

import pytest
from unittest.mock import AsyncMock

from playshelf.parsers.models import CatalogItem, GenreRef, LocalCatalogRecord


@pytest.fixture
def make_item() -> Callable[..., CatalogItem]:
    """Factory for CatalogItems with sensible defaults."""

    def _make(
        provider_id: int,
        name: str,
        genres: Optional[List[GenreRef]] = None,
        **kwargs: Any,
    ) -> CatalogItem:
        return CatalogItem(
            provider_id=provider_id,
            name=name,
            slug=name.lower().replace(" ", "-"),
            genres=genres or [],
            **kwargs,
        )

    return _make


@pytest.fixture
def mock_igdb_client() -> AsyncMock:
    """IGDB client double: empty search and no details unless configured."""
    client = AsyncMock()
    client.search.return_value = []
    client.get_details.return_value = None
    return client


@pytest.fixture
def local_record() -> LocalCatalogRecord:
    return LocalCatalogRecord(id=7, provider_id=1942, name="The Witcher 3: Wild Hunt")
