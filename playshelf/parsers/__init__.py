"""Data models and IGDB payload parsers."""

from .igdb_models import IGDBGame, IGDBPlatform, IGDBFranchise, TwitchTokenResponse
from .igdb_parser import IGDBParser
from .models import (
    PlatformRef,
    GenreRef,
    StoreLink,
    CatalogItem,
    PlatformRecord,
    FranchiseRecord,
    ProviderCredentials,
    TokenRecord,
    ImportRequest,
    MatchKind,
    Imported,
    NeedsReview,
    ImportOutcome,
    BulkImportResult,
    LocalCatalogRecord,
    GenreRecord,
)

__all__ = [
    "IGDBGame",
    "IGDBPlatform",
    "IGDBFranchise",
    "TwitchTokenResponse",
    "IGDBParser",
    "PlatformRef",
    "GenreRef",
    "StoreLink",
    "CatalogItem",
    "PlatformRecord",
    "FranchiseRecord",
    "ProviderCredentials",
    "TokenRecord",
    "ImportRequest",
    "MatchKind",
    "Imported",
    "NeedsReview",
    "ImportOutcome",
    "BulkImportResult",
    "LocalCatalogRecord",
    "GenreRecord",
]
