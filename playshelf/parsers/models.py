"""Pydantic models for catalog data and import outcomes."""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class PlatformRef(BaseModel):
    """Platform a catalog item is released on."""

    provider_platform_id: int = Field(description="Provider platform id")
    name: str = Field(default="", description="Platform name")
    abbreviation: Optional[str] = Field(default=None, description="Short platform name")

    model_config = {"frozen": True, "extra": "ignore"}


class GenreRef(BaseModel):
    """Genre attached to a catalog item."""

    provider_genre_id: int = Field(description="Provider genre id")
    name: str = Field(description="Genre name")

    model_config = {"frozen": True, "extra": "ignore"}


class StoreLink(BaseModel):
    """Storefront page for a catalog item."""

    slug: str = Field(description="Store slug (steam, gog, epic)")
    url: str = Field(description="Store page URL")

    model_config = {"frozen": True, "extra": "ignore"}


class CatalogItem(BaseModel):
    """Snapshot of a provider game at fetch time.

    Items are never mutated; a re-fetch replaces the whole snapshot.
    """

    provider_id: int = Field(description="Provider game id")
    name: str = Field(description="Game name")
    slug: str = Field(default="", description="Provider URL slug")
    cover_url: Optional[str] = Field(default=None, description="Cover image URL")
    platforms: List[PlatformRef] = Field(default_factory=list, description="Release platforms")
    franchise_name: Optional[str] = Field(default=None, description="Primary franchise name")
    release_date: Optional[date] = Field(default=None, description="First release date")
    rating: Optional[float] = Field(default=None, description="Rating 0-100")
    genres: List[GenreRef] = Field(default_factory=list, description="Genres")
    store_links: List[StoreLink] = Field(default_factory=list, description="Storefront links")
    summary: Optional[str] = Field(default=None, description="Short description")
    storyline: Optional[str] = Field(default=None, description="Story synopsis")
    themes: List[str] = Field(default_factory=list, description="Theme names")
    game_modes: List[str] = Field(default_factory=list, description="Game mode names")

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def genre_names(self) -> List[str]:
        """Genre names in provider order."""
        return [genre.name for genre in self.genres]


class PlatformRecord(BaseModel):
    """Platform details from the provider's platform endpoint."""

    provider_platform_id: int = Field(description="Provider platform id")
    name: str = Field(description="Platform name")
    abbreviation: Optional[str] = Field(default=None, description="Short platform name")
    slug: str = Field(default="", description="Provider URL slug")
    platform_family: Optional[str] = Field(default=None, description="Platform family name")

    model_config = {"frozen": True, "extra": "ignore"}


class FranchiseRecord(BaseModel):
    """Franchise details from the provider's franchise endpoint."""

    provider_franchise_id: int = Field(description="Provider franchise id")
    name: str = Field(description="Franchise name")
    slug: str = Field(default="", description="Provider URL slug")
    game_ids: List[int] = Field(default_factory=list, description="Provider ids of member games")

    model_config = {"frozen": True, "extra": "ignore"}


class ProviderCredentials(BaseModel):
    """Client credentials for the provider's OAuth token endpoint."""

    client_id: str = Field(description="OAuth client id")
    client_secret: str = Field(description="OAuth client secret", repr=False)

    model_config = {"frozen": True}


class TokenRecord(BaseModel):
    """Bearer token for one account.

    expires_at is only known for freshly minted tokens; tokens served from
    the cache carry None.
    """

    account_id: str = Field(description="Account the token belongs to")
    token: str = Field(description="Bearer token", repr=False)
    client_id: str = Field(description="Client id the token was issued to")
    expires_at: Optional[datetime] = Field(default=None, description="Provider expiry time")

    model_config = {"frozen": True}


class ImportRequest(BaseModel):
    """Names to reconcile for one user, plus an optional platform."""

    raw_names: List[str] = Field(description="Free-text game names")
    user_id: str = Field(description="User whose library receives the games")
    target_platform_id: Optional[str] = Field(
        default=None, description="Local platform id to attach imported games to"
    )

    @field_validator("raw_names")
    @classmethod
    def validate_raw_names(cls, v: List[str]) -> List[str]:
        """Reject an empty batch."""
        if not v:
            raise ValueError("raw_names must contain at least one name")
        return v


class MatchKind(str, Enum):
    """How an imported game was matched."""

    EXACT = "exact"
    BEST = "best"
    SELECTED = "selected"


class Imported(BaseModel):
    """A name that was matched and written to the local catalog."""

    kind: Literal["imported"] = "imported"
    item: CatalogItem = Field(description="Matched catalog item")
    match_kind: MatchKind = Field(description="How the match was made")
    game_id: Optional[int] = Field(default=None, description="Local catalog record id")

    model_config = {"frozen": True}


class NeedsReview(BaseModel):
    """A name that needs a human to pick the right game."""

    kind: Literal["needs_review"] = "needs_review"
    search_term: str = Field(description="Trimmed input name")
    candidates: List[CatalogItem] = Field(default_factory=list, description="Search candidates")
    error: Optional[str] = Field(default=None, description="Failure message, if processing failed")

    model_config = {"frozen": True}


ImportOutcome = Annotated[Union[Imported, NeedsReview], Field(discriminator="kind")]


class BulkImportResult(BaseModel):
    """Outcomes of a bulk import, partitioned by variant."""

    imported: List[Imported] = Field(default_factory=list)
    needs_review: List[NeedsReview] = Field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: List[ImportOutcome]) -> "BulkImportResult":
        """Split a list of outcomes into imported and needs_review."""
        result = cls()
        for outcome in outcomes:
            if isinstance(outcome, Imported):
                result.imported.append(outcome)
            else:
                result.needs_review.append(outcome)
        return result


class LocalCatalogRecord(BaseModel):
    """Game row in the local catalog."""

    id: int = Field(description="Local game id")
    provider_id: int = Field(description="Provider game id")
    name: str = Field(description="Game name")
    slug: Optional[str] = Field(default=None, description="Provider URL slug")
    cover_url: Optional[str] = Field(default=None, description="Cover image URL")
    release_date: Optional[date] = Field(default=None, description="Release date")
    rating: Optional[float] = Field(default=None, description="Rating 0-100")
    franchise_name: Optional[str] = Field(default=None, description="Primary franchise name")
    summary: Optional[str] = Field(default=None, description="Short description")

    model_config = {"extra": "ignore"}

    def to_catalog_item(self) -> CatalogItem:
        """Snapshot of the stored fields as a CatalogItem (no platforms, genres or links)."""
        return CatalogItem(
            provider_id=self.provider_id,
            name=self.name,
            slug=self.slug or "",
            cover_url=self.cover_url,
            release_date=self.release_date,
            rating=self.rating,
            franchise_name=self.franchise_name,
            summary=self.summary,
        )


class GenreRecord(BaseModel):
    """Genre row in the local catalog."""

    id: int = Field(description="Local genre id")
    provider_genre_id: Optional[int] = Field(default=None, description="Provider genre id")
    name: str = Field(description="Genre name")

    model_config = {"extra": "ignore"}
