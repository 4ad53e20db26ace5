"""Parser for IGDB API responses."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from .igdb_models import (
    IGDBFranchise,
    IGDBGame,
    IGDBPlatform,
    IGDBWebsite,
    TwitchTokenResponse,
)
from .models import (
    CatalogItem,
    FranchiseRecord,
    GenreRef,
    PlatformRecord,
    PlatformRef,
    StoreLink,
)

logger = structlog.get_logger(__name__)

COVER_URL_TEMPLATE = "https://images.igdb.com/igdb/image/upload/t_{size}/{image_id}.jpg"

# Website categories that point at a storefront; everything else is ignored
WEBSITE_CATEGORY_TO_STORE: Dict[int, str] = {
    13: "steam",
    16: "epic",
    17: "gog",
}


class IGDBParser:
    """Parser and mapper for IGDB API v4 responses."""

    @staticmethod
    def parse_games(data: List[Dict[str, Any]]) -> List[IGDBGame]:
        """
        Parse a /games response.

        Args:
            data: Raw JSON array from IGDB

        Returns:
            Validated IGDBGame models
        """
        return [IGDBGame.model_validate(game) for game in data]

    @staticmethod
    def parse_platforms(data: List[Dict[str, Any]]) -> List[IGDBPlatform]:
        """Parse a /platforms response."""
        return [IGDBPlatform.model_validate(platform) for platform in data]

    @staticmethod
    def parse_franchises(data: List[Dict[str, Any]]) -> List[IGDBFranchise]:
        """Parse a /franchises response."""
        return [IGDBFranchise.model_validate(franchise) for franchise in data]

    @staticmethod
    def parse_token_response(data: Dict[str, Any]) -> TwitchTokenResponse:
        """Parse a Twitch OAuth token response."""
        return TwitchTokenResponse.model_validate(data)

    @staticmethod
    def build_cover_url(image_id: Optional[str], size: str = "cover_big") -> Optional[str]:
        """
        Build a cover image URL from an IGDB image identifier.

        Example:
            >>> IGDBParser.build_cover_url("co1wyy")
            'https://images.igdb.com/igdb/image/upload/t_cover_big/co1wyy.jpg'
        """
        if not image_id:
            return None
        return COVER_URL_TEMPLATE.format(size=size, image_id=image_id)

    @staticmethod
    def extract_store_links(websites: Optional[List[IGDBWebsite]]) -> List[StoreLink]:
        """
        Keep only website links whose category is a known storefront.

        Official sites, wikis, social links and unknown categories are dropped.
        """
        if not websites:
            return []
        return [
            StoreLink(slug=WEBSITE_CATEGORY_TO_STORE[site.category], url=site.url)
            for site in websites
            if site.category in WEBSITE_CATEGORY_TO_STORE
        ]

    @staticmethod
    def to_catalog_item(game: IGDBGame, cover_size: str = "cover_big") -> CatalogItem:
        """
        Map an IGDB game to a CatalogItem.

        Every nested collection is optional in the payload and maps to an
        empty list (or None for scalars) when absent.

        Args:
            game: Validated IGDB game
            cover_size: IGDB image size for the cover URL

        Returns:
            CatalogItem snapshot
        """
        release_date = None
        if game.first_release_date:
            release_date = datetime.fromtimestamp(game.first_release_date, tz=timezone.utc).date()

        rating = game.aggregated_rating
        if rating is None:
            rating = game.total_rating

        franchise_name = None
        if game.franchises:
            franchise_name = game.franchises[0].name

        return CatalogItem(
            provider_id=game.id,
            name=game.name,
            slug=game.slug or "",
            cover_url=IGDBParser.build_cover_url(
                game.cover.image_id if game.cover else None, cover_size
            ),
            platforms=[
                PlatformRef(
                    provider_platform_id=p.id,
                    name=p.name or "",
                    abbreviation=p.abbreviation,
                )
                for p in game.platforms or []
            ],
            franchise_name=franchise_name,
            release_date=release_date,
            rating=rating,
            genres=[GenreRef(provider_genre_id=g.id, name=g.name) for g in game.genres or []],
            store_links=IGDBParser.extract_store_links(game.websites),
            summary=game.summary,
            storyline=game.storyline,
            themes=[t.name for t in game.themes or []],
            game_modes=[m.name for m in game.game_modes or []],
        )

    @staticmethod
    def to_platform_record(platform: IGDBPlatform) -> PlatformRecord:
        """Map an IGDB platform to a PlatformRecord."""
        return PlatformRecord(
            provider_platform_id=platform.id,
            name=platform.name,
            abbreviation=platform.abbreviation,
            slug=platform.slug or "",
            platform_family=platform.platform_family.name if platform.platform_family else None,
        )

    @staticmethod
    def to_franchise_record(franchise: IGDBFranchise) -> FranchiseRecord:
        """Map an IGDB franchise to a FranchiseRecord."""
        return FranchiseRecord(
            provider_franchise_id=franchise.id,
            name=franchise.name,
            slug=franchise.slug or "",
            game_ids=list(franchise.games),
        )
