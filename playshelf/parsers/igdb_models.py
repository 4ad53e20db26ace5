"""Pydantic models for IGDB API v4 responses.

Only the fields requested by the client's Apicalypse queries are modelled.
Unknown fields are ignored so new provider fields never break parsing.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

# IGDB game category for main games (excludes DLC, bundles, mods, ...)
MAIN_GAME_CATEGORY = 0


class IGDBNamedRef(BaseModel):
    """Genre, theme or game mode reference embedded in a game."""

    id: int = Field(description="IGDB id")
    name: str = Field(default="", description="Display name")
    slug: Optional[str] = Field(default=None, description="URL slug")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }


class IGDBCover(BaseModel):
    """Cover image reference."""

    id: Optional[int] = Field(default=None, description="IGDB cover id")
    image_id: Optional[str] = Field(default=None, description="Image identifier for URL building")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }


class IGDBPlatformRef(BaseModel):
    """Platform reference embedded in a game."""

    id: int = Field(description="IGDB platform id")
    name: Optional[str] = Field(default=None, description="Platform name")
    abbreviation: Optional[str] = Field(default=None, description="Short platform name")
    slug: Optional[str] = Field(default=None, description="URL slug")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }


class IGDBFranchiseRef(BaseModel):
    """Franchise reference embedded in a game."""

    id: int = Field(description="IGDB franchise id")
    name: Optional[str] = Field(default=None, description="Franchise name")
    slug: Optional[str] = Field(default=None, description="URL slug")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }


class IGDBWebsite(BaseModel):
    """Website link attached to a game.

    Category codes: 1=official, 2=wikia, 3=wikipedia, 4=facebook,
    5=twitter, 6=twitch, 8=instagram, 9=youtube, 13=steam, 14=reddit,
    15=itch, 16=epicgames, 17=gog, 18=discord
    """

    id: Optional[int] = Field(default=None, description="IGDB website id")
    category: Optional[int] = Field(default=None, description="Website category code")
    url: str = Field(description="Website URL")
    trusted: Optional[bool] = Field(default=None, description="Verified by IGDB")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }


class IGDBGame(BaseModel):
    """Game from the /games endpoint."""

    id: int = Field(description="IGDB game id")
    name: str = Field(description="Game name")
    slug: Optional[str] = Field(default=None, description="URL slug")
    summary: Optional[str] = Field(default=None, description="Short description")
    storyline: Optional[str] = Field(default=None, description="Story synopsis")
    cover: Optional[IGDBCover] = Field(default=None, description="Cover image")
    platforms: Optional[List[IGDBPlatformRef]] = Field(default=None, description="Platforms")
    genres: Optional[List[IGDBNamedRef]] = Field(default=None, description="Genres")
    themes: Optional[List[IGDBNamedRef]] = Field(default=None, description="Themes")
    game_modes: Optional[List[IGDBNamedRef]] = Field(default=None, description="Game modes")
    franchises: Optional[List[IGDBFranchiseRef]] = Field(default=None, description="Franchises")
    websites: Optional[List[IGDBWebsite]] = Field(default=None, description="Website links")
    first_release_date: Optional[int] = Field(
        default=None, description="First release date (unix seconds)"
    )
    aggregated_rating: Optional[float] = Field(default=None, description="Critic rating 0-100")
    total_rating: Optional[float] = Field(default=None, description="Combined rating 0-100")
    category: Optional[int] = Field(default=None, description="Game category code")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }


class IGDBPlatformFamilyRef(BaseModel):
    """Platform family reference (e.g. PlayStation, Xbox)."""

    id: int = Field(description="IGDB platform family id")
    name: Optional[str] = Field(default=None, description="Family name")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }


class IGDBPlatform(BaseModel):
    """Platform from the /platforms endpoint."""

    id: int = Field(description="IGDB platform id")
    name: str = Field(description="Platform name")
    abbreviation: Optional[str] = Field(default=None, description="Short platform name")
    slug: Optional[str] = Field(default=None, description="URL slug")
    platform_family: Optional[IGDBPlatformFamilyRef] = Field(
        default=None, description="Platform family"
    )
    generation: Optional[int] = Field(default=None, description="Console generation")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }


class IGDBFranchise(BaseModel):
    """Franchise from the /franchises endpoint."""

    id: int = Field(description="IGDB franchise id")
    name: str = Field(description="Franchise name")
    slug: Optional[str] = Field(default=None, description="URL slug")
    games: List[int] = Field(default_factory=list, description="Game ids in the franchise")

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }


class TwitchTokenResponse(BaseModel):
    """Response from the Twitch client-credentials token endpoint."""

    access_token: str = Field(description="Bearer token")
    expires_in: int = Field(description="Token lifetime in seconds")
    token_type: str = Field(default="bearer", description="Token type")

    model_config = {
        "extra": "ignore",
    }
