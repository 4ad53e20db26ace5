"""Unit tests for IGDB response parsing and mapping."""

from datetime import date

import pytest
from pydantic import ValidationError

from playshelf.parsers.igdb_models import IGDBGame
from playshelf.parsers.igdb_parser import IGDBParser
from playshelf.parsers.models import GenreRef, PlatformRef, StoreLink


@pytest.fixture
def witcher_payload():
    """IGDB /games entry with every mapped field present."""
    return {
        "id": 1942,
        "name": "The Witcher 3: Wild Hunt",
        "slug": "the-witcher-3-wild-hunt",
        "summary": "Geralt hunts monsters.",
        "storyline": "Ciri is missing.",
        "cover": {"id": 89386, "image_id": "co1wyy"},
        "platforms": [
            {"id": 6, "name": "PC (Microsoft Windows)", "abbreviation": "PC"},
            {"id": 48, "name": "PlayStation 4", "abbreviation": "PS4"},
        ],
        "genres": [{"id": 12, "name": "Role-playing (RPG)"}, {"id": 31, "name": "Adventure"}],
        "themes": [{"id": 17, "name": "Fantasy"}],
        "game_modes": [{"id": 1, "name": "Single player"}],
        "franchises": [{"id": 452, "name": "The Witcher"}, {"id": 999, "name": "Other"}],
        "websites": [
            {"id": 1, "category": 1, "url": "https://thewitcher.com"},
            {"id": 2, "category": 13, "url": "https://store.steampowered.com/app/292030"},
            {"id": 3, "category": 17, "url": "https://www.gog.com/game/the_witcher_3"},
            {"id": 4, "category": 16, "url": "https://store.epicgames.com/p/the-witcher-3"},
            {"id": 5, "category": 3, "url": "https://en.wikipedia.org/wiki/The_Witcher_3"},
        ],
        "first_release_date": 1431993600,
        "aggregated_rating": 92.4,
        "total_rating": 93.1,
        "category": 0,
        "unexpected_field": "ignored",
    }


class TestToCatalogItem:

    def test_full_mapping(self, witcher_payload):
        game = IGDBParser.parse_games([witcher_payload])[0]
        item = IGDBParser.to_catalog_item(game)

        assert item.provider_id == 1942
        assert item.name == "The Witcher 3: Wild Hunt"
        assert item.slug == "the-witcher-3-wild-hunt"
        assert item.cover_url == "https://images.igdb.com/igdb/image/upload/t_cover_big/co1wyy.jpg"
        assert item.platforms[0] == PlatformRef(
            provider_platform_id=6, name="PC (Microsoft Windows)", abbreviation="PC"
        )
        assert item.genres == [
            GenreRef(provider_genre_id=12, name="Role-playing (RPG)"),
            GenreRef(provider_genre_id=31, name="Adventure"),
        ]
        assert item.genre_names == ["Role-playing (RPG)", "Adventure"]
        assert item.release_date == date(2015, 5, 19)
        assert item.summary == "Geralt hunts monsters."
        assert item.storyline == "Ciri is missing."
        assert item.themes == ["Fantasy"]
        assert item.game_modes == ["Single player"]

    def test_franchise_is_first_listed(self, witcher_payload):
        item = IGDBParser.to_catalog_item(IGDBGame.model_validate(witcher_payload))
        assert item.franchise_name == "The Witcher"

    def test_rating_prefers_aggregated(self, witcher_payload):
        item = IGDBParser.to_catalog_item(IGDBGame.model_validate(witcher_payload))
        assert item.rating == 92.4

    def test_rating_falls_back_to_total(self, witcher_payload):
        witcher_payload["aggregated_rating"] = None
        item = IGDBParser.to_catalog_item(IGDBGame.model_validate(witcher_payload))
        assert item.rating == 93.1

    def test_only_store_websites_are_kept(self, witcher_payload):
        item = IGDBParser.to_catalog_item(IGDBGame.model_validate(witcher_payload))

        assert item.store_links == [
            StoreLink(slug="steam", url="https://store.steampowered.com/app/292030"),
            StoreLink(slug="gog", url="https://www.gog.com/game/the_witcher_3"),
            StoreLink(slug="epic", url="https://store.epicgames.com/p/the-witcher-3"),
        ]

    def test_minimal_game(self):
        item = IGDBParser.to_catalog_item(IGDBGame.model_validate({"id": 1, "name": "Pong"}))

        assert item.slug == ""
        assert item.cover_url is None
        assert item.platforms == []
        assert item.genres == []
        assert item.store_links == []
        assert item.franchise_name is None
        assert item.release_date is None
        assert item.rating is None

    def test_zero_release_date_is_absent(self):
        game = IGDBGame.model_validate({"id": 1, "name": "Pong", "first_release_date": 0})
        assert IGDBParser.to_catalog_item(game).release_date is None

    def test_custom_cover_size(self, witcher_payload):
        item = IGDBParser.to_catalog_item(IGDBGame.model_validate(witcher_payload), "thumb")
        assert item.cover_url.endswith("/t_thumb/co1wyy.jpg")

    def test_missing_name_rejected(self):
        with pytest.raises(ValidationError):
            IGDBParser.parse_games([{"id": 1}])


class TestOtherRecords:

    def test_platform_record(self):
        platform = IGDBParser.parse_platforms(
            [
                {
                    "id": 48,
                    "name": "PlayStation 4",
                    "abbreviation": "PS4",
                    "slug": "ps4--1",
                    "platform_family": {"id": 1, "name": "PlayStation"},
                }
            ]
        )[0]

        record = IGDBParser.to_platform_record(platform)

        assert record.provider_platform_id == 48
        assert record.abbreviation == "PS4"
        assert record.platform_family == "PlayStation"

    def test_franchise_record(self):
        franchise = IGDBParser.parse_franchises(
            [{"id": 452, "name": "The Witcher", "slug": "the-witcher", "games": [80, 1942]}]
        )[0]

        record = IGDBParser.to_franchise_record(franchise)

        assert record.provider_franchise_id == 452
        assert record.game_ids == [80, 1942]

    def test_token_response(self):
        token = IGDBParser.parse_token_response(
            {"access_token": "abc", "expires_in": 5184000, "token_type": "bearer"}
        )
        assert token.access_token == "abc"
        assert token.expires_in == 5184000

    def test_build_cover_url_without_image(self):
        assert IGDBParser.build_cover_url(None) is None
        assert IGDBParser.build_cover_url("") is None
