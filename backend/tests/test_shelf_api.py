"""Integration tests for the Shelfarr library API application factory."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.shelf_api import create_app  # noqa: E402
from backend.shelf_api.models import (  # noqa: E402
    AuthorRecord,
    FeedRecord,
    LibraryItemRecord,
    LibraryRecord,
    MediaProgressRecord,
    SeriesRecord,
)
from backend.shelf_api.schemas import ServerConfigModel  # noqa: E402
from backend.shelf_api.settings import ShelfSettings  # noqa: E402
from backend.shelf_api.utils.text import encode_filter_value  # noqa: E402

PRATCHETT = {"id": "a-prat", "name": "Terry Pratchett"}
COREY = {"id": "a-corey", "name": "James S. A. Corey"}


def book_media(
    title: str,
    *,
    author: dict[str, str],
    narrator: str,
    series: tuple[str, str, str] | None = None,
    genres: tuple[str, ...] = (),
    duration: float = 0.0,
) -> dict[str, object]:
    series_entries = []
    if series is not None:
        series_id, name, sequence = series
        series_entries.append({"id": series_id, "name": name, "sequence": sequence})
    return {
        "metadata": {
            "title": title,
            "authors": [author],
            "narrators": [narrator],
            "series": series_entries,
            "genres": list(genres),
            "language": "English",
        },
        "tags": [],
        "duration": duration,
    }


def seed_library(client: TestClient) -> None:
    """Populate a book library and a podcast library with a handful of records."""

    engine = client.app.state.app_state.engine
    with Session(engine) as session:
        session.add(LibraryRecord(id="lib-books", name="Books", media_type="book", display_order=1))
        session.add(LibraryRecord(id="lib-pods", name="Podcasts", media_type="podcast", display_order=2))
        session.add(AuthorRecord(id="a-prat", name="Terry Pratchett"))
        session.add(AuthorRecord(id="a-corey", name="James S. A. Corey"))
        session.add(SeriesRecord(id="s-disc", name="Discworld", added_at=10))
        session.add(SeriesRecord(id="s-exp", name="The Expanse", added_at=20))
        disc = ("s-disc", "Discworld")
        expanse = ("s-exp", "The Expanse")
        items = [
            ("b1", "Guards! Guards!", PRATCHETT, "Nigel Planer", (*disc, "8"), ("Fantasy",), 100.0),
            ("b2", "The Colour of Magic", PRATCHETT, "Nigel Planer", (*disc, "1"), ("Fantasy",), 50.0),
            ("b3", "Leviathan Wakes", COREY, "Jefferson Mays", (*expanse, "1"), ("Science Fiction",), 70.0),
            ("b4", "Caliban's War", COREY, "Jefferson Mays", (*expanse, "2"), (), 80.0),
            ("b5", "Good Omens", PRATCHETT, "Stephen Fry", None, ("Fantasy",), 30.0),
        ]
        for added_at, (item_id, title, author, narrator, series, genres, duration) in enumerate(items, start=1):
            session.add(
                LibraryItemRecord(
                    id=item_id,
                    library_id="lib-books",
                    media_type="book",
                    media=book_media(
                        title,
                        author=author,
                        narrator=narrator,
                        series=series,
                        genres=genres,
                        duration=duration,
                    ),
                    added_at=added_at,
                    updated_at=added_at,
                )
            )
        session.add(
            LibraryItemRecord(
                id="p1",
                library_id="lib-pods",
                media_type="podcast",
                media={
                    "metadata": {"title": "Hardcore History", "author": "Dan Carlin"},
                    "episodes": [
                        {"id": "e1", "title": "Episode 1", "duration": 3600},
                        {"id": "e2", "title": "Episode 2", "duration": 3600},
                    ],
                },
                added_at=1,
            )
        )
        session.add(MediaProgressRecord(user_id="root", library_item_id="b2", progress=1.0, is_finished=True))
        session.add(MediaProgressRecord(user_id="root", library_item_id="b3", progress=0.5))
        session.add(
            MediaProgressRecord(
                user_id="root", library_item_id="p1", episode_id="e1", progress=1.0, is_finished=True
            )
        )
        session.add(
            FeedRecord(
                id="f-1",
                entity_type="series",
                entity_id="s-disc",
                slug="discworld",
                feed_url="http://localhost/feed/discworld",
            )
        )
        session.commit()


@pytest.fixture()
def client(tmp_path: Path) -> TestClient:
    """Provide a test client backed by an isolated, seeded SQLite database."""

    db_path = tmp_path / "shelfarr.db"
    settings = ShelfSettings(database_url=f"sqlite:///{db_path}")
    test_client = TestClient(create_app(settings=settings))
    seed_library(test_client)
    return test_client


def result_ids(response) -> list[str]:
    return [row["id"] for row in response.json()["results"]]


def test_health_endpoint_reports_ok_status(client: TestClient) -> None:
    """The /health endpoint should respond with an OK status payload."""

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "0.1.0"}


def test_config_round_trip_normalizes_prefixes(client: TestClient) -> None:
    """PUT /config should persist updates and lower-case the prefix list."""

    put_response = client.put(
        "/config", json={"sorting_ignore_prefix": True, "sorting_prefixes": [" The ", "An", ""]}
    )
    assert put_response.status_code == 200

    updated = ServerConfigModel.model_validate(client.get("/config").json())
    assert updated.sorting_ignore_prefix is True
    assert updated.sorting_prefixes == ["the", "an"]


def test_libraries_are_listed_in_display_order(client: TestClient) -> None:
    response = client.get("/libraries")

    assert response.status_code == 200
    libraries = response.json()["libraries"]
    assert [library["id"] for library in libraries] == ["lib-books", "lib-pods"]
    assert libraries[1]["mediaType"] == "podcast"


def test_missing_library_returns_404(client: TestClient) -> None:
    response = client.get("/libraries/unknown/items")

    assert response.status_code == 404
    assert response.json()["detail"] == "Library not found"


def test_items_default_to_insertion_order(client: TestClient) -> None:
    response = client.get("/libraries/lib-books/items")

    assert response.status_code == 200
    payload = response.json()
    assert result_ids(response) == ["b1", "b2", "b3", "b4", "b5"]
    assert payload["total"] == 5
    assert payload["mediaType"] == "book"
    assert payload["sortBy"] is None
    assert payload["results"][0]["media"]["metadata"]["authors"] == [PRATCHETT]


def test_items_sort_by_title_honors_prefix_setting(client: TestClient) -> None:
    params = {"sort": "media.metadata.title"}

    plain = client.get("/libraries/lib-books/items", params=params)
    client.put("/config", json={"sorting_ignore_prefix": True})
    ignoring = client.get("/libraries/lib-books/items", params=params)

    assert result_ids(plain) == ["b4", "b5", "b1", "b3", "b2"]
    assert result_ids(ignoring) == ["b4", "b2", "b5", "b1", "b3"]


def test_items_pagination_and_descending_sort(client: TestClient) -> None:
    response = client.get(
        "/libraries/lib-books/items",
        params={"sort": "media.duration", "desc": "1", "limit": "2", "page": "1"},
    )

    payload = response.json()
    assert result_ids(response) == ["b3", "b2"]
    assert payload["total"] == 5
    assert payload["limit"] == 2
    assert payload["page"] == 1
    assert payload["sortDesc"] is True


def test_series_filter_orders_by_sequence(client: TestClient) -> None:
    response = client.get(
        "/libraries/lib-books/items", params={"filter": f"series.{encode_filter_value('s-disc')}"}
    )

    assert result_ids(response) == ["b2", "b1"]
    assert response.json()["results"][0]["media"]["metadata"]["series"] == {
        "id": "s-disc",
        "name": "Discworld",
        "sequence": "1",
    }


def test_collapse_series_groups_books(client: TestClient) -> None:
    response = client.get(
        "/libraries/lib-books/items", params={"collapseseries": "1", "minified": "1"}
    )

    payload = response.json()
    assert payload["total"] == 3
    assert result_ids(response) == ["b2", "b3", "b5"]
    collapsed = payload["results"][0]["collapsedSeries"]
    assert collapsed["id"] == "s-disc"
    assert collapsed["libraryItemIds"] == ["b2", "b1"]
    assert collapsed["numBooks"] == 2
    assert "collapsedSeries" not in payload["results"][2]
    assert payload["results"][2]["media"]["metadata"]["authorName"] == "Terry Pratchett"


def test_single_collapsed_row_is_shown_uncollapsed(client: TestClient) -> None:
    response = client.get(
        "/libraries/lib-books/items",
        params={"collapseseries": "1", "filter": f"genres.{encode_filter_value('Science Fiction')}"},
    )

    assert result_ids(response) == ["b3"]
    assert "collapsedSeries" not in response.json()["results"][0]


def test_progress_filter_uses_requesting_user(client: TestClient) -> None:
    finished = f"progress.{encode_filter_value('finished')}"
    in_progress = f"progress.{encode_filter_value('in-progress')}"

    assert result_ids(client.get("/libraries/lib-books/items", params={"filter": finished})) == ["b2"]
    assert result_ids(client.get("/libraries/lib-books/items", params={"filter": in_progress})) == ["b3"]
    other_user = client.get(
        "/libraries/lib-books/items", params={"filter": finished}, headers={"X-User-Id": "guest"}
    )
    assert result_ids(other_user) == []


def test_podcast_incomplete_episode_overlay(client: TestClient) -> None:
    response = client.get(
        "/libraries/lib-pods/items", params={"include": "numEpisodesIncomplete", "minified": "1"}
    )

    row = response.json()["results"][0]
    assert row["numEpisodesIncomplete"] == 1
    assert row["media"]["numEpisodes"] == 2


def test_series_listing_sorts_and_overlays_feeds(client: TestClient) -> None:
    response = client.get("/libraries/lib-books/series", params={"include": "rssfeed"})

    payload = response.json()
    assert payload["total"] == 2
    assert result_ids(response) == ["s-disc", "s-exp"]
    discworld = payload["results"][0]
    assert [book["id"] for book in discworld["books"]] == ["b2", "b1"]
    assert [book["sequence"] for book in discworld["books"]] == ["1", "8"]
    assert discworld["totalDuration"] == 150.0
    assert discworld["rssFeed"]["slug"] == "discworld"
    assert payload["results"][1]["rssFeed"] is None


def test_series_listing_by_added_at_descending(client: TestClient) -> None:
    response = client.get("/libraries/lib-books/series", params={"sort": "addedAt", "desc": "1"})

    assert result_ids(response) == ["s-exp", "s-disc"]


def test_series_detail_with_progress(client: TestClient) -> None:
    response = client.get(
        "/libraries/lib-books/series/s-disc", params={"include": "progress,rssfeed"}
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["name"] == "Discworld"
    assert payload["progress"] == {
        "libraryItemIds": ["b1", "b2"],
        "libraryItemIdsFinished": ["b2"],
        "isFinished": False,
    }
    assert payload["rssFeed"]["feedUrl"] == "http://localhost/feed/discworld"


def test_series_detail_missing_returns_404(client: TestClient) -> None:
    response = client.get("/libraries/lib-books/series/unknown")

    assert response.status_code == 404
    assert response.json()["detail"] == "Series not found"


def test_authors_and_narrators_are_counted(client: TestClient) -> None:
    authors = client.get("/libraries/lib-books/authors").json()["authors"]
    narrators = client.get("/libraries/lib-books/narrators").json()["narrators"]

    assert [(author["name"], author["numBooks"]) for author in authors] == [
        ("James S. A. Corey", 2),
        ("Terry Pratchett", 3),
    ]
    assert [(narrator["name"], narrator["numBooks"]) for narrator in narrators] == [
        ("Jefferson Mays", 2),
        ("Nigel Planer", 2),
        ("Stephen Fry", 1),
    ]
    assert narrators[0]["id"] == encode_filter_value("Jefferson Mays")


def test_search_groups_matches_by_facet(client: TestClient) -> None:
    response = client.get("/libraries/lib-books/search", params={"q": "pratchett"})

    assert response.status_code == 200
    payload = response.json()
    assert [match["libraryItem"]["id"] for match in payload["book"]] == ["b1", "b2", "b5"]
    assert {match["matchKey"] for match in payload["book"]} == {"authors"}
    assert payload["authors"][0]["id"] == "a-prat"
    assert payload["authors"][0]["numBooks"] == 3
    assert payload["series"] == []


def test_search_limit_caps_results(client: TestClient) -> None:
    response = client.get("/libraries/lib-books/search", params={"q": "a", "limit": "2"})

    assert len(response.json()["book"]) == 2


def test_search_without_query_is_rejected(client: TestClient) -> None:
    response = client.get("/libraries/lib-books/search")

    assert response.status_code == 400
    assert response.json()["detail"] == "No query string"
