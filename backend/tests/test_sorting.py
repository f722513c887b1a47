"""Tests for composite item ordering, series collapsing and series sorting."""
from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.shelf_api.domain import (  # noqa: E402
    AuthorRef,
    LibraryItem,
    Media,
    MediaMetadata,
    Series,
    SeriesRef,
)
from backend.shelf_api.services.projection import ProjectionContext, project_item  # noqa: E402
from backend.shelf_api.services.series import (  # noqa: E402
    build_series_summaries,
    collapse_book_series,
)
from backend.shelf_api.services.sorting import (  # noqa: E402
    SortRequest,
    build_sort_keys,
    sort_items,
    sort_series,
)
from backend.shelf_api.utils.text import title_prefix_at_end  # noqa: E402

PREFIXES = ["the", "a"]

SERIES = {
    "s-disc": Series(id="s-disc", name="Discworld", added_at=5),
    "s-expanse": Series(id="s-expanse", name="The Expanse", added_at=1),
}


def make_book(
    item_id: str,
    title: str,
    *,
    authors: tuple[str, ...] = (),
    series: tuple[tuple[str, str | None], ...] = (),
    added_at: int = 0,
    duration: float = 0.0,
) -> LibraryItem:
    return LibraryItem(
        id=item_id,
        library_id="lib-books",
        media_type="book",
        media=Media(
            metadata=MediaMetadata(
                title=title,
                title_ignore_prefix=title_prefix_at_end(title, PREFIXES),
                authors=tuple(AuthorRef(id=f"a-{name}", name=name) for name in authors),
                series=tuple(
                    SeriesRef(id=series_id, name=SERIES[series_id].name, sequence=sequence)
                    for series_id, sequence in series
                ),
            ),
            duration=duration,
        ),
        added_at=added_at,
    )


def ids(items: list[LibraryItem]) -> list[str]:
    return [item.id for item in items]


def test_no_sort_and_no_filter_keeps_input_order() -> None:
    items = [make_book("b", "Zeta"), make_book("a", "Alpha")]

    assert build_sort_keys(SortRequest()) == []
    assert ids(sort_items(items, SortRequest())) == ["b", "a"]


def test_title_sort_is_natural_and_stable() -> None:
    items = [
        make_book("1", "Book 10"),
        make_book("2", "book 2"),
        make_book("3", "Book 2"),
    ]

    ordered = sort_items(items, SortRequest(sort_by="media.metadata.title"))

    assert ids(ordered) == ["2", "3", "1"]


def test_descending_sort_keeps_ties_in_input_order() -> None:
    items = [
        make_book("1", "Same"),
        make_book("2", "Other"),
        make_book("3", "Same"),
    ]

    ordered = sort_items(items, SortRequest(sort_by="media.metadata.title", descending=True))

    assert ids(ordered) == ["1", "3", "2"]


def test_ignore_prefix_uses_prefix_free_title() -> None:
    items = [make_book("1", "The Zebra"), make_book("2", "Monkey")]

    plain = sort_items(items, SortRequest(sort_by="media.metadata.title"))
    ignoring = sort_items(items, SortRequest(sort_by="media.metadata.title", ignore_prefix=True))

    assert ids(plain) == ["2", "1"]
    assert ids(ignoring) == ["2", "1"]

    articles = [make_book("1", "The Apple"), make_book("2", "Banana")]
    request = SortRequest(sort_by="media.metadata.title", ignore_prefix=True)
    assert ids(sort_items(articles, request)) == ["1", "2"]


def test_author_sort_breaks_ties_by_series_sort_title() -> None:
    items = [
        make_book("1", "X", authors=("Pratchett",), series=(("s-disc", "10"),)),
        make_book("2", "Y", authors=("Pratchett",), series=(("s-disc", "2"),)),
        make_book("3", "Z", authors=("Adams",)),
    ]

    ordered = sort_items(items, SortRequest(sort_by="media.metadata.authorName"))

    assert ids(ordered) == ["3", "2", "1"]


def test_unknown_selector_keeps_input_order() -> None:
    items = [make_book("b", "Zeta"), make_book("a", "Alpha")]

    assert ids(sort_items(items, SortRequest(sort_by="media.metadata.unknown"))) == ["b", "a"]


def test_filter_series_orders_by_sequence_then_title() -> None:
    items = [
        make_book("1", "Third", series=(("s-disc", "10"),)),
        make_book("2", "First", series=(("s-disc", "2"),)),
        make_book("3", "Beta", series=(("s-disc", None),)),
        make_book("4", "Alpha", series=(("s-disc", None),)),
    ]

    ordered = sort_items(items, SortRequest(filter_series="s-disc"))

    assert ids(ordered) == ["4", "3", "2", "1"]


def test_sequence_selector_requires_filter_series() -> None:
    items = [
        make_book("1", "A", series=(("s-disc", "3"),)),
        make_book("2", "B", series=(("s-disc", "1"),)),
    ]

    by_sequence = sort_items(items, SortRequest(sort_by="sequence", filter_series="s-disc"))
    without_filter = sort_items(items, SortRequest(sort_by="sequence"))

    assert ids(by_sequence) == ["2", "1"]
    assert ids(without_filter) == ["1", "2"]


def test_collapse_series_replaces_books_with_one_row() -> None:
    items = [
        make_book("1", "Guards! Guards!", series=(("s-disc", "8"),), duration=10.0),
        make_book("2", "Standalone"),
        make_book("3", "The Colour of Magic", series=(("s-disc", "1"),), duration=5.0),
    ]

    rows = collapse_book_series(items, SERIES.get, prefixes=PREFIXES)

    assert ids(rows) == ["3", "2"]
    collapsed = rows[0].collapsed_series
    assert collapsed is not None
    assert collapsed.name == "Discworld"
    assert [book.id for book in collapsed.books] == ["3", "1"]
    assert collapsed.total_duration == 15.0
    assert items[2].collapsed_series is None


def test_collapse_keeps_filter_series_books_as_rows() -> None:
    items = [
        make_book("1", "One", series=(("s-disc", "1"), ("s-expanse", "1"))),
        make_book("2", "Two", series=(("s-disc", "2"), ("s-expanse", "2"))),
        make_book("3", "Three", series=(("s-disc", "3"),)),
    ]

    rows = collapse_book_series(items, SERIES.get, prefixes=PREFIXES, filter_series="s-disc")

    assert len(rows) == 2
    assert rows[0].collapsed_series is not None
    assert rows[0].collapsed_series.id == "s-expanse"
    assert rows[1].id == "3"
    assert rows[1].collapsed_series is None


def test_collapsed_rows_sort_by_series_name_for_title_sort() -> None:
    items = [
        make_book("1", "Aardvark", series=(("s-disc", "1"),)),
        make_book("2", "Zoo"),
        make_book("3", "Cats"),
    ]
    rows = collapse_book_series(items, SERIES.get, prefixes=PREFIXES)

    ordered = sort_items(
        rows, SortRequest(sort_by="media.metadata.title", collapse_series=True)
    )

    assert ids(ordered) == ["3", "1", "2"]


def test_hide_single_book_series_skips_small_groups() -> None:
    items = [
        make_book("1", "One", series=(("s-disc", "1"),)),
        make_book("2", "Two", series=(("s-expanse", "1"),)),
        make_book("3", "Three", series=(("s-expanse", "2"),)),
    ]

    summaries = build_series_summaries(
        items, SERIES.get, prefixes=PREFIXES, hide_single_book_series=True
    )

    assert [summary.id for summary in summaries] == ["s-expanse"]
    assert summaries[0].name_ignore_prefix == "Expanse, The"
    assert summaries[0].name_ignore_prefix_sort == "Expanse"


def test_series_sorting_by_name_and_book_count() -> None:
    items = [
        make_book("1", "One", series=(("s-expanse", "1"),)),
        make_book("2", "Two", series=(("s-disc", "1"),)),
        make_book("3", "Three", series=(("s-disc", "2"),)),
    ]
    summaries = build_series_summaries(items, SERIES.get, prefixes=PREFIXES)

    by_name = sort_series(summaries, sort_by=None, descending=False, ignore_prefix=False)
    by_name_ignoring = sort_series(summaries, sort_by=None, descending=False, ignore_prefix=True)
    by_count = sort_series(summaries, sort_by="numBooks", descending=True, ignore_prefix=False)

    assert [summary.id for summary in by_name] == ["s-disc", "s-expanse"]
    assert [summary.id for summary in by_name_ignoring] == ["s-disc", "s-expanse"]
    assert [summary.id for summary in by_count] == ["s-disc", "s-expanse"]
    by_added = sort_series(summaries, sort_by="addedAt", descending=False, ignore_prefix=False)
    assert [summary.id for summary in by_added] == ["s-expanse", "s-disc"]


def test_non_title_sort_places_collapsed_rows_after_plain_rows() -> None:
    items = [
        make_book("1", "Mort", series=(("s-disc", "4"),), added_at=1),
        make_book("2", "Good Omens", added_at=3),
        make_book("3", "Nation", added_at=2),
    ]
    rows = collapse_book_series(items, SERIES.get, prefixes=PREFIXES)

    ordered = sort_items(rows, SortRequest(sort_by="addedAt", collapse_series=True))

    assert ids(ordered) == ["3", "2", "1"]
    assert ordered[2].collapsed_series is not None


def test_collapsed_row_lists_filter_series_sequences() -> None:
    disc_sequences = ["8", "2", "5", "1", "7", "3"]
    items = [
        make_book(
            str(index),
            f"Book {index}",
            series=(("s-disc", sequence), ("s-expanse", str(index))),
        )
        for index, sequence in enumerate(disc_sequences, start=1)
    ]
    rows = collapse_book_series(items, SERIES.get, prefixes=PREFIXES, filter_series="s-disc")

    assert len(rows) == 1
    payload = project_item(rows[0], ProjectionContext(filter_series="s-disc"))

    assert payload["collapsedSeries"]["id"] == "s-expanse"
    assert payload["collapsedSeries"]["numBooks"] == 6
    assert payload["collapsedSeries"]["seriesSequenceList"] == "1-3, 5, 7-8"
