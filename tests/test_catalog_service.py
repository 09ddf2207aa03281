"""
Tests for GameCatalog loading, deduplication and limits.
"""
import pytest
from unittest.mock import Mock

from gogtiles.errors import CapacityExceeded, EmptyResult, SourceUnavailable
from gogtiles.services.catalog_service import MAX_TILES, WARN_TILES, GameCatalog
from gogtiles.stores.base import Selector


def make_source(rows):
    return Mock(source_name="Fake", fetch_rows=Mock(return_value=rows))


def title_value(title):
    return '{"title":"%s"}' % title


def many_rows(count):
    return [(f"gog_{i}", f"icon{i}.webp", title_value(f"Game {i:03d}")) for i in range(count)]


def test_load_normalizes_and_sorts():
    """Test that titles are cleaned and games come back sorted by title."""
    rows = [
        ("gog_3", "gamma.webp", title_value("Gamma")),
        ("gog_1", "alpha.webp", title_value("Alpha: Remastered")),
        ("steam_2", "beta.webp", title_value("Beta")),
    ]
    catalog = GameCatalog(make_source(rows))
    games = catalog.load(Selector.parse("StartMenuTiles"))

    assert [g.title for g in games] == ["Alpha Remastered", "Beta", "Gamma"]
    assert games[0].icon_file == "alpha.png"
    assert games[0].file_key == "gog_1"
    assert catalog.warnings == []


def test_load_passes_selector_to_source():
    source = make_source([("gog_1", "a.webp", title_value("A"))])
    selector = Selector.parse("INSTALLED")
    GameCatalog(source).load(selector)
    source.fetch_rows.assert_called_once_with(selector)


def test_duplicate_title_first_seen_wins():
    """Test that the second record with the same title is dropped with a warning."""
    rows = [
        ("gog_1", "first.webp", title_value("Doom")),
        ("steam_9", "second.webp", title_value("Doom")),
    ]
    catalog = GameCatalog(make_source(rows))
    games = catalog.load(Selector.parse("ALL"))

    assert len(games) == 1
    assert games[0].release_key == "gog_1"
    assert len(catalog.warnings) == 1
    warning = catalog.warnings[0]
    assert warning.kind == 'duplicate'
    assert "gog_1" in warning.message
    assert "steam_9" in warning.message


def test_titles_equal_after_sanitizing_are_duplicates():
    rows = [
        ("gog_1", "a.webp", title_value("Half-Life™")),
        ("gog_2", "b.webp", title_value("Half-Life")),
    ]
    games = GameCatalog(make_source(rows)).load(Selector.parse("ALL"))
    assert [g.release_key for g in games] == ["gog_1"]


def test_accepted_titles_are_unique():
    rows = many_rows(10) + many_rows(10)
    games = GameCatalog(make_source(rows)).load(Selector.parse("ALL"))
    titles = [g.title for g in games]
    assert len(titles) == len(set(titles)) == 10


def test_title_without_colon_used_as_is():
    games = GameCatalog(make_source([("gog_1", "a.webp", "Bare Title")])).load(Selector.parse("ALL"))
    assert games[0].title == "Bare Title"


def test_empty_title_is_skipped():
    rows = [
        ("gog_1", "a.webp", title_value("™™")),
        ("gog_2", "b.webp", title_value("Valid")),
    ]
    catalog = GameCatalog(make_source(rows))
    games = catalog.load(Selector.parse("ALL"))
    assert [g.release_key for g in games] == ["gog_2"]
    assert catalog.warnings[0].kind == 'empty_title'


def test_missing_icon_and_title_values():
    rows = [("gog_1", None, None), ("gog_2", None, title_value("Ok"))]
    games = GameCatalog(make_source(rows)).load(Selector.parse("ALL"))
    assert games[0].icon_file == ""
    assert games[0].title == "Ok"


def test_sort_is_ordinal():
    rows = [
        ("gog_1", "a.webp", title_value("alpha")),
        ("gog_2", "b.webp", title_value("Zeta")),
        ("gog_3", "c.webp", title_value("Beta")),
    ]
    games = GameCatalog(make_source(rows)).load(Selector.parse("ALL"))
    assert [g.title for g in games] == ["Beta", "Zeta", "alpha"]


def test_empty_result_raises():
    with pytest.raises(EmptyResult):
        GameCatalog(make_source([])).load(Selector.parse("StartMenuTiles"))


def test_only_rejected_rows_is_empty_result():
    with pytest.raises(EmptyResult):
        GameCatalog(make_source([("gog_1", "a.webp", title_value("©"))])).load(Selector.parse("ALL"))


def test_capacity_exceeded_raises():
    with pytest.raises(CapacityExceeded) as exc_info:
        GameCatalog(make_source(many_rows(MAX_TILES + 1))).load(Selector.parse("ALL"))
    assert exc_info.value.count == MAX_TILES + 1


def test_at_hard_limit_only_warns():
    catalog = GameCatalog(make_source(many_rows(MAX_TILES)))
    games = catalog.load(Selector.parse("ALL"))
    assert len(games) == MAX_TILES
    assert catalog.capacity_warning is True


def test_above_soft_limit_warns():
    catalog = GameCatalog(make_source(many_rows(WARN_TILES + 1)))
    catalog.load(Selector.parse("ALL"))
    assert catalog.capacity_warning is True


def test_at_soft_limit_does_not_warn():
    catalog = GameCatalog(make_source(many_rows(WARN_TILES)))
    catalog.load(Selector.parse("ALL"))
    assert catalog.capacity_warning is False


def test_source_errors_propagate():
    source = Mock(source_name="Fake", fetch_rows=Mock(side_effect=SourceUnavailable("boom")))
    with pytest.raises(SourceUnavailable):
        GameCatalog(source).load(Selector.parse("ALL"))


def test_warnings_reset_between_loads():
    rows = [("gog_1", "a.webp", title_value("A")), ("gog_2", "b.webp", title_value("A"))]
    source = make_source(rows)
    catalog = GameCatalog(source)
    catalog.load(Selector.parse("ALL"))
    assert len(catalog.warnings) == 1

    source.fetch_rows.return_value = [("gog_1", "a.webp", title_value("A"))]
    catalog.load(Selector.parse("ALL"))
    assert catalog.warnings == []


def test_titles_differing_only_in_case_are_duplicates():
    rows = [
        ("gog_1", "a.webp", title_value("Alpha")),
        ("gog_2", "b.webp", title_value("ALPHA")),
        ("gog_3", "c.webp", title_value("alpha")),
    ]
    catalog = GameCatalog(make_source(rows))

    games = catalog.load(Selector.parse("ALL"))

    assert [g.release_key for g in games] == ["gog_1"]
    assert [w.kind for w in catalog.warnings] == ["duplicate", "duplicate"]
