from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from gogtiles.errors import SourceUnavailable
from gogtiles.services.catalog_service import GameCatalog
from gogtiles.stores.base import Selector
from gogtiles.stores.galaxy import GalaxyDatabase

SCHEMA = """
CREATE TABLE UserReleaseTags (releaseKey TEXT, tag TEXT);
CREATE TABLE WebCache (id INTEGER PRIMARY KEY, releaseKey TEXT);
CREATE TABLE WebCacheResourceTypes (id INTEGER PRIMARY KEY, type TEXT);
CREATE TABLE WebCacheResources (webCacheId INTEGER, webCacheResourceTypeId INTEGER, filename TEXT);
CREATE TABLE GamePieceTypes (id INTEGER PRIMARY KEY, type TEXT);
CREATE TABLE GamePieces (releaseKey TEXT, gamePieceTypeId INTEGER, userId INTEGER, value TEXT);
CREATE TABLE UserReleaseProperties (releaseKey TEXT, isHidden INTEGER);
CREATE TABLE LibraryReleases (releaseKey TEXT, userId INTEGER);
CREATE TABLE InstalledBaseProducts (productId INTEGER);
CREATE TABLE Platforms (id INTEGER PRIMARY KEY, name TEXT);
CREATE TABLE InstalledExternalProducts (platformId INTEGER, productId TEXT);
CREATE TABLE GamePieceCacheUpdateDates (userId INTEGER, updateDate TEXT);
INSERT INTO WebCacheResourceTypes VALUES (1, 'background'), (2, 'squareIcon');
INSERT INTO GamePieceTypes VALUES (1, 'originalTitle'), (11, 'title');
INSERT INTO Platforms VALUES (3, 'steam'), (85, 'rockstar');
INSERT INTO GamePieceCacheUpdateDates VALUES (42, '2024-01-31 10:00:00');
"""


def add_game(conn, key, title, tags=(), hidden=0, owned=True):
    cur = conn.execute("INSERT INTO WebCache (releaseKey) VALUES (?)", (key,))
    cache_id = cur.lastrowid
    conn.execute("INSERT INTO WebCacheResources VALUES (?, 2, ?)", (cache_id, f"{key}_icon.webp"))
    conn.execute("INSERT INTO WebCacheResources VALUES (?, 1, ?)", (cache_id, f"{key}_bg.webp"))
    conn.execute("INSERT INTO GamePieces VALUES (?, 11, 42, ?)", (key, '{"title":"%s"}' % title))
    conn.execute("INSERT INTO GamePieces VALUES (?, 1, 42, ?)", (key, '{"title":"original"}'))
    conn.execute("INSERT INTO UserReleaseProperties VALUES (?, ?)", (key, hidden))
    if owned:
        conn.execute("INSERT INTO LibraryReleases VALUES (?, 42)", (key,))
    for tag in tags:
        conn.execute("INSERT INTO UserReleaseTags VALUES (?, ?)", (key, tag))


@pytest.fixture
def galaxy_db(tmp_path: Path) -> str:
    path = tmp_path / "galaxy-2.0.db"
    conn = sqlite3.connect(path)
    conn.executescript(SCHEMA)
    add_game(conn, "gog_1", "Alpha", tags=["StartMenuTiles"])
    add_game(conn, "gog_2", "Beta", tags=["StartMenuTiles", "RPG"])
    add_game(conn, "steam_7", "Gamma", tags=["RPG"])
    add_game(conn, "rockstar_5", "Delta")
    add_game(conn, "gog_3", "Hidden", tags=["StartMenuTiles"], hidden=1)
    conn.execute("INSERT INTO InstalledBaseProducts VALUES (1)")
    conn.execute("INSERT INTO InstalledExternalProducts VALUES (3, '7')")
    conn.execute("INSERT INTO InstalledExternalProducts VALUES (85, '5')")
    conn.commit()
    conn.close()
    return str(path)


def keys(rows):
    return sorted(row[0] for row in rows)


def test_tagged_games(galaxy_db: str) -> None:
    db = GalaxyDatabase(galaxy_db)
    rows = db.fetch_rows(Selector.parse("StartMenuTiles"))
    assert keys(rows) == ["gog_1", "gog_2"]
    assert ("gog_1", "gog_1_icon.webp", '{"title":"Alpha"}') in rows
    db.close()


def test_other_tag(galaxy_db: str) -> None:
    db = GalaxyDatabase(galaxy_db)
    assert keys(db.fetch_rows(Selector.parse("RPG"))) == ["gog_2", "steam_7"]
    db.close()


def test_installed_games_exclude_rockstar(galaxy_db: str) -> None:
    db = GalaxyDatabase(galaxy_db)
    assert keys(db.fetch_rows(Selector.parse("INSTALLED"))) == ["gog_1", "steam_7"]
    db.close()


def test_all_games_exclude_hidden(galaxy_db: str) -> None:
    db = GalaxyDatabase(galaxy_db)
    assert keys(db.fetch_rows(Selector.parse("ALL"))) == ["gog_1", "gog_2", "rockstar_5", "steam_7"]
    db.close()


def test_last_cache_update(galaxy_db: str) -> None:
    db = GalaxyDatabase(galaxy_db)
    assert db.last_cache_update() == "2024-01-31 10:00:00"
    db.close()


def test_database_is_opened_read_only(galaxy_db: str) -> None:
    db = GalaxyDatabase(galaxy_db)
    with pytest.raises(sqlite3.OperationalError):
        db._connect().execute("INSERT INTO Platforms VALUES (99, 'x')")
    db.close()


def test_missing_database_is_source_unavailable(tmp_path: Path) -> None:
    db = GalaxyDatabase(str(tmp_path / "missing.db"))
    with pytest.raises(SourceUnavailable):
        db.fetch_rows(Selector.parse("ALL"))


def test_broken_database_is_source_unavailable(tmp_path: Path) -> None:
    path = tmp_path / "empty.db"
    sqlite3.connect(path).close()
    db = GalaxyDatabase(str(path))
    with pytest.raises(SourceUnavailable):
        db.fetch_rows(Selector.parse("ALL"))
    db.close()


def test_catalog_over_galaxy_database(galaxy_db: str) -> None:
    games = GameCatalog(GalaxyDatabase(galaxy_db)).load(Selector.parse("ALL"))
    assert [g.title for g in games] == ["Alpha", "Beta", "Delta", "Gamma"]
    assert games[0].icon_file == "gog_1_icon.png"
