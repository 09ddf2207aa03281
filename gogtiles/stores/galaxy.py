"""
GOG Galaxy 2.0 library backend.

Reads the Galaxy SQLite database strictly read-only through SQLAlchemy and
returns the release key, square icon resource and title of every game that
matches a selector. Galaxy keeps running while we read, so the file is never
opened for writing.
"""
import logging
import os
import sqlite3
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from gogtiles.errors import SourceUnavailable
from gogtiles.stores.base import GameSource, RawGameRow, Selector, SelectorMode

logger = logging.getLogger(__name__)

# Shared joins: square icon resource, title piece, and not hidden in the library.
# {source} selects releaseKey, {key} is the releaseKey column, {extra} narrows further.
GAME_INFO_JOINS = """{source}
LEFT JOIN WebCache wc ON {key} = wc.releaseKey
LEFT JOIN WebCacheResources wcr ON wc.id = wcr.webCacheId
LEFT JOIN WebCacheResourceTypes wcrt ON wcrt.id = wcr.webCacheResourceTypeId
LEFT JOIN GamePieces gp ON {key} = gp.releaseKey
LEFT JOIN GamePieceTypes gpt ON gpt.id = gp.gamePieceTypeId
LEFT JOIN UserReleaseProperties urp ON {key} = urp.releaseKey
WHERE wcrt.type = 'squareIcon' AND gpt.type = 'title' AND urp.isHidden = 0 AND gp.userId <> 0 {extra}"""

SQL_TAGGED_GAMES = GAME_INFO_JOINS.format(
    source="SELECT urt.releaseKey, wcr.filename, gp.value FROM UserReleaseTags urt",
    key="urt.releaseKey",
    extra="AND urt.tag = :tag",
)

# Rockstar (platform 85) reports every owned game as installed
SQL_INSTALLED_GAMES = GAME_INFO_JOINS.format(
    source="""SELECT Installed.releaseKey, wcr.filename, gp.value FROM
    (SELECT 'gog_' || ibp.productId as releaseKey FROM InstalledBaseProducts ibp
    UNION ALL
    SELECT p.name || '_' || iep.productId as releaseKey FROM InstalledExternalProducts iep
    JOIN Platforms p ON iep.platformId = p.id WHERE iep.platformId <> 85) as Installed""",
    key="Installed.releaseKey",
    extra="",
)

SQL_ALL_GAMES = GAME_INFO_JOINS.format(
    source="SELECT lr.releaseKey, wcr.filename, gp.value FROM LibraryReleases lr",
    key="lr.releaseKey",
    extra="AND lr.userId <> 0",
)

SQL_LAST_CACHE_UPDATE = "SELECT updateDate FROM GamePieceCacheUpdateDates WHERE userId <> 0"

SELECTOR_QUERIES = {
    SelectorMode.TAG: SQL_TAGGED_GAMES,
    SelectorMode.INSTALLED: SQL_INSTALLED_GAMES,
    SelectorMode.ALL: SQL_ALL_GAMES,
}


class GalaxyDatabase(GameSource):
    """Read-only access to galaxy-2.0.db"""

    def __init__(self, database_path: str):
        self.database_path = database_path
        self._engine: Optional[Engine] = None

    @property
    def source_name(self) -> str:
        return "GOG Galaxy 2.0"

    def _connect(self) -> sqlite3.Connection:
        uri = "file:" + quote(Path(self.database_path).as_posix(), safe="/:") + "?mode=ro"
        return sqlite3.connect(uri, uri=True)

    def _get_engine(self) -> Engine:
        if self._engine is None:
            if not os.path.isfile(self.database_path):
                raise SourceUnavailable(
                    f"Error while trying to open GOG Galaxy 2.0 database at '{self.database_path}'. "
                    f"File does not exist."
                )
            self._engine = create_engine("sqlite://", creator=self._connect)
        return self._engine

    def last_cache_update(self) -> Optional[str]:
        """Date Galaxy last refreshed its game piece cache, if recorded."""
        try:
            with self._get_engine().connect() as conn:
                return conn.execute(text(SQL_LAST_CACHE_UPDATE)).scalar()
        except SQLAlchemyError as e:
            logger.debug(f"[Galaxy] Could not read last cache update: {e}")
            return None

    def fetch_rows(self, selector: Selector) -> List[RawGameRow]:
        engine = self._get_engine()
        query = SELECTOR_QUERIES[selector.mode]
        params = {"tag": selector.tag} if selector.mode is SelectorMode.TAG else {}

        cache_update = self.last_cache_update()
        if cache_update:
            logger.info(f"[Galaxy] Last cache update was on '{cache_update}'")

        logger.debug(f"[Galaxy] Querying {selector.describe()} from {self.database_path}")
        try:
            with engine.connect() as conn:
                result = conn.execute(text(query), params)
                return [tuple(row) for row in result]
        except SQLAlchemyError as e:
            raise SourceUnavailable(f"Error while running query on database. {e}") from e

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
