"""
Strategy result repository: reads backtest rows from the result tables.

Each backtest VM writes into its own table named
{ticker}_{timeframe}_{suffix} (btc_usdt_2h_results) or {ticker}_{special}
(btc_usdt_fixed_settings). Tables are discovered by probing the candidate
names, read page by page (the hosted store caps a request at 1000 rows) and
the combined result set is cached for CACHE_TTL_RESULTS seconds.

Any database failure is logged and degrades to "no rows"; callers cannot
tell an empty table from an unreachable one.
"""
import re
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from sqlalchemy import MetaData, select
from sqlalchemy.exc import SQLAlchemyError

from app.config import Settings, get_settings
from app.models.strategy_result import results_table
from app.services.analytics.aggregation import available_tickers, most_recent
from app.services.analytics.types import StrategyRun

TABLES_CACHE_KEY = "tables:discovered"
RESULTS_CACHE_KEY = "results:all"

_TABLE_NAME_RE = re.compile(r"^[a-z0-9_]+$")
_TIMEFRAME_TABLE_RE = re.compile(r"_(\d+[mhdw])_(?:results|settings)$")


def timeframe_from_table(table_name: str) -> Optional[str]:
    """'btc_usdt_2h_results' -> '2h', 'btc_usdt_fixed_settings' -> 'fixed'."""
    match = _TIMEFRAME_TABLE_RE.search(table_name)
    if match:
        return match.group(1)
    if table_name.endswith("fixed_settings"):
        return "fixed"
    return None


class StrategyResultRepository:
    """Read-only access to the backtest result tables."""

    def __init__(self, session_factory, cache, settings: Optional[Settings] = None):
        self.session_factory = session_factory
        self.cache = cache
        self.settings = settings or get_settings()
        self._metadata = MetaData()

    # ------------------------------------------------------------------
    # Table discovery
    # ------------------------------------------------------------------

    def candidate_tables(self) -> List[str]:
        s = self.settings
        names = []
        for ticker in s.TABLE_TICKERS:
            for timeframe in s.TABLE_TIMEFRAMES:
                for suffix in s.TABLE_SUFFIXES:
                    names.append(f"{ticker}_{timeframe}_{suffix}")
            for suffix in s.TABLE_SPECIAL_SUFFIXES:
                names.append(f"{ticker}_{suffix}")
        return names

    def _table(self, name: str):
        if not _TABLE_NAME_RE.match(name):
            raise ValueError(f"Invalid result table name: {name!r}")
        return results_table(name, self._metadata)

    def _table_exists(self, name: str) -> bool:
        table = self._table(name)
        db = self.session_factory()
        try:
            db.execute(select(table.c.id).limit(1)).first()
            return True
        except SQLAlchemyError:
            db.rollback()
            return False
        finally:
            db.close()

    def discover_tables(self) -> List[str]:
        """Result tables that exist, from config or by probing candidate names."""
        if self.settings.STRATEGY_TABLES:
            tables = []
            for name in self.settings.STRATEGY_TABLES:
                if _TABLE_NAME_RE.match(name):
                    tables.append(name)
                else:
                    logger.warning(f"Ignoring invalid table name in STRATEGY_TABLES: {name!r}")
            return tables

        cached = self.cache.get(TABLES_CACHE_KEY)
        if cached is not None:
            logger.debug("Using cached table names")
            return cached

        logger.info("Refreshing table cache...")
        tables = [name for name in self.candidate_tables() if self._table_exists(name)]
        logger.info(f"Discovered {len(tables)} result tables: {tables}")
        if tables:
            self.cache.set(TABLES_CACHE_KEY, tables, ttl=self.settings.CACHE_TTL_TABLES)
        return tables

    # ------------------------------------------------------------------
    # Row loading
    # ------------------------------------------------------------------

    def fetch_table(self, table_name: str) -> List[Dict[str, Any]]:
        """
        All rows of one table, newest first, read in RESULTS_PAGE_SIZE pages.
        Stops on an empty or short page; on error returns what was read so far.
        """
        table = self._table(table_name)
        page_size = self.settings.RESULTS_PAGE_SIZE
        rows: List[Dict[str, Any]] = []
        offset = 0
        db = self.session_factory()
        try:
            while True:
                stmt = (
                    select(table)
                    .order_by(table.c.created_at.desc(), table.c.id.desc())
                    .offset(offset)
                    .limit(page_size)
                )
                page = [dict(r) for r in db.execute(stmt).mappings().all()]
                if not page:
                    break
                rows.extend(page)
                if len(page) < page_size:
                    break
                offset += page_size
        except SQLAlchemyError as e:
            logger.error(f"Error fetching data from {table_name}: {e}")
        finally:
            db.close()

        if rows:
            logger.info(f"Loaded {len(rows)} results from {table_name}")
        else:
            logger.warning(f"No data found in {table_name}")
        return rows

    def _load_all_rows(self) -> List[Dict[str, Any]]:
        cached = self.cache.get(RESULTS_CACHE_KEY)
        if cached is not None:
            logger.debug(f"Using cached results ({len(cached)} rows)")
            return cached

        rows: List[Dict[str, Any]] = []
        for table_name in self.discover_tables():
            rows.extend(self.fetch_table(table_name))
        logger.info(f"Total results from all tables: {len(rows)}")
        # Empty loads are not cached so an outage does not pin an empty dashboard for an hour.
        # Last write wins if two requests refresh concurrently.
        if rows:
            self.cache.set(RESULTS_CACHE_KEY, rows, ttl=self.settings.CACHE_TTL_RESULTS)
        return rows

    def get_all_results(self) -> List[StrategyRun]:
        return [StrategyRun.from_row(row) for row in self._load_all_rows()]

    def get_results_by_timeframe(self, timeframe: str) -> List[StrategyRun]:
        return [r for r in self.get_all_results() if r.chart_tf == timeframe]

    def get_recent_results(self, limit: int = 50) -> List[StrategyRun]:
        return most_recent(self.get_all_results(), limit)

    def get_available_tickers(self) -> List[str]:
        return available_tickers(self.get_all_results())

    def get_strategy_by_id(
        self,
        strategy_id: int,
        ticker: Optional[str] = None,
        timeframe: Optional[str] = None,
    ) -> Optional[StrategyRun]:
        """
        Look a run up by id. Ids are only unique per table, so the search walks
        tables in discovery order, narrowed by the optional ticker/timeframe hints.
        """
        for table_name in self._tables_for(ticker, timeframe):
            table = self._table(table_name)
            db = self.session_factory()
            try:
                row = db.execute(select(table).where(table.c.id == strategy_id)).mappings().first()
            except SQLAlchemyError as e:
                logger.error(f"Error looking up strategy {strategy_id} in {table_name}: {e}")
                row = None
            finally:
                db.close()
            if row is None:
                continue
            run = StrategyRun.from_row(row)
            if ticker and run.ticker != ticker:
                continue
            return run
        return None

    def _tables_for(self, ticker: Optional[str], timeframe: Optional[str]) -> Sequence[str]:
        tables = self.discover_tables()
        if ticker:
            slug = ticker.lower().replace("/", "_").replace("-", "_")
            narrowed = [t for t in tables if t.startswith(f"{slug}_")]
            tables = narrowed or tables
        if timeframe:
            narrowed = [t for t in tables if timeframe_from_table(t) == timeframe]
            tables = narrowed or tables
        return tables

    def invalidate(self) -> None:
        """Drop cached tables and rows so the next read goes to the database."""
        self.cache.delete(RESULTS_CACHE_KEY)
        self.cache.delete(TABLES_CACHE_KEY)
        logger.info("Strategy result cache invalidated")


_repository: Optional[StrategyResultRepository] = None


def get_strategy_repository() -> StrategyResultRepository:
    """Get the process-wide repository (FastAPI dependency)."""
    global _repository
    if _repository is None:
        from app.database import SessionLocal
        from app.services.cache import get_cache
        _repository = StrategyResultRepository(SessionLocal, get_cache())
    return _repository
