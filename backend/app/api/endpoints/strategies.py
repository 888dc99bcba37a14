"""
Strategy Results API Endpoints

GET  /results              — Filtered, sorted, paginated backtest runs
GET  /results/{id}         — One run (optional ticker/timeframe hints)
GET  /timeframe-stats      — Best configuration + averages per timeframe
GET  /matrix               — Best strategy per (ticker, timeframe)
GET  /top-performers       — Highest PnL runs
GET  /recent               — Newest runs
GET  /overview             — Headline statistics
GET  /tickers              — Distinct tickers and timeframes
POST /revalidate           — Drop cached rows (GET also accepted)
"""
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from app.api.auth import require_admin_auth
from app.config import get_settings
from app.schemas.strategy import (
    CoinTimeframeBestSchema,
    OverviewStatsSchema,
    ResultsPage,
    RevalidateResponse,
    StrategyResultSchema,
    TickersResponse,
    TimeframeStatsSchema,
)
from app.services.analytics import (
    RANKINGS,
    StrategyFilters,
    apply_filters,
    available_tickers,
    available_timeframes,
    compute_coin_timeframe_matrix,
    compute_overview_stats,
    compute_timeframe_stats,
    sort_runs,
    top_performers,
)
from app.services.analytics.aggregation import SORT_KEYS
from app.services.data_access.results_repository import (
    StrategyResultRepository,
    get_strategy_repository,
)

router = APIRouter()


# ═════════════════════════════════════════════════════════════════════════════
# Query parameter helpers
# ═════════════════════════════════════════════════════════════════════════════

def filter_params(
    ticker: Optional[str] = Query(None, description="Exact ticker, e.g. BTC/USDT"),
    timeframe: Optional[str] = Query(None, description="Exact chart timeframe, e.g. 2h"),
    vm_id: Optional[str] = Query(None, description="Originating VM tag"),
    max_drawdown: Optional[float] = Query(None, ge=0, description="Max |drawdown| in %"),
    min_pnl: Optional[float] = Query(None, description="Min PnL in %"),
    max_pnl: Optional[float] = Query(None, description="Max PnL in %"),
    min_win_rate: Optional[float] = Query(None, description="Min win rate in %"),
    min_profit_factor: Optional[float] = Query(None, description="Min profit factor"),
    min_trades: Optional[int] = Query(None, ge=0, description="Min trade count"),
) -> StrategyFilters:
    return StrategyFilters(
        ticker=ticker,
        timeframe=timeframe,
        vm_id=vm_id,
        max_drawdown=max_drawdown,
        min_pnl=min_pnl,
        max_pnl=max_pnl,
        min_win_rate=min_win_rate,
        min_profit_factor=min_profit_factor,
        min_trades=min_trades,
    )


def _ranking(rank: str):
    if rank not in RANKINGS:
        raise HTTPException(400, f"Unknown rank: {rank}. Options: {list(RANKINGS.keys())}")
    return RANKINGS[rank]


# ═════════════════════════════════════════════════════════════════════════════
# Endpoints
# ═════════════════════════════════════════════════════════════════════════════

@router.get("/results", response_model=ResultsPage)
def list_results(
    filters: StrategyFilters = Depends(filter_params),
    sort_by: str = Query("pnl", description="Sort key"),
    sort_dir: str = Query("desc", pattern="^(asc|desc)$"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    repo: StrategyResultRepository = Depends(get_strategy_repository),
):
    """List backtest runs matching the filters, best PnL first by default."""
    if sort_by not in SORT_KEYS:
        raise HTTPException(400, f"Unknown sort_by: {sort_by}. Options: {list(SORT_KEYS.keys())}")

    runs = apply_filters(repo.get_all_results(), filters)
    runs = sort_runs(runs, sort_by, descending=(sort_dir == "desc"))
    page = runs[offset:offset + limit]

    return {
        "total": len(runs),
        "limit": limit,
        "offset": offset,
        "results": [r.to_dict() for r in page],
    }


@router.get("/results/{strategy_id}", response_model=StrategyResultSchema)
def get_result(
    strategy_id: int,
    ticker: Optional[str] = None,
    timeframe: Optional[str] = None,
    repo: StrategyResultRepository = Depends(get_strategy_repository),
):
    """Get one backtest run by id."""
    run = repo.get_strategy_by_id(strategy_id, ticker=ticker, timeframe=timeframe)
    if run is None:
        raise HTTPException(404, f"Strategy {strategy_id} not found")
    return run.to_dict()


@router.get("/timeframe-stats", response_model=List[TimeframeStatsSchema])
def timeframe_stats(
    rank: str = Query("profit_factor", description="Ranking metric for best_config"),
    repo: StrategyResultRepository = Depends(get_strategy_repository),
):
    """Per-timeframe run counts, averages and best configuration."""
    stats = compute_timeframe_stats(repo.get_all_results(), rank=_ranking(rank))
    return [s.to_dict() for s in stats]


@router.get("/matrix", response_model=List[CoinTimeframeBestSchema])
def coin_timeframe_matrix(
    max_drawdown: Optional[float] = Query(None, ge=0, description="Only consider runs with |DD| <= this"),
    rank: str = Query("pnl", description="Ranking metric for best_strategy"),
    repo: StrategyResultRepository = Depends(get_strategy_repository),
):
    """Best strategy for every (ticker, supported timeframe) pair, empty cells included."""
    ranking = _ranking(rank)
    all_runs = repo.get_all_results()
    runs = apply_filters(all_runs, StrategyFilters(max_drawdown=max_drawdown))
    # Tickers come from the unfiltered set so a coin never drops out of the grid
    matrix = compute_coin_timeframe_matrix(
        runs,
        timeframes=get_settings().SUPPORTED_TIMEFRAMES,
        tickers=available_tickers(all_runs),
        rank=ranking,
    )
    return [cell.to_dict() for cell in matrix]


@router.get("/top-performers", response_model=List[StrategyResultSchema])
def get_top_performers(
    filters: StrategyFilters = Depends(filter_params),
    limit: int = Query(20, ge=1, le=500),
    repo: StrategyResultRepository = Depends(get_strategy_repository),
):
    """Highest PnL runs after filtering."""
    runs = apply_filters(repo.get_all_results(), filters)
    return [r.to_dict() for r in top_performers(runs, limit)]


@router.get("/recent", response_model=List[StrategyResultSchema])
def get_recent(
    limit: int = Query(50, ge=1, le=500),
    repo: StrategyResultRepository = Depends(get_strategy_repository),
):
    """Most recently written runs."""
    return [r.to_dict() for r in repo.get_recent_results(limit)]


@router.get("/overview", response_model=OverviewStatsSchema)
def overview(
    filters: StrategyFilters = Depends(filter_params),
    repo: StrategyResultRepository = Depends(get_strategy_repository),
):
    """Headline statistics over the (filtered) result set."""
    runs = apply_filters(repo.get_all_results(), filters)
    return compute_overview_stats(runs).to_dict()


@router.get("/tickers", response_model=TickersResponse)
def tickers(repo: StrategyResultRepository = Depends(get_strategy_repository)):
    """Distinct tickers and timeframes present in the data."""
    runs = repo.get_all_results()
    return {
        "tickers": available_tickers(runs),
        "timeframes": available_timeframes(runs),
    }


def _revalidate(repo: StrategyResultRepository) -> dict:
    repo.invalidate()
    logger.info("Strategy cache revalidated via API")
    return {
        "success": True,
        "message": "Cache revalidated successfully",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/revalidate", response_model=RevalidateResponse, dependencies=[Depends(require_admin_auth)])
def revalidate(repo: StrategyResultRepository = Depends(get_strategy_repository)):
    """Drop cached tables and rows; the next read hits the database."""
    return _revalidate(repo)


@router.get("/revalidate", response_model=RevalidateResponse, dependencies=[Depends(require_admin_auth)])
def revalidate_get(repo: StrategyResultRepository = Depends(get_strategy_repository)):
    """Same as POST, for easy browser refresh."""
    return _revalidate(repo)
