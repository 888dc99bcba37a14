"""
Strategy analytics - metric parsing, aggregation and filtering over
precomputed backtest runs.
"""
from app.services.analytics.parse import (
    parse_percentage,
    parse_dollar,
    parse_float,
    parse_number,
    parse_int,
)
from app.services.analytics.types import (
    StrategyRun,
    TimeframeStats,
    CoinTimeframeBest,
    OverviewStats,
)
from app.services.analytics.aggregation import (
    RANKINGS,
    best_by_metric,
    rank_by_pnl,
    rank_by_profit_factor,
    compute_timeframe_stats,
    compute_coin_timeframe_matrix,
    compute_overview_stats,
    top_performers,
    most_recent,
    sort_runs,
    available_tickers,
    available_timeframes,
)
from app.services.analytics.filters import StrategyFilters, apply_filters

__all__ = [
    # Parsing
    'parse_percentage',
    'parse_dollar',
    'parse_float',
    'parse_number',
    'parse_int',
    # Types
    'StrategyRun',
    'TimeframeStats',
    'CoinTimeframeBest',
    'OverviewStats',
    # Aggregation
    'RANKINGS',
    'best_by_metric',
    'rank_by_pnl',
    'rank_by_profit_factor',
    'compute_timeframe_stats',
    'compute_coin_timeframe_matrix',
    'compute_overview_stats',
    'top_performers',
    'most_recent',
    'sort_runs',
    'available_tickers',
    'available_timeframes',
    # Filtering
    'StrategyFilters',
    'apply_filters',
]
