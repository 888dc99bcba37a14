"""
Data access for the backtest result tables.
"""
from app.services.data_access.results_repository import (
    StrategyResultRepository,
    get_strategy_repository,
    timeframe_from_table,
)

__all__ = [
    'StrategyResultRepository',
    'get_strategy_repository',
    'timeframe_from_table',
]
