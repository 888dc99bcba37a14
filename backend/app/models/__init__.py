"""
SQLAlchemy models

Every result table written by the backtest VMs shares the StrategyResult
column layout; results_table() binds that layout to a concrete table name.
"""
from app.models.strategy_result import StrategyResult, results_table

__all__ = [
    "StrategyResult",
    "results_table",
]
