"""
Threshold filters over strategy runs.

Every criterion is optional; None means "no constraint". All active criteria
are ANDed. A run whose metric failed to parse carries 0 for it and is judged
against that 0 rather than being dropped.
"""
from typing import Callable, List, Optional, Sequence

from pydantic import BaseModel, Field

from app.services.analytics.types import StrategyRun


class StrategyFilters(BaseModel):
    """Filter criteria; the default instance is the identity filter."""
    ticker: Optional[str] = None
    timeframe: Optional[str] = None
    vm_id: Optional[str] = Field(None, alias="vmId")
    max_drawdown: Optional[float] = Field(None, alias="maxDrawdown")
    min_pnl: Optional[float] = Field(None, alias="minPnl")
    max_pnl: Optional[float] = Field(None, alias="maxPnl")
    min_win_rate: Optional[float] = Field(None, alias="minWinRate")
    min_profit_factor: Optional[float] = Field(None, alias="minProfitFactor")
    min_trades: Optional[int] = Field(None, alias="minTrades")

    model_config = {"populate_by_name": True}

    @property
    def is_active(self) -> bool:
        return any(value is not None for value in self.model_dump().values())

    def predicates(self) -> List[Callable[[StrategyRun], bool]]:
        checks = []
        if self.ticker is not None:
            checks.append(lambda r: r.ticker == self.ticker)
        if self.timeframe is not None:
            checks.append(lambda r: r.chart_tf == self.timeframe)
        if self.vm_id is not None:
            checks.append(lambda r: r.vm_id == self.vm_id)
        if self.max_drawdown is not None:
            checks.append(lambda r: r.drawdown <= self.max_drawdown)
        if self.min_pnl is not None:
            checks.append(lambda r: r.pnl >= self.min_pnl)
        if self.max_pnl is not None:
            checks.append(lambda r: r.pnl <= self.max_pnl)
        if self.min_win_rate is not None:
            checks.append(lambda r: r.win_rate >= self.min_win_rate)
        if self.min_profit_factor is not None:
            checks.append(lambda r: r.profit_factor >= self.min_profit_factor)
        if self.min_trades is not None:
            checks.append(lambda r: r.trades >= self.min_trades)
        return checks


def apply_filters(records: Sequence[StrategyRun], criteria: Optional[StrategyFilters] = None) -> List[StrategyRun]:
    """Order-preserving subsequence of records satisfying every active criterion."""
    checks = criteria.predicates() if criteria is not None else []
    if not checks:
        return list(records)
    return [r for r in records if all(check(r) for check in checks)]
