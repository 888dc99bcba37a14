"""
In-memory shapes for strategy analytics.

StrategyRun wraps one stored row and carries its metrics already parsed, so
aggregation and filtering never re-parse display strings. The raw row is kept
untouched for API responses, which echo the original formatting.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from app.services.analytics.parse import (
    parse_dollar,
    parse_float,
    parse_int,
    parse_number,
    parse_percentage,
)


@dataclass(frozen=True)
class StrategyRun:
    """One backtest run with its metrics parsed once at ingestion."""
    row: Dict[str, Any] = field(hash=False, repr=False)
    id: Optional[int]
    ticker: Optional[str]
    chart_tf: Optional[str]
    vm_id: Optional[str]
    created_at: Optional[Any]
    pnl: float = 0.0
    max_dd: float = 0.0         # sign as stored; callers take abs()
    win_rate: float = 0.0
    profit_factor: float = 0.0
    trades: int = 0
    net_profit: float = 0.0
    buy_hold: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "StrategyRun":
        data = dict(row)
        return cls(
            row=data,
            id=data.get("id"),
            ticker=data.get("ticker"),
            chart_tf=data.get("chart_tf"),
            vm_id=data.get("vm_id"),
            created_at=data.get("created_at"),
            pnl=parse_percentage(data.get("pnl")),
            max_dd=parse_percentage(data.get("max_dd")),
            win_rate=parse_percentage(data.get("win_rate")),
            profit_factor=parse_float(data.get("profit_factor")),
            trades=parse_int(data.get("trades")),
            net_profit=parse_dollar(data.get("net_profit_all")),
            buy_hold=parse_percentage(data.get("buy_hold")),
            sharpe_ratio=parse_number(data.get("sharpe_ratio")),
            sortino_ratio=parse_number(data.get("sortino_ratio")),
        )

    @property
    def drawdown(self) -> float:
        """Drawdown magnitude regardless of the source's sign convention."""
        return abs(self.max_dd)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.row)
        created = data.get("created_at")
        if isinstance(created, datetime):
            data["created_at"] = created.isoformat()
        return data


@dataclass
class TimeframeStats:
    """Summary of every run on one chart timeframe."""
    timeframe: str
    total_runs: int
    best_pnl: float
    best_config: Optional[StrategyRun]
    avg_win_rate: float = 0.0
    avg_profit_factor: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeframe": self.timeframe,
            "total_runs": self.total_runs,
            "best_pnl": self.best_pnl,
            "best_config": self.best_config.to_dict() if self.best_config else None,
            "avg_win_rate": self.avg_win_rate,
            "avg_profit_factor": self.avg_profit_factor,
        }


@dataclass
class CoinTimeframeBest:
    """One (ticker, timeframe) matrix cell; best_strategy is None when nothing was tested."""
    ticker: str
    timeframe: str
    best_strategy: Optional[StrategyRun]
    total_tested: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "timeframe": self.timeframe,
            "best_strategy": self.best_strategy.to_dict() if self.best_strategy else None,
            "total_tested": self.total_tested,
        }


@dataclass
class OverviewStats:
    total_runs: int = 0
    profitable_runs: int = 0
    profitable_pct: float = 0.0
    avg_pnl: float = 0.0
    avg_win_rate: float = 0.0
    avg_profit_factor: float = 0.0
    avg_max_drawdown: float = 0.0
    best_pnl: float = 0.0
    worst_pnl: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_runs": self.total_runs,
            "profitable_runs": self.profitable_runs,
            "profitable_pct": self.profitable_pct,
            "avg_pnl": self.avg_pnl,
            "avg_win_rate": self.avg_win_rate,
            "avg_profit_factor": self.avg_profit_factor,
            "avg_max_drawdown": self.avg_max_drawdown,
            "best_pnl": self.best_pnl,
            "worst_pnl": self.worst_pnl,
        }
