"""
Group-by / max-by aggregations over strategy runs.

Two ranking conventions exist historically and both are kept as named
strategies:
  - rank_by_profit_factor: best configuration per timeframe
  - rank_by_pnl:           best strategy per (ticker, timeframe) cell
Each aggregate takes the ranking metric as a parameter defaulting to its
historical convention.
"""
import operator
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence

from app.services.analytics.types import (
    CoinTimeframeBest,
    OverviewStats,
    StrategyRun,
    TimeframeStats,
)

MetricSelector = Callable[[StrategyRun], float]
Comparator = Callable[[float, float], bool]


def rank_by_profit_factor(run: StrategyRun) -> float:
    return run.profit_factor


def rank_by_pnl(run: StrategyRun) -> float:
    return run.pnl


RANKINGS: Dict[str, MetricSelector] = {
    "profit_factor": rank_by_profit_factor,
    "pnl": rank_by_pnl,
}

# Whitelisted sort keys for listings
SORT_KEYS: Dict[str, Callable[[StrategyRun], object]] = {
    "pnl": lambda r: r.pnl,
    "max_dd": lambda r: r.drawdown,
    "win_rate": lambda r: r.win_rate,
    "profit_factor": lambda r: r.profit_factor,
    "trades": lambda r: r.trades,
    "net_profit_all": lambda r: r.net_profit,
    "sharpe_ratio": lambda r: r.sharpe_ratio,
    "sortino_ratio": lambda r: r.sortino_ratio,
    "created_at": lambda r: _created_key(r),
    "id": lambda r: r.id or 0,
}


def best_by_metric(
    records: Iterable[StrategyRun],
    metric: MetricSelector,
    comparator: Comparator = operator.gt,
) -> Optional[StrategyRun]:
    """
    Left-to-right reduction: a record replaces the current best only when
    comparator(candidate, best) holds, so ties keep the first occurrence.
    Returns None for an empty input.
    """
    best = None
    best_value = None
    for record in records:
        value = metric(record)
        if best is None or comparator(value, best_value):
            best, best_value = record, value
    return best


def _group_by(records: Iterable[StrategyRun], key: Callable[[StrategyRun], Hashable]) -> "OrderedDict[Hashable, List[StrategyRun]]":
    groups: "OrderedDict[Hashable, List[StrategyRun]]" = OrderedDict()
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def _positive_mean(values: Iterable[float]) -> float:
    positives = [v for v in values if v > 0]
    return sum(positives) / len(positives) if positives else 0.0


def compute_timeframe_stats(
    records: Sequence[StrategyRun],
    rank: MetricSelector = rank_by_profit_factor,
) -> List[TimeframeStats]:
    """
    One entry per chart_tf present in records, sorted by the timeframe label
    as a plain string ("12h" sorts before "2h").
    """
    stats = []
    for timeframe, group in _group_by(records, lambda r: r.chart_tf or "").items():
        best = best_by_metric(group, rank)
        stats.append(TimeframeStats(
            timeframe=timeframe,
            total_runs=len(group),
            best_pnl=best.pnl if best else 0.0,
            best_config=best,
            avg_win_rate=_positive_mean(r.win_rate for r in group),
            avg_profit_factor=_positive_mean(r.profit_factor for r in group),
        ))
    return sorted(stats, key=lambda s: s.timeframe)


def compute_coin_timeframe_matrix(
    records: Sequence[StrategyRun],
    timeframes: Sequence[str],
    tickers: Optional[Sequence[str]] = None,
    rank: MetricSelector = rank_by_pnl,
) -> List[CoinTimeframeBest]:
    """
    Full ticker x timeframe grid. Every pair gets a cell; pairs with no runs
    carry best_strategy=None and total_tested=0.
    """
    if tickers is None:
        tickers = available_tickers(records)

    cells = _group_by(records, lambda r: (r.ticker, r.chart_tf))
    matrix = []
    for ticker in sorted(set(tickers)):
        for timeframe in sorted(set(timeframes)):
            group = cells.get((ticker, timeframe), [])
            matrix.append(CoinTimeframeBest(
                ticker=ticker,
                timeframe=timeframe,
                best_strategy=best_by_metric(group, rank),
                total_tested=len(group),
            ))
    return matrix


def compute_overview_stats(records: Sequence[StrategyRun]) -> OverviewStats:
    total = len(records)
    if total == 0:
        return OverviewStats()

    pnls = [r.pnl for r in records]
    profitable = sum(1 for p in pnls if p > 0)
    return OverviewStats(
        total_runs=total,
        profitable_runs=profitable,
        profitable_pct=profitable / total * 100,
        avg_pnl=sum(pnls) / total,
        avg_win_rate=sum(r.win_rate for r in records) / total,
        avg_profit_factor=sum(r.profit_factor for r in records) / total,
        avg_max_drawdown=sum(r.drawdown for r in records) / total,
        best_pnl=max(pnls),
        worst_pnl=min(pnls),
    )


def top_performers(records: Sequence[StrategyRun], limit: int = 20) -> List[StrategyRun]:
    """Highest PnL first; equal PnL keeps input order."""
    return sorted(records, key=lambda r: r.pnl, reverse=True)[:limit]


def _created_key(run: StrategyRun) -> float:
    created = run.created_at
    if isinstance(created, datetime):
        return created.timestamp()
    if isinstance(created, str):
        try:
            return datetime.fromisoformat(created.replace("Z", "+00:00")).timestamp()
        except ValueError:
            return 0.0
    return 0.0


def most_recent(records: Sequence[StrategyRun], limit: int = 50) -> List[StrategyRun]:
    return sorted(records, key=_created_key, reverse=True)[:limit]


def sort_runs(records: Sequence[StrategyRun], sort_by: str = "pnl", descending: bool = True) -> List[StrategyRun]:
    """Stable sort on a whitelisted key; raises KeyError for unknown keys."""
    key = SORT_KEYS[sort_by]
    return sorted(records, key=key, reverse=descending)


def available_tickers(records: Iterable[StrategyRun]) -> List[str]:
    return sorted({r.ticker for r in records if r.ticker})


def _timeframe_hours(timeframe: str) -> int:
    digits = ""
    for ch in timeframe:
        if not ch.isdigit():
            break
        digits += ch
    if not digits:
        return 0
    if timeframe.endswith("h"):
        return int(digits)
    if timeframe.endswith("d"):
        return int(digits) * 24
    return 0


def available_timeframes(records: Iterable[StrategyRun]) -> List[str]:
    """Distinct timeframes in display order (by hours; '1d' = 24, unknown = 0)."""
    labels = sorted({r.chart_tf for r in records if r.chart_tf})
    return sorted(labels, key=_timeframe_hours)
