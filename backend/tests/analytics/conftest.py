"""
Shared factories for strategy analytics tests.

Rows are plain dicts shaped like a result table row, with the metric fields
as display strings exactly as the backtest VMs write them.
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.services.analytics.types import StrategyRun

BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_row(**overrides):
    """Create a result-table row with safe defaults."""
    defaults = dict(
        id=1,
        created_at=BASE_TIME,
        vm_id="vm-1",
        ticker="BTC/USDT",
        exchange="BINANCE",
        date_start="2021-01-01",
        date_end="2025-01-01",
        chart_tf="2h",
        lookback=20,
        primary_speed="fast",
        secondary_speed="slow",
        trend_type="EMA",
        smoothing_type="SMA",
        resolutions="1D",
        pnl="10.00%",
        max_dd="−15.00%",
        trades="120",
        win_rate="45.00%",
        profit_factor="1.50",
        buy_hold="80.00%",
        net_profit_all="$10,000.00",
        sharpe_ratio="1.10",
        sortino_ratio="1.40",
        total_long_trades="60",
        total_short_trades="60",
        winning_trades_all="54",
        losing_trades_all="66",
        avg_win_trade_all="$500.00",
        avg_loss_trade_all="−$300.00",
    )
    defaults.update(overrides)
    return defaults


def make_run(**overrides) -> StrategyRun:
    return StrategyRun.from_row(make_row(**overrides))


def make_runs(*specs):
    """make_runs(dict(pnl="5%"), dict(pnl="7%")) with sequential ids and timestamps."""
    runs = []
    for i, spec in enumerate(specs, start=1):
        spec = dict(spec)
        spec.setdefault("id", i)
        spec.setdefault("created_at", BASE_TIME + timedelta(minutes=i))
        runs.append(make_run(**spec))
    return runs


@pytest.fixture
def mixed_runs():
    """Two coins over three timeframes, with one malformed row."""
    return make_runs(
        dict(ticker="BTC/USDT", chart_tf="2h", pnl="10%", profit_factor="1.5", max_dd="-12%", win_rate="40%"),
        dict(ticker="BTC/USDT", chart_tf="2h", pnl="25%", profit_factor="3.0", max_dd="-30%", win_rate="55%"),
        dict(ticker="BTC/USDT", chart_tf="2h", pnl="40%", profit_factor="2.0", max_dd="-8%", win_rate="60%"),
        dict(ticker="ETH/USDT", chart_tf="1d", pnl="−5%", profit_factor="0.8", max_dd="22%", win_rate="30%"),
        dict(ticker="ETH/USDT", chart_tf="1d", pnl="15%", profit_factor="1.9", max_dd="−18%", win_rate="50%"),
        dict(ticker="ETH/USDT", chart_tf="4h", pnl=None, profit_factor="n/a", max_dd="", win_rate=None, trades=None),
    )
