"""Pydantic response schemas for the strategy results endpoints."""
from typing import List, Optional, Any
from pydantic import BaseModel


class StrategyResultSchema(BaseModel):
    """
    One backtest run as stored. Metric fields are the original display
    strings ("45.20%", "$1,234.56"); every field is Optional because rows
    written by older VMs may miss columns.
    """
    id: int
    created_at: Optional[str] = None
    vm_id: Optional[str] = None
    ticker: Optional[str] = None
    exchange: Optional[str] = None
    date_start: Optional[str] = None
    date_end: Optional[str] = None
    chart_tf: Optional[str] = None

    # --- parameters ---
    lookback: Optional[int] = None
    primary_speed: Optional[str] = None
    secondary_speed: Optional[str] = None
    trend_type: Optional[str] = None
    smoothing_type: Optional[str] = None
    resolutions: Optional[str] = None

    # --- key metrics ---
    pnl: Optional[str] = None
    max_dd: Optional[str] = None
    trades: Optional[str] = None
    win_rate: Optional[str] = None
    profit_factor: Optional[str] = None
    buy_hold: Optional[str] = None

    # --- performance ---
    net_profit_all: Optional[str] = None
    sharpe_ratio: Optional[str] = None
    sortino_ratio: Optional[str] = None

    # --- trade analysis ---
    total_long_trades: Optional[str] = None
    total_short_trades: Optional[str] = None
    winning_trades_all: Optional[str] = None
    losing_trades_all: Optional[str] = None
    avg_win_trade_all: Optional[str] = None
    avg_loss_trade_all: Optional[str] = None

    class Config:
        extra = "allow"


class ResultsPage(BaseModel):
    total: int
    limit: int
    offset: int
    results: List[StrategyResultSchema]


class TimeframeStatsSchema(BaseModel):
    timeframe: str
    total_runs: int
    best_pnl: float
    best_config: Optional[StrategyResultSchema] = None
    avg_win_rate: float = 0.0
    avg_profit_factor: float = 0.0


class CoinTimeframeBestSchema(BaseModel):
    ticker: str
    timeframe: str
    best_strategy: Optional[StrategyResultSchema] = None
    total_tested: int


class OverviewStatsSchema(BaseModel):
    total_runs: int
    profitable_runs: int
    profitable_pct: float
    avg_pnl: float
    avg_win_rate: float
    avg_profit_factor: float
    avg_max_drawdown: float
    best_pnl: float
    worst_pnl: float


class TickersResponse(BaseModel):
    tickers: List[str]
    timeframes: List[str]


class RevalidateResponse(BaseModel):
    success: bool
    message: str
    timestamp: str
    detail: Optional[Any] = None
