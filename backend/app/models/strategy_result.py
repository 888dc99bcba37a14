"""
Strategy Result model: one precomputed backtest run.

Rows are written upstream by the backtest VMs; this service only reads them.
Metrics are stored as display strings ("45.20%", "$1,234.56", "1.85") and are
parsed on ingestion by app.services.analytics.parse.

Every result table ({ticker}_{timeframe}_results, {ticker}_fixed_settings, ...)
shares this column layout, so the mapped table doubles as a template for
results_table().
"""
from sqlalchemy import Column, Integer, String, DateTime, MetaData, Table
from sqlalchemy.sql import func

from app.database import Base


class StrategyResult(Base):
    """Backtest result row (all metric columns are pre-formatted strings)."""
    __tablename__ = "strategy_results"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # ── Dimensions ───────────────────────────────────────────────────────
    vm_id = Column(String(50), nullable=True)
    ticker = Column(String(20), nullable=True, index=True)   # BTC/USDT
    exchange = Column(String(50), nullable=True)
    date_start = Column(String(30), nullable=True)
    date_end = Column(String(30), nullable=True)
    chart_tf = Column(String(10), nullable=True, index=True)  # 2h, 1d, fixed

    # ── Parameters (opaque) ──────────────────────────────────────────────
    lookback = Column(Integer, nullable=True)
    primary_speed = Column(String(50), nullable=True)
    secondary_speed = Column(String(50), nullable=True)
    trend_type = Column(String(50), nullable=True)
    smoothing_type = Column(String(50), nullable=True)
    resolutions = Column(String(100), nullable=True)

    # ── Key metrics ──────────────────────────────────────────────────────
    pnl = Column(String(32), nullable=True)
    max_dd = Column(String(32), nullable=True)
    trades = Column(String(32), nullable=True)
    win_rate = Column(String(32), nullable=True)
    profit_factor = Column(String(32), nullable=True)
    buy_hold = Column(String(32), nullable=True)

    # ── Performance metrics ──────────────────────────────────────────────
    net_profit_all = Column(String(32), nullable=True)
    sharpe_ratio = Column(String(32), nullable=True)
    sortino_ratio = Column(String(32), nullable=True)

    # ── Trade analysis ───────────────────────────────────────────────────
    total_long_trades = Column(String(32), nullable=True)
    total_short_trades = Column(String(32), nullable=True)
    winning_trades_all = Column(String(32), nullable=True)
    losing_trades_all = Column(String(32), nullable=True)
    avg_win_trade_all = Column(String(32), nullable=True)
    avg_loss_trade_all = Column(String(32), nullable=True)


def results_table(name: str, metadata: MetaData = None) -> Table:
    """Core Table for one of the result tables, cloned from StrategyResult's layout."""
    metadata = metadata if metadata is not None else MetaData()
    if name in metadata.tables:
        return metadata.tables[name]
    return StrategyResult.__table__.to_metadata(metadata, name=name)
