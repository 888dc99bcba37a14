"""Tests for strategy aggregations (best-by, timeframe stats, coin x timeframe matrix)."""
import operator

import pytest

from app.services.analytics.aggregation import (
    available_tickers,
    available_timeframes,
    best_by_metric,
    compute_coin_timeframe_matrix,
    compute_overview_stats,
    compute_timeframe_stats,
    most_recent,
    rank_by_pnl,
    rank_by_profit_factor,
    sort_runs,
    top_performers,
)

from tests.analytics.conftest import make_run, make_runs

TIMEFRAMES = ["2h", "3h", "4h", "5h", "6h"]


# =====================================================================
# best_by_metric
# =====================================================================

class TestBestByMetric:
    def test_empty_returns_none(self):
        assert best_by_metric([], rank_by_pnl) is None

    def test_returns_max(self, mixed_runs):
        best = best_by_metric(mixed_runs, rank_by_pnl)
        assert best in mixed_runs
        assert all(best.pnl >= r.pnl for r in mixed_runs)
        assert best.pnl == 40.0

    def test_tie_keeps_first_occurrence(self):
        runs = make_runs(dict(pnl="5%"), dict(pnl="9%"), dict(pnl="9%"), dict(pnl="1%"))
        best = best_by_metric(runs, rank_by_pnl)
        assert best is runs[1]

    def test_duplicates_allowed(self):
        run = make_run(pnl="3%")
        assert best_by_metric([run, run, run], rank_by_pnl) is run

    def test_custom_comparator_picks_minimum(self, mixed_runs):
        worst = best_by_metric(mixed_runs, rank_by_pnl, operator.lt)
        assert worst.pnl == -5.0

    def test_all_unparseable_returns_first(self):
        runs = make_runs(dict(pnl=None), dict(pnl="garbage"))
        assert best_by_metric(runs, rank_by_pnl) is runs[0]


# =====================================================================
# compute_timeframe_stats
# =====================================================================

class TestTimeframeStats:
    def test_one_entry_per_timeframe(self):
        runs = make_runs(
            dict(chart_tf="2h", profit_factor="1.1"),
            dict(chart_tf="2h", profit_factor="2.2"),
            dict(chart_tf="2h", profit_factor="0.9"),
            dict(chart_tf="1d", profit_factor="1.7"),
            dict(chart_tf="1d", profit_factor="1.3"),
        )
        stats = compute_timeframe_stats(runs)

        assert len(stats) == 2
        by_tf = {s.timeframe: s for s in stats}
        assert by_tf["2h"].total_runs == 3
        assert by_tf["1d"].total_runs == 2
        assert by_tf["2h"].best_config is runs[1]
        assert by_tf["1d"].best_config is runs[3]

    def test_ranks_by_profit_factor_not_pnl(self):
        runs = make_runs(
            dict(pnl="10%", chart_tf="2h", profit_factor="1.5"),
            dict(pnl="25%", chart_tf="2h", profit_factor="3.0"),
        )
        [stat] = compute_timeframe_stats(runs)

        assert stat.timeframe == "2h"
        assert stat.best_config.row["pnl"] == "25%"
        assert stat.best_pnl == 25.0

    def test_best_pnl_is_best_config_pnl_even_when_lower(self, mixed_runs):
        stats = {s.timeframe: s for s in compute_timeframe_stats(mixed_runs)}
        # 2h: profit factor 3.0 (pnl 25%) beats the 40% pnl run with pf 2.0
        assert stats["2h"].best_pnl == 25.0

    def test_lexicographic_timeframe_order(self):
        runs = make_runs(dict(chart_tf="2h"), dict(chart_tf="12h"), dict(chart_tf="1d"), dict(chart_tf="fixed"))
        assert [s.timeframe for s in compute_timeframe_stats(runs)] == ["12h", "1d", "2h", "fixed"]

    def test_averages_ignore_non_positive_values(self):
        runs = make_runs(
            dict(chart_tf="4h", win_rate="40%", profit_factor="2.0"),
            dict(chart_tf="4h", win_rate="60%", profit_factor="0"),
            dict(chart_tf="4h", win_rate=None, profit_factor="1.0"),
        )
        [stat] = compute_timeframe_stats(runs)
        assert stat.avg_win_rate == pytest.approx(50.0)
        assert stat.avg_profit_factor == pytest.approx(1.5)

    def test_profit_factor_parsed_as_leading_float(self):
        runs = make_runs(
            dict(chart_tf="2h", profit_factor="1.2.3"),
            dict(chart_tf="2h", profit_factor="1e1"),
            dict(chart_tf="2h", profit_factor="9"),
        )
        [stat] = compute_timeframe_stats(runs)
        assert stat.best_config is runs[1]
        assert stat.avg_profit_factor == pytest.approx((1.2 + 10 + 9) / 3)

    def test_explicit_pnl_ranking(self, mixed_runs):
        stats = {s.timeframe: s for s in compute_timeframe_stats(mixed_runs, rank=rank_by_pnl)}
        assert stats["2h"].best_pnl == 40.0

    def test_empty_input(self):
        assert compute_timeframe_stats([]) == []

    def test_to_dict_echoes_raw_strings(self, mixed_runs):
        stats = {s.timeframe: s for s in compute_timeframe_stats(mixed_runs)}
        data = stats["2h"].to_dict()
        assert data["best_config"]["pnl"] == "25%"
        assert data["best_config"]["created_at"].startswith("2025-06-01T12:02")


# =====================================================================
# compute_coin_timeframe_matrix
# =====================================================================

class TestCoinTimeframeMatrix:
    def test_every_pair_present(self, mixed_runs):
        matrix = compute_coin_timeframe_matrix(mixed_runs, TIMEFRAMES)

        assert len(matrix) == 2 * len(TIMEFRAMES)
        pairs = [(c.ticker, c.timeframe) for c in matrix]
        assert pairs == [(t, tf) for t in ["BTC/USDT", "ETH/USDT"] for tf in TIMEFRAMES]

    def test_empty_cells_are_null_not_zero(self, mixed_runs):
        cells = {(c.ticker, c.timeframe): c for c in compute_coin_timeframe_matrix(mixed_runs, TIMEFRAMES)}

        empty = cells[("BTC/USDT", "3h")]
        assert empty.best_strategy is None
        assert empty.total_tested == 0

        # ETH 4h has one run whose pnl is unparseable: present, with pnl 0
        zero = cells[("ETH/USDT", "4h")]
        assert zero.best_strategy is not None
        assert zero.best_strategy.pnl == 0.0
        assert zero.total_tested == 1

    def test_ranks_by_pnl(self, mixed_runs):
        cells = {(c.ticker, c.timeframe): c for c in compute_coin_timeframe_matrix(mixed_runs, TIMEFRAMES)}
        best = cells[("BTC/USDT", "2h")]
        assert best.best_strategy.pnl == 40.0
        assert best.total_tested == 3

    def test_timeframes_outside_list_are_ignored(self, mixed_runs):
        matrix = compute_coin_timeframe_matrix(mixed_runs, TIMEFRAMES)
        assert all(c.timeframe != "1d" for c in matrix)

    def test_fixed_ticker_set(self, mixed_runs):
        matrix = compute_coin_timeframe_matrix(mixed_runs, ["2h"], tickers=["SOL/USDT", "BTC/USDT"])
        assert [(c.ticker, c.total_tested) for c in matrix] == [("BTC/USDT", 3), ("SOL/USDT", 0)]

    def test_ordering_is_lexicographic(self):
        runs = make_runs(dict(ticker="ETH/USDT", chart_tf="2h"), dict(ticker="BTC/USDT", chart_tf="12h"))
        matrix = compute_coin_timeframe_matrix(runs, ["2h", "12h"])
        assert [(c.ticker, c.timeframe) for c in matrix] == [
            ("BTC/USDT", "12h"), ("BTC/USDT", "2h"),
            ("ETH/USDT", "12h"), ("ETH/USDT", "2h"),
        ]

    def test_profit_factor_ranking_strategy(self, mixed_runs):
        cells = {
            (c.ticker, c.timeframe): c
            for c in compute_coin_timeframe_matrix(mixed_runs, ["2h"], rank=rank_by_profit_factor)
        }
        assert cells[("BTC/USDT", "2h")].best_strategy.pnl == 25.0

    def test_no_records(self):
        assert compute_coin_timeframe_matrix([], TIMEFRAMES) == []


# =====================================================================
# Overview + listings
# =====================================================================

class TestOverviewStats:
    def test_empty(self):
        stats = compute_overview_stats([])
        assert stats.total_runs == 0
        assert stats.avg_pnl == 0.0
        assert stats.best_pnl == 0.0

    def test_values(self, mixed_runs):
        stats = compute_overview_stats(mixed_runs)
        assert stats.total_runs == 6
        assert stats.profitable_runs == 4
        assert stats.profitable_pct == pytest.approx(4 / 6 * 100)
        assert stats.avg_pnl == pytest.approx((10 + 25 + 40 - 5 + 15 + 0) / 6)
        assert stats.avg_max_drawdown == pytest.approx((12 + 30 + 8 + 22 + 18 + 0) / 6)
        assert stats.best_pnl == 40.0
        assert stats.worst_pnl == -5.0


class TestListings:
    def test_top_performers(self, mixed_runs):
        top = top_performers(mixed_runs, limit=3)
        assert [r.pnl for r in top] == [40.0, 25.0, 15.0]

    def test_top_performers_stable_on_ties(self):
        runs = make_runs(dict(pnl="5%"), dict(pnl="5%"), dict(pnl="5%"))
        assert top_performers(runs, limit=10) == runs

    def test_most_recent(self, mixed_runs):
        recent = most_recent(mixed_runs, limit=2)
        assert [r.id for r in recent] == [6, 5]

    def test_most_recent_accepts_iso_strings(self):
        runs = make_runs(
            dict(created_at="2025-01-01T00:00:00Z"),
            dict(created_at="2025-03-01 00:00:00+00:00"),
            dict(created_at="not a date"),
        )
        assert [r.id for r in most_recent(runs)] == [2, 1, 3]

    def test_sort_runs_by_drawdown_magnitude(self, mixed_runs):
        ordered = sort_runs(mixed_runs, "max_dd", descending=False)
        assert [r.drawdown for r in ordered] == [0.0, 8.0, 12.0, 18.0, 22.0, 30.0]

    def test_sort_runs_unknown_key(self, mixed_runs):
        with pytest.raises(KeyError):
            sort_runs(mixed_runs, "lookback")

    def test_available_tickers_and_timeframes(self, mixed_runs):
        runs = mixed_runs + make_runs(dict(chart_tf="12h", id=99), dict(chart_tf="fixed", id=100))
        assert available_tickers(runs) == ["BTC/USDT", "ETH/USDT"]
        assert available_timeframes(runs) == ["fixed", "2h", "4h", "12h", "1d"]
