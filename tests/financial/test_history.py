"""Tests for lithos.financial.ledger.history."""

from datetime import date, timedelta

import pytest

from lithos.financial.ledger.balances import compute_balances, total_net_worth
from lithos.financial.ledger.history import (
    HistoricalPoint,
    HistoryRange,
    NetWorthHistory,
    get_history,
    range_days,
    sample_dates,
)
from lithos.financial.models import PricePoint, Quote


@pytest.fixture
def ledger(make_tx, make_trade):
    return [
        make_trade("buy", date(2024, 6, 1), "X", 10, -1000),
        make_tx("charge", date(2024, 6, 10), 100, account_id="card"),
        make_tx("food", date(2024, 6, 12), -100),
    ]


@pytest.fixture
def quotes():
    return {"X": Quote(price=120.0)}


@pytest.fixture
def histories():
    return {
        "X": {
            "2024-06-07": PricePoint(close=100.0),
            "2024-06-10": PricePoint(close=110.0),
            "2024-06-13": PricePoint(close=115.0),
        }
    }


@pytest.fixture
def week(ledger, quotes, histories, checking, investment, credit_card, today):
    return get_history(
        [checking, investment], [credit_card], ledger, quotes, histories, fx_rate=1.27, history_range="1W", today=today
    )


class TestRangeDays:
    @pytest.mark.parametrize("code,days", [("1W", 7), ("1M", 30), ("3M", 90), ("6M", 180), ("1Y", 365)])
    def test_fixed_ranges(self, code, days, today):
        assert range_days(code, [], today) == days

    def test_all_reaches_earliest_transaction(self, make_tx, today):
        txs = [make_tx("a", date(2024, 1, 1), 1), make_tx("b", date(2024, 3, 1), 1)]
        assert range_days(HistoryRange.ALL, txs, today) == (today - date(2024, 1, 1)).days

    def test_all_without_transactions(self, today):
        assert range_days("all", [], today) == 1

    def test_unknown_range(self, today):
        with pytest.raises(ValueError):
            range_days("2W", [], today)


class TestSampleDates:
    def test_daily_when_under_cap(self, today):
        dates = sample_dates(30, today)
        assert len(dates) == 31
        assert dates[0] == today - timedelta(days=30)
        assert dates[-1] == today

    def test_year_is_capped(self, today):
        dates = sample_dates(365, today, max_points=90)
        assert len(dates) <= 91
        assert dates[0] == today - timedelta(days=365)
        assert dates[-1] == today
        assert dates == sorted(set(dates))

    def test_today_appended_when_stride_skips_it(self, today):
        dates = sample_dates(91, today, max_points=90)
        assert dates[-1] == today
        assert len(dates) <= 91


    @pytest.mark.parametrize("cap", [0, -3, 1])
    def test_cap_below_two_is_clamped(self, today, cap):
        dates = sample_dates(30, today, max_points=cap)
        assert dates == sample_dates(30, today, max_points=2)
        assert dates[0] == today - timedelta(days=30)
        assert dates[-1] == today


class TestNetWorthHistory:
    def test_points_replay_ledger(self, week):
        points = {p.date.isoformat(): p for p in week}

        first = points["2024-06-08"]
        assert first.checking == pytest.approx(1000)
        # forward-filled Friday close
        assert first.investing == pytest.approx(1000)
        assert first.debts == pytest.approx(1200)
        assert first.net_worth == pytest.approx(800)

        assert points["2024-06-10"].investing == pytest.approx(1100)
        assert points["2024-06-10"].debts == pytest.approx(1300)
        assert points["2024-06-11"].debts == pytest.approx(1300)
        assert points["2024-06-09"].debts == pytest.approx(1200)

        assert points["2024-06-11"].checking == pytest.approx(1000)
        assert points["2024-06-12"].checking == pytest.approx(900)
        assert points["2024-06-14"].investing == pytest.approx(1150)

    def test_last_point_is_live(self, week, ledger, quotes, checking, investment, credit_card, today):
        last = list(week)[-1]
        balances = compute_balances([checking, investment], [credit_card], ledger, quotes, 1.27)
        assert last.date == today
        assert last.investing == pytest.approx(1200)
        assert last.net_worth == pytest.approx(total_net_worth(balances, [checking, investment], [credit_card]))

    def test_assets_add_up(self, week):
        for p in week:
            assert p.assets == pytest.approx(p.checking + p.savings + p.investing)
            assert p.net_worth == pytest.approx(p.assets - p.debts)

    def test_length_and_order(self, week):
        points = list(week)
        assert len(points) == len(week) == 8
        assert [p.date for p in points] == sorted(p.date for p in points)

    def test_restartable_and_deterministic(self, week, ledger, quotes, histories, checking, investment, credit_card, today):
        again = NetWorthHistory(
            [checking, investment], [credit_card], list(reversed(ledger)), quotes, histories, 1.27,
            history_range=HistoryRange.WEEK, today=today,
        )
        assert list(week) == list(week)
        assert list(week) == list(again)

    def test_no_transactions(self, checking, credit_card, today):
        history = get_history([checking], [credit_card], [], {}, {}, fx_rate=0, history_range="1M", today=today)
        points = list(history)
        assert len(points) == 31
        assert all(p.net_worth == pytest.approx(-200) for p in points)

    def test_year_range_shape(self, ledger, quotes, histories, checking, investment, credit_card, today):
        history = get_history(
            [checking, investment], [credit_card], ledger, quotes, histories, 1.27, history_range="1Y", today=today
        )
        points = list(history)
        assert len(points) <= 91
        assert points[-1].date == today

    def test_missing_series_uses_live_price(self, make_trade, investment, today):
        txs = [make_trade("buy", date(2024, 6, 1), "Y", 2, -100)]
        history = get_history([investment], [], txs, {"Y": Quote(price=60.0)}, {}, 0, "1W", today=today)
        assert all(p.investing == pytest.approx(120) for p in history)

    def test_holding_absent_before_purchase(self, make_trade, investment, histories, quotes, today):
        txs = [make_trade("buy", date(2024, 6, 12), "X", 1, -110)]
        points = {p.date: p for p in get_history([investment], [], txs, quotes, histories, 0, "1W", today=today)}
        assert points[date(2024, 6, 11)].investing == 0
        assert points[date(2024, 6, 12)].investing == pytest.approx(110)


class TestHistoricalPoint:
    def test_to_dict(self, today):
        point = HistoricalPoint(today, 10.0, 15.0, 5.0, 5.0, 5.0, 5.0)
        data = point.to_dict()
        assert data["date"] == "2024-06-15"
        assert data["net_worth"] == 10.0
