"""Tests for the inverse-contract session calculator: round trips, flips, open sessions, filtering."""

from datetime import datetime, timedelta, timezone

import pytest

from config.session_config import FeeConfig, SessionConfig
from session_core.contracts import ExecutionOrderError, SessionSide, SessionStatus
from session_core.inverse import (
    SessionAccumulator,
    calculate_inverse_sessions,
    finalize_inverse_session,
)


def _by_status(sessions, status: SessionStatus):
    return [s for s in sessions if s.status == status]


class TestRoundTrip:
    """Buy 100 @ 50000 then sell 100 @ 51000: one closed long."""

    def test_single_closed_long(self, round_trip) -> None:
        sessions = calculate_inverse_sessions(round_trip)
        assert len(sessions) == 1
        s = sessions[0]
        assert s.status == SessionStatus.CLOSED
        assert s.side == SessionSide.LONG
        assert s.avg_entry_price == 50_000
        assert s.avg_exit_price == 51_000

    def test_realized_pnl_uses_reciprocals(self, round_trip) -> None:
        s = calculate_inverse_sessions(round_trip)[0]
        expected = 100 * (1 / 50_000 - 1 / 51_000)
        assert s.realized_pnl == pytest.approx(expected)
        assert s.realized_pnl > 0

    def test_fees_and_net(self, round_trip) -> None:
        s = calculate_inverse_sessions(round_trip)[0]
        assert s.total_fees == pytest.approx(10_000 / 1e8)
        assert s.net_pnl == pytest.approx(s.realized_pnl - s.total_fees)

    def test_times_and_counts(self, round_trip) -> None:
        s = calculate_inverse_sessions(round_trip)[0]
        assert s.open_time == round_trip[0].timestamp
        assert s.close_time == round_trip[1].timestamp
        assert s.duration == timedelta(minutes=10)
        assert s.trade_count == 2
        assert s.max_size == 100
        assert s.total_bought == s.total_sold == 100

    def test_display_symbol_and_fee_currency(self, round_trip) -> None:
        s = calculate_inverse_sessions(round_trip)[0]
        assert s.symbol == "XBTUSD"
        assert s.display_symbol == "BTCUSD"
        assert all(t.fee_currency == "XBT" for t in s.trades)

    def test_session_id(self, round_trip) -> None:
        s = calculate_inverse_sessions(round_trip)[0]
        assert s.id == "XBTUSD-0"


class TestShortSession:
    def test_short_profits_when_price_falls(self, make_execution) -> None:
        sessions = calculate_inverse_sessions([
            make_execution("sell", 10, 100, minutes=0),
            make_execution("buy", 10, 90, minutes=1),
        ])
        assert len(sessions) == 1
        s = sessions[0]
        assert s.side == SessionSide.SHORT
        assert s.avg_entry_price == 100
        assert s.avg_exit_price == 90
        assert s.realized_pnl == pytest.approx(10 * (1 / 90 - 1 / 100))
        assert s.realized_pnl > 0


class TestFlip:
    """Buy 5 @ 100, sell 12 @ 110: the sell closes the long and opens a short."""

    def test_two_sessions(self, flip) -> None:
        sessions = calculate_inverse_sessions(flip)
        assert len(sessions) == 2
        assert len(_by_status(sessions, SessionStatus.CLOSED)) == 1
        assert len(_by_status(sessions, SessionStatus.OPEN)) == 1

    def test_closed_long_excludes_overflow(self, flip) -> None:
        closed = _by_status(calculate_inverse_sessions(flip), SessionStatus.CLOSED)[0]
        assert closed.side == SessionSide.LONG
        assert closed.total_bought == 5
        assert closed.total_sold == 5
        assert closed.avg_entry_price == 100
        assert closed.avg_exit_price == pytest.approx(110)
        assert closed.realized_pnl == pytest.approx(5 * (1 / 100 - 1 / 110))
        assert closed.max_size == 5
        assert closed.close_time == flip[1].timestamp

    def test_new_short_seeded_with_overflow(self, flip) -> None:
        opened = _by_status(calculate_inverse_sessions(flip), SessionStatus.OPEN)[0]
        assert opened.side == SessionSide.SHORT
        assert opened.total_sold == 7
        assert opened.total_bought == 0
        assert opened.avg_entry_price == 110
        assert opened.max_size == 7
        assert opened.open_time == flip[1].timestamp
        assert opened.close_time is None
        assert opened.trade_count == 1

    def test_flipping_fill_appears_in_both_sessions(self, flip) -> None:
        sessions = calculate_inverse_sessions(flip)
        for s in sessions:
            assert flip[1].exec_id in [t.id for t in s.trades]

    def test_flipping_commission_counted_in_both_sessions(self, flip) -> None:
        sessions = calculate_inverse_sessions(flip)
        closed = _by_status(sessions, SessionStatus.CLOSED)[0]
        opened = _by_status(sessions, SessionStatus.OPEN)[0]
        assert closed.total_fees == pytest.approx((100 + 1_200) / 1e8)
        assert opened.total_fees == pytest.approx(1_200 / 1e8)

    def test_quantity_conserved_across_flip(self, flip) -> None:
        sessions = calculate_inverse_sessions(flip)
        assert sum(s.total_bought for s in sessions) == 5
        assert sum(s.total_sold for s in sessions) == 12

    def test_flip_then_close(self, flip, make_execution) -> None:
        fills = flip + [make_execution("buy", 7, 100, minutes=9)]
        sessions = calculate_inverse_sessions(fills)
        assert all(s.is_closed for s in sessions)
        short = [s for s in sessions if s.side == SessionSide.SHORT][0]
        assert short.total_sold == 7
        assert short.total_bought == 7
        assert short.realized_pnl == pytest.approx(7 * (1 / 100 - 1 / 110))


class TestOpenSession:
    def test_single_fill_is_open(self, make_execution) -> None:
        sessions = calculate_inverse_sessions([make_execution("buy", 10, 100, commission=2_000)])
        assert len(sessions) == 1
        s = sessions[0]
        assert s.status == SessionStatus.OPEN
        assert s.close_time is None
        assert s.avg_exit_price == 0
        assert s.realized_pnl == 0
        assert s.net_pnl == pytest.approx(-s.total_fees)
        assert s.duration == timedelta(0)

    def test_open_duration_runs_to_last_fill(self, make_execution) -> None:
        sessions = calculate_inverse_sessions([
            make_execution("buy", 10, 100, minutes=0),
            make_execution("buy", 5, 110, minutes=30),
            make_execution("sell", 3, 120, minutes=45),
        ])
        s = sessions[0]
        assert s.status == SessionStatus.OPEN
        assert s.duration == timedelta(minutes=45)
        assert s.max_size == 15
        assert s.avg_entry_price == pytest.approx((10 * 100 + 5 * 110) / 15)


class TestFiltering:
    def test_empty_input(self) -> None:
        assert calculate_inverse_sessions([]) == []

    def test_non_trade_fills_dropped(self, make_execution) -> None:
        sessions = calculate_inverse_sessions([
            make_execution("buy", 10, 100, minutes=0),
            make_execution("sell", 10, 100, minutes=1, exec_type="Funding"),
            make_execution("sell", 10, 110, minutes=2),
        ])
        assert len(sessions) == 1
        assert sessions[0].trade_count == 2

    def test_zero_quantity_dropped(self, make_execution) -> None:
        sessions = calculate_inverse_sessions([make_execution("buy", 0, 100)])
        assert sessions == []

    def test_missing_order_id_dropped(self, make_execution) -> None:
        sessions = calculate_inverse_sessions([
            make_execution("buy", 10, 100, minutes=0),
            make_execution("sell", 10, 110, minutes=1, order_id=""),
        ])
        assert len(sessions) == 1
        assert sessions[0].status == SessionStatus.OPEN


class TestOrdering:
    def test_unsorted_input_gives_same_result(self, round_trip) -> None:
        assert calculate_inverse_sessions(list(reversed(round_trip))) == calculate_inverse_sessions(round_trip)

    def test_input_not_mutated(self, round_trip) -> None:
        reversed_input = list(reversed(round_trip))
        snapshot = list(reversed_input)
        calculate_inverse_sessions(reversed_input)
        assert reversed_input == snapshot

    def test_newest_first(self, make_execution) -> None:
        sessions = calculate_inverse_sessions([
            make_execution("buy", 1, 100, minutes=0),
            make_execution("sell", 1, 101, minutes=1),
            make_execution("buy", 1, 100, minutes=10),
            make_execution("sell", 1, 101, minutes=11),
        ])
        assert sessions[0].close_time > sessions[1].close_time

    def test_symbols_are_independent(self, make_execution) -> None:
        sessions = calculate_inverse_sessions([
            make_execution("buy", 1, 100, minutes=0, symbol="XBTUSD"),
            make_execution("sell", 1, 10, minutes=1, symbol="ETHUSD"),
            make_execution("sell", 1, 101, minutes=2, symbol="XBTUSD"),
        ])
        by_symbol = {s.symbol: s for s in sessions}
        assert by_symbol["XBTUSD"].is_closed
        assert not by_symbol["ETHUSD"].is_closed
        assert by_symbol["ETHUSD"].side == SessionSide.SHORT

    def test_incomparable_timestamps_raise(self, make_execution) -> None:
        naive = datetime(2024, 1, 2, 9, 30)
        aware = datetime(2024, 1, 2, 9, 31, tzinfo=timezone.utc)
        with pytest.raises(ExecutionOrderError):
            calculate_inverse_sessions([
                make_execution("buy", 1, 100, timestamp=naive),
                make_execution("sell", 1, 100, timestamp=aware),
            ])


class TestAccumulator:
    def test_finalize_custom_fee_units(self, make_execution) -> None:
        e = make_execution("buy", 10, 100, commission=250)
        acc = SessionAccumulator.opened_by(e)
        acc.add(e)
        acc.observe(10)
        s = finalize_inverse_session(
            acc, "X-0", "XBTUSD", e.timestamp, closed=False, minor_units_per_major=100,
        )
        assert s.total_fees == pytest.approx(2.5)
        assert s.max_size == 10

    def test_config_fee_units_respected(self, round_trip) -> None:
        cfg = SessionConfig(fees=FeeConfig(minor_units_per_major=1e4))
        s = calculate_inverse_sessions(round_trip, cfg)[0]
        assert s.total_fees == pytest.approx(1.0)

    def test_side_fixed_at_open(self, make_execution) -> None:
        # Equal bought and sold still reads as the opening direction
        sessions = calculate_inverse_sessions([
            make_execution("buy", 10, 100, minutes=0),
            make_execution("sell", 10, 105, minutes=1),
        ])
        assert sessions[0].side == SessionSide.LONG
