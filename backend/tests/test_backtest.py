"""Tests for the simple threshold-crossing backtester."""

import math

import orjson
import pandas as pd
import pytest

from analytics.engine import IndicatorEngine, NodeNotFoundError
from analytics.models import Candle, CustomIndicator, IndicatorNode, IndicatorValue
from backtest import PerformanceCalculator, TradeSignal, detect_crossings, run_simple_backtest
from backtest.__main__ import main, resolve_output
from backtest.config import BacktestSettings
from backtest.data_loader import candles_from_frame, load_candles_csv, load_indicator_json
from backtest.models import ClosedTrade
from backtest.report import ReportFormatter

BASE_TS = 1_700_000_000_000


def _make_candles(closes: list[float]) -> list[Candle]:
    return [
        Candle(
            timestamp=BASE_TS + i * 3_600_000,
            open=c,
            high=c + 1,
            low=c - 1,
            close=c,
            volume=10.0,
        )
        for i, c in enumerate(closes)
    ]


def _close_indicator() -> CustomIndicator:
    """SMA(1) of close, i.e. the close itself."""
    return CustomIndicator(
        id="close",
        name="Close",
        nodes=[IndicatorNode(id="c", type="indicator", indicator="sma", params={"period": 1})],
        output_node_id="c",
    )


def _signal(i: int, signal_type: str, price: float) -> TradeSignal:
    return TradeSignal(timestamp=BASE_TS + i, type=signal_type, price=price, value=0.0)


CLOSES = [90, 110, 120, 95, 99, 105, 130, 98, 101]


# ---------------------------------------------------------------------------
# Crossings
# ---------------------------------------------------------------------------


class TestDetectCrossings:
    """Tests for threshold crossing detection."""

    def test_crossings_on_close(self):
        """Test crossings of the close series around a threshold."""
        candles = _make_candles(CLOSES)
        values = IndicatorEngine().evaluate_indicator(_close_indicator(), candles)
        signals = detect_crossings(values, candles, threshold=100)

        assert [s.type for s in signals] == ["buy", "sell", "buy", "sell", "buy"]
        assert [s.price for s in signals] == [110, 95, 105, 98, 101]
        assert signals[0].timestamp == candles[1].timestamp
        assert signals[0].value == 110

    def test_touching_threshold_counts_as_prior_side(self):
        """Test touching the threshold does not count as a crossing."""
        candles = _make_candles([0, 0, 0])
        values = [
            IndicatorValue(timestamp=c.timestamp, value=v)
            for c, v in zip(candles, [0.0, 1.0, 0.0])
        ]
        # 0 -> 1 crosses up, 1 -> 0 only touches
        assert [s.type for s in detect_crossings(values, candles)] == ["buy"]

        values = [
            IndicatorValue(timestamp=c.timestamp, value=v)
            for c, v in zip(candles, [0.0, -1.0, 0.0])
        ]
        assert [s.type for s in detect_crossings(values, candles)] == ["sell"]

    def test_no_signals_for_short_series(self):
        """Test a single value produces no signals."""
        candles = _make_candles([100])
        values = [IndicatorValue(timestamp=candles[0].timestamp, value=1.0)]
        assert detect_crossings(values, candles) == []


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


class TestPerformanceCalculator:
    """Tests for trade matching and statistics."""

    def test_trade_matching_and_stats(self):
        """Test long-only trade matching and the summary statistics."""
        signals = [
            _signal(0, "sell", 95),  # no position: ignored
            _signal(1, "buy", 100),
            _signal(2, "buy", 105),  # already long: ignored
            _signal(3, "sell", 110),
            _signal(4, "sell", 120),  # flat: ignored
            _signal(5, "buy", 200),
            _signal(6, "sell", 150),
            _signal(7, "buy", 90),  # left open
        ]
        trades, perf = PerformanceCalculator().calculate(signals)

        assert [(t.entry_price, t.exit_price) for t in trades] == [(100, 110), (200, 150)]
        assert trades[0].trade_return == pytest.approx(0.1)
        assert trades[1].trade_return == pytest.approx(-0.25)

        assert perf.total_trades == 2
        assert perf.profitable_trades == 1
        assert perf.total_return == pytest.approx(-0.15)
        assert perf.sharpe_ratio == pytest.approx(-0.15 / math.sqrt(2))
        assert perf.win_rate == pytest.approx(50.0)
        assert perf.max_drawdown == pytest.approx(0.25)

    def test_drawdown_includes_rising_exit(self):
        """Peak and trough absorb the exit price."""
        signals = [_signal(0, "buy", 100), _signal(1, "sell", 110)]
        _, perf = PerformanceCalculator().calculate(signals)
        assert perf.max_drawdown == pytest.approx(10 / 110)

    def test_zero_entry_price(self):
        """Test a buy at price 0 closes with a zero return."""
        trades, perf = PerformanceCalculator().calculate([_signal(0, "buy", 0), _signal(1, "sell", -1)])

        assert trades[0].trade_return == 0.0
        assert perf.total_return == 0.0
        assert perf.max_drawdown == 0.0

    def test_zero_close_through_simulator(self):
        """Test a crossing at a close of 0 does not break the backtest."""
        indicator = CustomIndicator(
            id="shifted",
            name="Shifted close",
            nodes=[
                IndicatorNode(id="c", type="indicator", indicator="sma", params={"period": 1}),
                IndicatorNode(id="k", type="constant", value=0.5),
                IndicatorNode(id="d", type="operator", operator="-", inputs=["c", "k"]),
            ],
            output_node_id="d",
        )
        result = run_simple_backtest(indicator, _make_candles([-1, 0, 5, -1]), threshold=-0.6)

        assert [(t.entry_price, t.exit_price) for t in result.trades] == [(0, -1)]
        assert result.performance.total_return == 0.0

    def test_no_trades(self):
        """Test a lone open buy yields no trades."""
        trades, perf = PerformanceCalculator().calculate([_signal(0, "buy", 100)])
        assert trades == []
        assert perf.total_trades == 0
        assert perf.sharpe_ratio == 0
        assert perf.max_drawdown == 0

    def test_return_wire_name(self):
        """Test trade_return is serialized as return."""
        trade = ClosedTrade(
            entry_timestamp=1, exit_timestamp=2, entry_price=10, exit_price=11, trade_return=0.1
        )
        wire = trade.to_wire()
        assert wire["return"] == 0.1
        assert wire["entryPrice"] == 10
        assert ClosedTrade.model_validate(wire) == trade


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------


class TestRunSimpleBacktest:
    """Tests for run_simple_backtest."""

    def test_end_to_end(self):
        """Test a full backtest over the close series."""
        candles = _make_candles(CLOSES)
        result = run_simple_backtest(_close_indicator(), candles, threshold=100)

        assert result.candle_count == len(CLOSES)
        assert len(result.signals) == 5
        assert [(t.entry_price, t.exit_price) for t in result.trades] == [(110, 95), (105, 98)]
        assert result.performance.total_trades == 2
        assert result.performance.profitable_trades == 0

    def test_uses_given_engine(self):
        """Test an injected engine is used and populated."""
        engine = IndicatorEngine()
        run_simple_backtest(_close_indicator(), _make_candles(CLOSES), engine=engine)
        assert engine.cache_size == 1

    def test_malformed_graph_raises(self):
        """Test a malformed graph raises a graph error."""
        indicator = CustomIndicator(id="bad", name="Bad", nodes=[], output_node_id="x")
        with pytest.raises(NodeNotFoundError):
            run_simple_backtest(indicator, _make_candles(CLOSES))


# ---------------------------------------------------------------------------
# Data loading, reports and CLI
# ---------------------------------------------------------------------------


def _write_inputs(tmp_path, closes=CLOSES):
    rows = [
        {
            "Timestamp": BASE_TS + i * 3_600_000,
            "Open": c,
            "High": c + 1,
            "Low": c - 1,
            "Close": c,
            "Volume": 10,
        }
        for i, c in enumerate(closes)
    ]
    csv_path = tmp_path / "candles.csv"
    # Reversed on disk: the loader sorts by timestamp
    pd.DataFrame(rows[::-1]).to_csv(csv_path, index=False)

    json_path = tmp_path / "indicator.json"
    json_path.write_bytes(orjson.dumps(_close_indicator().to_wire()))
    return csv_path, json_path


class TestDataLoader:
    """Tests for candle and indicator loading."""

    def test_load_candles_csv(self, tmp_path):
        """Test loading candles from CSV, sorted by timestamp."""
        csv_path, _ = _write_inputs(tmp_path)
        candles = load_candles_csv(csv_path)

        assert [c.close for c in candles] == CLOSES
        assert candles[0].timestamp == BASE_TS
        assert candles[0].buy_volume is None

    def test_optional_columns_with_gaps(self):
        """Test optional volume columns with missing values."""
        df = pd.DataFrame(
            {
                "timestamp": [2, 1],
                "open": [1.0, 1.0],
                "high": [2.0, 2.0],
                "low": [0.5, 0.5],
                "close": [1.5, 1.5],
                "volume": [10.0, 20.0],
                "buy_volume": [6.0, None],
            }
        )
        candles = candles_from_frame(df)

        assert [c.timestamp for c in candles] == [1, 2]
        assert candles[0].buy_volume is None
        assert candles[1].buy_volume == 6.0

    def test_missing_columns(self):
        """Test missing required columns are reported."""
        with pytest.raises(ValueError, match="volume"):
            candles_from_frame(pd.DataFrame({"timestamp": [1], "open": [1], "high": [1], "low": [1], "close": [1]}))

    def test_load_indicator_json(self, tmp_path):
        """Test loading a custom indicator from JSON."""
        _, json_path = _write_inputs(tmp_path)
        indicator = load_indicator_json(json_path)
        assert indicator == _close_indicator()


class TestReport:
    """Tests for report output."""

    def test_save_json(self, tmp_path):
        """Test JSON report contents."""
        result = run_simple_backtest(_close_indicator(), _make_candles(CLOSES), threshold=100)
        path = ReportFormatter.save_json(result, tmp_path / "nested" / "run.json")

        data = orjson.loads(path.read_bytes())
        assert data["performance"]["totalTrades"] == 2
        assert data["candleCount"] == len(CLOSES)
        assert data["trades"][0]["return"] == pytest.approx(-15 / 110)
        assert data["indicator"]["outputNodeId"] == "c"

    def test_print_console(self, capsys):
        """Test console report output."""
        result = run_simple_backtest(_close_indicator(), _make_candles(CLOSES), threshold=100)
        ReportFormatter.print_console(result)

        out = capsys.readouterr().out
        assert "BACKTEST RESULTS - Close" in out
        assert "Closed trades:  2" in out
        assert "2023-11-14" in out


class TestCLI:
    """Tests for the backtest command line."""

    def test_main_writes_report(self, tmp_path):
        """Test the CLI writes a JSON report."""
        csv_path, json_path = _write_inputs(tmp_path)
        output = tmp_path / "out" / "run.json"

        code = main([
            "--candles", str(csv_path),
            "--indicator", str(json_path),
            "--threshold", "100",
            "-o", str(output),
        ])

        assert code == 0
        assert orjson.loads(output.read_bytes())["performance"]["totalTrades"] == 2

    def test_missing_file(self, tmp_path):
        """Test missing input files exit with 1."""
        code = main(["--candles", str(tmp_path / "nope.csv"), "--indicator", str(tmp_path / "nope.json")])
        assert code == 1

    def test_invalid_graph(self, tmp_path):
        """Test an invalid graph exits with 1."""
        csv_path, _ = _write_inputs(tmp_path)
        json_path = tmp_path / "bad.json"
        json_path.write_bytes(orjson.dumps({"id": "bad", "name": "Bad", "nodes": [], "outputNodeId": "x"}))

        assert main(["--candles", str(csv_path), "--indicator", str(json_path)]) == 1

    def test_resolve_output(self, tmp_path):
        """Test bare file names go to the output directory."""
        assert resolve_output("run.json").name == "run.json"
        assert resolve_output("run.json").parent.name == "backtest_results"
        nested = tmp_path / "x" / "run.json"
        assert resolve_output(str(nested)) == nested


class TestBacktestSettings:
    """Tests for environment configuration."""

    def test_env_override(self, monkeypatch):
        """Test settings from environment variables."""
        monkeypatch.setenv("BACKTEST_THRESHOLD", "0.5")
        monkeypatch.setenv("BACKTEST_OUTPUT_DIR", "reports")
        settings = BacktestSettings()
        assert settings.threshold == 0.5
        assert settings.output_dir == "reports"
