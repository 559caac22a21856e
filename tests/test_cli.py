"""Tests for the stockphase CLI commands."""

import json

import pytest
from click.testing import CliRunner

from stockphase.cli.main import cli
from strategies import make_bars


def write_bars(path, closes, flows=None):
    """Write make_bars output as a CSV, optionally with a foreign_net column."""
    lines = ["date,open,high,low,close,volume" + (",foreign_net" if flows else "")]
    for i, bar in enumerate(make_bars(closes)):
        row = f"{bar.date.isoformat()},{bar.open},{bar.high},{bar.low},{bar.close},{bar.volume}"
        if flows:
            row += f",{flows[i]}"
        lines.append(row)
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_args(tmp_path):
    """Point the CLI at a config file that does not exist so defaults apply."""
    return ["--config", str(tmp_path / "config.toml")]


@pytest.fixture
def uptrend_csv(tmp_path):
    return write_bars(tmp_path / "up.csv", [100.0 * 1.01 ** i for i in range(60)])


class TestMainGroup:
    """Top-level group."""

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("analyze", "indicators", "scan"):
            assert name in result.output

    def test_unknown_command(self, runner):
        result = runner.invoke(cli, ["nope"])
        assert result.exit_code != 0

    def test_bad_config_is_reported(self, runner, tmp_path, uptrend_csv):
        config = tmp_path / "bad.toml"
        config.write_text("[analysis]\nmax_workers = 0\n")
        result = runner.invoke(cli, ["--config", str(config), "analyze", str(uptrend_csv)])
        assert result.exit_code == 1
        assert "Invalid config" in result.output


class TestAnalyzeCommand:
    """analyze CSV_FILE"""

    def test_json_report(self, runner, config_args, uptrend_csv):
        result = runner.invoke(cli, config_args + ["analyze", str(uptrend_csv), "--json"])
        assert result.exit_code == 0, result.output

        report = json.loads(result.output)
        assert report["symbol"] == "UP"
        assert report["bar_count"] == 60
        assert report["phase"]["phase"] == "markup"
        assert report["recommendation"]["action"] in {
            "STRONG_BUY", "BUY", "HOLD", "SELL", "STRONG_SELL",
        }

    def test_symbol_and_market_options(self, runner, config_args, uptrend_csv):
        result = runner.invoke(cli, config_args + [
            "analyze", str(uptrend_csv), "-s", "bbca.jk", "--flow", "2500000", "--breadth", "62", "--json",
        ])
        assert result.exit_code == 0, result.output

        report = json.loads(result.output)
        assert report["symbol"] == "BBCA.JK"
        names = [f["name"] for f in report["recommendation"]["factors"]]
        assert "Foreign Flow" in names
        assert "Market Breadth" in names

    def test_flow_column_is_summed(self, runner, config_args, tmp_path):
        path = write_bars(
            tmp_path / "flow.csv",
            [100.0 * 1.01 ** i for i in range(60)],
            flows=[0.0] * 55 + [500_000.0] * 5,
        )
        result = runner.invoke(cli, config_args + ["analyze", str(path), "--json"])
        assert result.exit_code == 0, result.output

        factors = json.loads(result.output)["recommendation"]["factors"]
        flow = [f for f in factors if f["name"] == "Foreign Flow"][0]
        assert flow["description"] == "Net foreign buying +2.5M shares"

    def test_rich_output(self, runner, config_args, uptrend_csv):
        result = runner.invoke(cli, config_args + ["analyze", str(uptrend_csv)])
        assert result.exit_code == 0, result.output
        assert "Wyckoff Analysis" in result.output
        assert "Recommendation" in result.output

    def test_missing_file(self, runner, config_args, tmp_path):
        result = runner.invoke(cli, config_args + ["analyze", str(tmp_path / "missing.csv")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_non_numeric_cell(self, runner, config_args, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("date,open,high,low,close,volume\n2024-01-01,1,2,0.5,abc,100\n")
        result = runner.invoke(cli, config_args + ["analyze", str(path)])
        assert result.exit_code == 1
        assert "Non-numeric" in result.output

    def test_breadth_out_of_range(self, runner, config_args, uptrend_csv):
        result = runner.invoke(cli, config_args + ["analyze", str(uptrend_csv), "--breadth", "150"])
        assert result.exit_code == 2


class TestIndicatorsCommand:
    """indicators CSV_FILE"""

    def test_table(self, runner, config_args, uptrend_csv):
        result = runner.invoke(cli, config_args + ["indicators", str(uptrend_csv)])
        assert result.exit_code == 0, result.output
        assert "MA20" in result.output
        assert "Resistance" in result.output


class TestScanCommand:
    """scan CSV_FILES..."""

    def test_ranks_symbols(self, runner, config_args, tmp_path, uptrend_csv):
        down = write_bars(tmp_path / "down.csv", [100.0 * 0.99 ** i for i in range(60)])
        result = runner.invoke(cli, config_args + ["scan", str(uptrend_csv), str(down), "-w", "2"])
        assert result.exit_code == 0, result.output
        assert "UP" in result.output
        assert "DOWN" in result.output
        assert "Scan Results (2 symbols" in result.output

    def test_bad_files_are_skipped(self, runner, config_args, tmp_path, uptrend_csv):
        result = runner.invoke(cli, config_args + ["scan", str(uptrend_csv), str(tmp_path / "missing.csv")])
        assert result.exit_code == 0, result.output
        assert "Skipping" in result.output

    def test_non_numeric_file_is_skipped(self, runner, config_args, tmp_path, uptrend_csv):
        bad = tmp_path / "bad.csv"
        bad.write_text("date,open,high,low,close,volume\n2024-01-01,1,2,0.5,abc,100\n")
        result = runner.invoke(cli, config_args + ["scan", str(uptrend_csv), str(bad)])
        assert result.exit_code == 0, result.output
        assert "Skipping" in result.output
        assert "Scan Results (1 symbols" in result.output

    def test_no_readable_files(self, runner, config_args, tmp_path):
        result = runner.invoke(cli, config_args + ["scan", str(tmp_path / "missing.csv")])
        assert result.exit_code == 1
        assert "No readable CSV files" in result.output
