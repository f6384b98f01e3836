"""
CLI functionality tests.
"""

import asyncio
import json

import pandas as pd
import pytest

from sql_rightsizing.cli import SizingRecommendationApp, build_parser, main


def run_cli(*args):
    return asyncio.run(main(list(args)))


@pytest.fixture
def dirs(sample_config_dir, sample_data_dir):
    return ["--config-dir", str(sample_config_dir), "--data-dir", str(sample_data_dir)]


@pytest.fixture
def sample_report(sample_config_dir, sample_data_dir):
    app = SizingRecommendationApp(str(sample_config_dir), str(sample_data_dir))
    return app, asyncio.run(app.run_analysis(use_sample_data=True))


@pytest.mark.functional
class TestCommandLine:
    def test_analyze_is_default_mode(self):
        args = build_parser().parse_args(["analyze", "--sample-data"])

        assert args.mode == "analyze"
        assert args.output_format == "json"
        assert args.workers == 4

    def test_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            run_cli("--help")

        assert exc.value.code == 0
        assert "usage:" in capsys.readouterr().out.lower()

    def test_sample_data_summary(self, dirs, capsys):
        run_cli("--sample-data", "--quiet", *dirs)
        out = capsys.readouterr().out

        assert "Databases Analysed: 12" in out
        assert "STATUS:" in out
        assert "TOP SAVINGS OPPORTUNITIES:" in out

    def test_json_export(self, dirs, temp_dir, capsys):
        output = temp_dir / "report.json"
        run_cli("--sample-data", "--quiet", "--output-file", str(output), *dirs)

        report = json.loads(output.read_text())
        assert report["total_databases"] == 12
        assert len(report["recommendations"]) == 12
        assert "Detailed report saved to" in capsys.readouterr().out

    def test_status(self, dirs, capsys):
        run_cli("--status", "--quiet", *dirs)
        status = json.loads(capsys.readouterr().out)

        assert status["config"]["currency"] == "EUR"
        assert status["coordinator"]["max_workers"] == 4

    def test_missing_inventory_exits(self, dirs, temp_dir):
        with pytest.raises(SystemExit) as exc:
            run_cli("--inventory-file", str(temp_dir / "missing.csv"), "--quiet", *dirs)
        assert exc.value.code == 1

    def test_no_inventory_exits(self, dirs):
        with pytest.raises(SystemExit) as exc:
            run_cli("--quiet", *dirs)
        assert exc.value.code == 1


@pytest.mark.functional
class TestReportExport:
    def test_csv_export(self, sample_report, temp_dir):
        app, report = sample_report
        result = app.export_report(report, str(temp_dir / "report.csv"), "csv")

        assert result["format"] == "csv"
        summary, records = result["files"]
        assert summary.endswith("report_summary.csv")

        rows = pd.read_csv(records)
        assert len(rows) == 12
        assert {"server_name", "status", "workload_class", "monthly_savings"} <= set(
            rows.columns
        )

    def test_excel_export(self, sample_report, temp_dir):
        app, report = sample_report
        output = temp_dir / "report.xlsx"
        result = app.export_report(report, str(output), "excel")

        assert result == {"format": "excel", "files": [str(output)]}
        sheets = pd.read_excel(output, sheet_name=None)
        assert list(sheets) == ["Summary", "Recommendations", "Errors"]
        assert len(sheets["Recommendations"]) == 12
        assert sheets["Errors"].empty

    def test_unsupported_format(self, sample_report, temp_dir):
        app, report = sample_report
        result = app.export_report(report, str(temp_dir / "report.txt"), "xml")

        assert result["files"] == []
        assert "Unsupported export format" in result["error"]

    def test_summary_printed(self, sample_report, capsys):
        app, report = sample_report
        app.print_report_summary(report)
        out = capsys.readouterr().out

        assert "Monthly Savings:" in out
        assert "NEEDS ATTENTION:" in out
