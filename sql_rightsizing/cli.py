"""
Command line interface for the SQL rightsizing system.
"""

import argparse
import csv
import json
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .engine.coordinator import SizingCoordinator
from .models import AnalysisReport, RecommendationStatus
from .services.config import ConfigManager
from .services.ingestion import DataIngestionService
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


class SizingRecommendationApp:
    """Main application class"""

    def __init__(
        self, config_dir: str = "config", data_dir: str = "data", max_workers: int = 4
    ):
        self.config_manager = ConfigManager(config_dir)
        self.data_service = DataIngestionService(data_dir)
        self.coordinator = SizingCoordinator(
            self.config_manager.analysis_config, max_workers=max_workers
        )

        logger.debug(
            "Application initialized", config_dir=config_dir, data_dir=data_dir
        )

    async def run_analysis(
        self,
        inventory_file: Optional[str] = None,
        metrics_dir: Optional[str] = None,
        use_sample_data: bool = False,
    ) -> Optional[AnalysisReport]:
        """Run the complete sizing analysis"""
        logger.info("Starting sizing analysis", use_sample_data=use_sample_data)

        try:
            if use_sample_data:
                logger.info("Creating and using sample data")
                sample = self.data_service.create_sample_data()
                inventory_file = sample["inventory_file"]
                metrics_dir = sample["metrics_dir"]

            if not inventory_file:
                raise ValueError("An inventory file is required unless sample data is used")
            if not metrics_dir:
                metrics_dir = str(self.data_service.data_dir / "metrics")

            profiles, bundles = self.data_service.load(inventory_file, metrics_dir)

            if not profiles:
                logger.error("No databases found to analyze")
                return None

            report = await self.coordinator.analyze_databases_and_generate_report(
                profiles=profiles, bundles=bundles
            )

            logger.info(
                "Sizing analysis completed successfully",
                total_databases=report.total_databases,
                monthly_savings=report.total_monthly_savings,
                annual_savings=report.total_annual_savings,
            )
            return report

        except Exception as e:
            logger.critical("Analysis failed", error=str(e))
            raise

    def print_report_summary(self, report: AnalysisReport):
        """Print a human-readable report summary"""
        currency = report.currency
        print("\n" + "=" * 80)
        print(f"Generated: {report.generated_at}")
        print(f"Databases Analysed: {report.total_databases}")
        print(f"Monthly Savings: {report.total_monthly_savings:,.2f} {currency}")
        print(f"Annual Savings: {report.total_annual_savings:,.2f} {currency}")
        print()

        print("STATUS:")
        for status, count in report.status_counts.items():
            print(f"  {status:<10} {count}")
        print()

        print("WORKLOAD CLASSES:")
        for workload_class, count in report.class_counts.items():
            if count:
                print(f"  {workload_class:<20} {count}")
        print()

        print("PRIORITY:")
        for priority, count in report.priority_counts.items():
            print(f"  {priority:<10} {count}")
        print()

        if report.analysis_errors:
            print("FAILED DATABASES:")
            for error in report.analysis_errors:
                print(f"  {error['database']}: {error['error_type']}: {error['error']}")
            print()

        top = self.coordinator.report_generator.top_savings(report)
        if top:
            print("TOP SAVINGS OPPORTUNITIES:")
            for i, rec in enumerate(top, 1):
                print(f"\n{i}. {rec.key} ({rec.sku}, {rec.workload_class.value})")
                print(f"   Action: {rec.decision.action}")
                print(f"   Monthly Savings: {rec.cost.monthly_savings:,.2f} {currency}")
                print(f"   Confidence: {rec.decision.confidence.value}")

        urgent = [
            r
            for r in report.recommendations
            if r.status != RecommendationStatus.OK and r.decision.priority.rank <= 1
        ]
        if urgent:
            print("\nNEEDS ATTENTION:")
            for rec in sorted(urgent, key=lambda r: r.decision.priority.rank):
                print(
                    f"  [{rec.decision.priority.value}] {rec.key}: "
                    f"{rec.status.value} {rec.workload_class.value} - {rec.decision.action}"
                )

        print("\n" + "=" * 80)

    def _summary_rows(self, report: AnalysisReport) -> List[List[object]]:
        rows = [
            ["Total Databases", report.total_databases],
            ["Monthly Savings", f"{report.total_monthly_savings:.2f} {report.currency}"],
            ["Annual Savings", f"{report.total_annual_savings:.2f} {report.currency}"],
            ["Failed Databases", len(report.analysis_errors)],
        ]
        rows.extend([f"Status {k}", v] for k, v in report.status_counts.items())
        rows.extend([f"Priority {k}", v] for k, v in report.priority_counts.items())
        rows.extend(
            [f"Class {k}", v] for k, v in report.class_counts.items() if v
        )
        return rows

    def export_report(self, report: AnalysisReport, output_file: str, format_type: str = "json"):
        """Export report in specified format

        Returns:
            dict: Information about exported files
        """
        try:
            if format_type.lower() == "json":
                with open(output_file, "w") as f:
                    json.dump(report.model_dump(mode="json"), f, indent=2, default=str)
                logger.info("JSON report exported", file=output_file)
                return {"format": "json", "files": [output_file]}

            elif format_type.lower() == "csv":
                base_path = Path(output_file)
                base_name = base_path.stem
                base_dir = base_path.parent

                summary_file = base_dir / f"{base_name}_summary.csv"
                with open(summary_file, "w", newline="", encoding="utf-8") as f:
                    writer = csv.writer(f)
                    writer.writerow(["Metric", "Value"])
                    writer.writerows(self._summary_rows(report))

                recommendations_file = base_dir / f"{base_name}_recommendations.csv"
                rows = [rec.to_row() for rec in report.recommendations]
                with open(recommendations_file, "w", newline="", encoding="utf-8") as f:
                    if rows:
                        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
                        writer.writeheader()
                        writer.writerows(rows)

                logger.info(
                    "CSV reports exported",
                    summary=str(summary_file),
                    recommendations=str(recommendations_file),
                )
                return {
                    "format": "csv",
                    "files": [str(summary_file), str(recommendations_file)],
                }

            elif format_type.lower() == "excel":
                with pd.ExcelWriter(output_file, engine="openpyxl") as writer:
                    pd.DataFrame(
                        self._summary_rows(report), columns=["Metric", "Value"]
                    ).to_excel(writer, sheet_name="Summary", index=False)

                    pd.DataFrame(
                        [rec.to_row() for rec in report.recommendations]
                    ).to_excel(writer, sheet_name="Recommendations", index=False)

                    pd.DataFrame(
                        report.analysis_errors, columns=["database", "error_type", "error"]
                    ).to_excel(writer, sheet_name="Errors", index=False)

                logger.info("Excel report exported", file=output_file, sheets=3)
                return {"format": "excel", "files": [output_file]}

            else:
                raise ValueError(f"Unsupported export format: {format_type}")

        except Exception as e:
            logger.error("Export failed", error=str(e), format=format_type)
            return {"format": format_type, "files": [], "error": str(e)}

    def get_status(self):
        """Get application status"""
        return {
            "config": self.config_manager.get_status(),
            "coordinator": self.coordinator.get_status(),
        }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SQL Rightsizing - workload classification and sizing recommendations",
        prog="sql-rightsizing",
    )
    subparsers = parser.add_subparsers(dest="mode", help="Operation mode")

    cli_parser = subparsers.add_parser("analyze", help="Run sizing analysis (default mode)")
    cli_parser.add_argument("--inventory-file", help="Path to inventory CSV file")
    cli_parser.add_argument("--metrics-dir", help="Directory holding the metric CSV files")
    cli_parser.add_argument(
        "--sample-data", action="store_true", help="Use sample data for testing"
    )
    cli_parser.add_argument("--output-file", help="Output file for detailed report")
    cli_parser.add_argument(
        "--output-format",
        choices=["json", "csv", "excel"],
        default="json",
        help="Output format for detailed report (json=full details, csv=summary and records, excel=multiple sheets)",
    )
    cli_parser.add_argument(
        "--workers", type=int, default=4, help="Databases analysed in parallel"
    )
    cli_parser.add_argument("--status", action="store_true", help="Show application status")
    cli_parser.add_argument(
        "--config-dir", default="config", help="Configuration directory"
    )
    cli_parser.add_argument("--data-dir", default="data", help="Data directory")

    # Logging options
    cli_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose (DEBUG) logging"
    )
    cli_parser.add_argument(
        "--quiet", "-q", action="store_true", help="Reduce output (WARNING+ only)"
    )
    cli_parser.add_argument(
        "--log-format",
        choices=["auto", "json", "human"],
        default="auto",
        help="Log output format (auto=detect based on terminal)",
    )
    return parser


async def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    parser = build_parser()
    # Default to analyze mode if no subcommand specified
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0].startswith("-") and argv[0] not in ("-h", "--help"):
        argv.insert(0, "analyze")
    args = parser.parse_args(argv)

    if args.mode != "analyze":
        parser.print_help()
        return

    if args.quiet:
        log_level = "WARNING"
    elif args.verbose:
        log_level = "DEBUG"
    else:
        log_level = "INFO"

    configure_logging(level=log_level, format_type=args.log_format, component="cli")

    try:
        app = SizingRecommendationApp(args.config_dir, args.data_dir, args.workers)

        if args.status:
            print(json.dumps(app.get_status(), indent=2))
            return

        report = await app.run_analysis(
            inventory_file=args.inventory_file,
            metrics_dir=args.metrics_dir,
            use_sample_data=args.sample_data,
        )

        if report:
            app.print_report_summary(report)

            if args.output_file:
                export_result = app.export_report(report, args.output_file, args.output_format)

                if export_result.get("error"):
                    print(f"\nExport failed: {export_result['error']}")
                    sys.exit(1)
                elif export_result["format"] == "csv":
                    print("\nDetailed reports saved to:")
                    for file_path in export_result["files"]:
                        print(f"  {Path(file_path).name}")
                else:
                    print(f"\nDetailed report saved to: {export_result['files'][0]}")

    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        sys.exit(0)
    except Exception as e:
        logger.critical("Application failed", error=str(e))
        sys.exit(1)
