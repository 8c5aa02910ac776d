"""
Command-line front end for the fixed asset inventory.

    python main.py init
    python main.py import assets.csv
    python main.py logs --search ZC001 --start 2024-01-01 --end 2024-01-31
"""

import argparse
import sys
from typing import List, Optional

from asset_database import AssetDatabase
from asset_models import display_value
from config_manager import ConfigManager
from database_service import DatabaseService
from error_handling import AppLogger, ErrorHandler, ValidationError, safe_execute
from export_service import ExportService
from import_service import ImportService
from performance_monitoring import PerformanceTracker
from reports_analysis import export_summary_excel, summarize_assets
from validation import AssetValidator

# Version Information
VERSION = "1.0.251019"  # Format: Major.Minor.YYMMDD


def _print_error(title: str, message: str):
    print(f"{title}: {message}", file=sys.stderr)


class InventoryApp:
    """Owns the configuration, logger, database and services of one run."""

    def __init__(self, config_path: str):
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.get_config()

        # Ensure all required directories exist at startup
        self.config_manager.ensure_directories()

        self.logger = AppLogger.from_config(self.config)
        PerformanceTracker.instance().logger = self.logger
        self.error_handler = ErrorHandler(self.logger, notifier=_print_error)

        self.db = AssetDatabase(self.config.database_path, self.logger, self.config.enable_wal)
        self.service = DatabaseService(self.db, self.config, self.logger)
        self.import_service = ImportService(self.db, self.config, self.logger)
        self.export_service = ExportService(self.db, self.logger)

    def close(self):
        self.db.close()

    def init(self, args) -> bool:
        print(f"Database ready at {self.config.database_path}")
        return True

    def import_assets(self, args) -> bool:
        check = AssetValidator().validate_file_path(args.file)
        if not check.is_valid:
            raise ValidationError(check.errors)
        result = self.import_service.import_file(args.file)
        print(result.summary())
        return True

    def export_assets(self, args) -> bool:
        if args.logs:
            count = self.export_service.export_change_logs_csv(args.file)
            print(f"Exported {count} change log(s) to {args.file}")
        else:
            count = self.export_service.export_assets_csv(args.file)
            print(f"Exported {count} asset(s) to {args.file}")
        return True

    def write_template(self, args) -> bool:
        path = args.file or self.config_manager.get_suggested_filepath("asset_import_template.csv", "template")
        self.import_service.write_template(path)
        print(f"Template written to {path}")
        return True

    def report(self, args) -> bool:
        path = args.file or self.config_manager.get_suggested_filepath("asset_summary.xlsx", "report")
        export_summary_excel(self.db, path)
        print(f"Report written to {path}")
        return True

    def stats(self, args) -> bool:
        stats = self.service.get_statistics()
        print(f"Assets:      {stats['asset_count']}")
        print(f"Total value: {stats['total_value']:.2f}")
        print(f"Employees:   {stats['employee_count']}")
        print(f"Categories:  {stats['category_count']}")
        print(f"Departments: {stats['department_count']}")
        print(f"Change logs: {stats['change_log_count']}")

        by_status = summarize_assets(self.db, "status")
        if not by_status.empty:
            print()
            for row in by_status.itertuples(index=False):
                print(f"  {row.status}: {row.count} ({row.total_value:.2f})")
        return True

    def logs(self, args) -> bool:
        logs = self.db.search_change_logs(args.search or "", args.start or "", args.end or "")
        if args.limit and args.limit > 0:
            logs = logs[:args.limit]
        for log in logs:
            print(f"{log.change_time}  {log.asset_code}  {log.asset_name}  {log.field_label}: "
                  f"{display_value(log.old_value)} -> {display_value(log.new_value)}")
        print(f"{len(logs)} change log(s)")
        return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="asset-inventory",
                                     description="Fixed asset inventory")
    parser.add_argument("--config", default="assets/config.json", help="configuration file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--perf", action="store_true", help="print timing of monitored operations")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init", help="create the database and output directories")

    import_parser = commands.add_parser("import", help="import assets from a CSV file")
    import_parser.add_argument("file")

    export_parser = commands.add_parser("export", help="export assets to a CSV file")
    export_parser.add_argument("file")
    export_parser.add_argument("--logs", action="store_true", help="export the change log instead")

    template_parser = commands.add_parser("template", help="write the CSV import template")
    template_parser.add_argument("file", nargs="?")

    report_parser = commands.add_parser("report", help="write the Excel summary report")
    report_parser.add_argument("file", nargs="?")

    commands.add_parser("stats", help="show inventory statistics")

    logs_parser = commands.add_parser("logs", help="search the asset change log")
    logs_parser.add_argument("--search", help="text in asset code, name or field")
    logs_parser.add_argument("--start", help="first day, YYYY-MM-DD")
    logs_parser.add_argument("--end", help="last day, YYYY-MM-DD")
    logs_parser.add_argument("--limit", type=int, default=0)

    return parser


COMMANDS = {
    "init": InventoryApp.init,
    "import": InventoryApp.import_assets,
    "export": InventoryApp.export_assets,
    "template": InventoryApp.write_template,
    "report": InventoryApp.report,
    "stats": InventoryApp.stats,
    "logs": InventoryApp.logs,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    app = safe_execute(InventoryApp, args.config,
                       error_handler=ErrorHandler(notifier=_print_error),
                       context="opening the inventory")
    if app is None:
        return 1

    try:
        ok = safe_execute(COMMANDS[args.command], app, args,
                          error_handler=app.error_handler,
                          context=f"running '{args.command}'",
                          default_return=False)
        app.error_handler.log_operation(args.command, ok)
        if args.perf:
            print(PerformanceTracker.instance().get_performance_report())
        return 0 if ok else 1
    finally:
        app.close()


if __name__ == "__main__":
    sys.exit(main())
