"""
Export service writing assets and change history to CSV.
Files are written as UTF-8 with a byte-order mark so spreadsheet programs
pick the right encoding, using the same column layout the importer reads.
"""

import csv
from typing import List, Optional

from asset_database import AssetDatabase
from asset_models import AssetChangeLog, Asset
from error_handling import AppLogger
from import_service import CSV_HEADER
from performance_monitoring import performance_monitor

CHANGE_LOG_HEADER = ["变更时间", "资产编号", "资产名称", "变更字段", "原值", "新值"]


def asset_to_row(asset: Asset) -> List[str]:
    """CSV row for one asset, in import column order."""
    return [
        asset.asset_code,
        asset.name,
        asset.category_name,
        asset.user_name,
        asset.department_name,
        asset.purchase_date,
        f"{asset.price:.2f}",
        asset.location,
        asset.status,
        asset.remark,
    ]


def change_log_to_row(log: AssetChangeLog) -> List[str]:
    return [
        log.change_time or "",
        log.asset_code,
        log.asset_name,
        log.field_label,
        log.old_value,
        log.new_value,
    ]


class ExportService:
    """Centralized export service for asset data."""

    def __init__(self, db: AssetDatabase, logger: AppLogger = None):
        self.db = db
        self.logger = logger or db.logger

    @performance_monitor("Export Assets")
    def export_assets_csv(self, file_path: str, assets: Optional[List[Asset]] = None) -> int:
        """
        Export assets to a CSV file.

        Args:
            file_path: Destination file, overwritten if it exists
            assets: Assets to write; all assets when omitted

        Returns:
            int: Number of asset rows written
        """
        if assets is None:
            assets = self.db.get_all_assets()

        with open(file_path, 'w', newline='', encoding='utf-8-sig') as csvfile:
            writer = csv.writer(csvfile)
            writer.writerow(CSV_HEADER)
            for asset in assets:
                writer.writerow(asset_to_row(asset))

        self.logger.info(f"Exported {len(assets)} asset(s) to {file_path}")
        return len(assets)

    @performance_monitor("Export Change Logs")
    def export_change_logs_csv(self, file_path: str,
                               logs: Optional[List[AssetChangeLog]] = None) -> int:
        """Export change-log entries, newest first unless a list is given."""
        if logs is None:
            logs = self.db.get_all_change_logs()

        with open(file_path, 'w', newline='', encoding='utf-8-sig') as csvfile:
            writer = csv.writer(csvfile)
            writer.writerow(CHANGE_LOG_HEADER)
            for log in logs:
                writer.writerow(change_log_to_row(log))

        self.logger.info(f"Exported {len(logs)} change log(s) to {file_path}")
        return len(logs)
