"""
Reports and analysis for the asset inventory.
Builds pandas summaries of the asset register and exports them to Excel.
"""

from typing import Dict

import pandas as pd

from asset_database import AssetDatabase
from asset_models import EMPTY_DISPLAY
from performance_monitoring import performance_monitor

ASSET_COLUMNS = ["asset_code", "name", "category", "user", "department",
                 "purchase_date", "price", "location", "status", "remark"]

# Column headings used in exported workbooks
COLUMN_LABELS = {
    "asset_code": "资产编号",
    "name": "资产名称",
    "category": "分类",
    "user": "使用人",
    "department": "部门",
    "purchase_date": "购入日期",
    "price": "金额",
    "location": "存放位置",
    "status": "状态",
    "remark": "备注",
    "count": "数量",
    "total_value": "总金额",
    "employee_id": "员工ID",
    "employee": "员工",
    "asset_count": "资产数量",
}

GROUPINGS = {
    "status": "status",
    "category": "category",
    "department": "department",
}


def assets_dataframe(db: AssetDatabase) -> pd.DataFrame:
    """All assets as a DataFrame, one row per asset."""
    records = [
        {
            "asset_code": asset.asset_code,
            "name": asset.name,
            "category": asset.category_name,
            "user": asset.user_name,
            "department": asset.department_name,
            "purchase_date": asset.purchase_date,
            "price": asset.price,
            "location": asset.location,
            "status": asset.status,
            "remark": asset.remark,
        }
        for asset in db.get_all_assets()
    ]
    return pd.DataFrame(records, columns=ASSET_COLUMNS)


def summarize_assets(db: AssetDatabase, by: str = "status") -> pd.DataFrame:
    """Asset count and total value per status, category or department.

    Assets without a category or department are grouped under ``(空)``.
    """
    if by not in GROUPINGS:
        raise ValueError(f"Unknown grouping '{by}', expected one of {', '.join(GROUPINGS)}")
    column = GROUPINGS[by]

    df = assets_dataframe(db)
    if df.empty:
        return pd.DataFrame(columns=[column, "count", "total_value"])

    df[column] = df[column].replace("", EMPTY_DISPLAY).fillna(EMPTY_DISPLAY)
    summary = (df.groupby(column)
               .agg(count=("asset_code", "size"), total_value=("price", "sum"))
               .reset_index()
               .sort_values(["count", column], ascending=[False, True])
               .reset_index(drop=True))
    summary["total_value"] = summary["total_value"].round(2)
    return summary


def employee_asset_table(db: AssetDatabase) -> pd.DataFrame:
    """Every employee with the number of assets assigned to them."""
    counts = db.get_all_employee_asset_counts()
    records = [
        {
            "employee_id": employee.id,
            "employee": employee.name,
            "department": employee.department_name,
            "asset_count": counts.get(employee.id, 0),
        }
        for employee in db.get_all_employees()
    ]
    return pd.DataFrame(records, columns=["employee_id", "employee", "department", "asset_count"])


def _autofit_columns(worksheet):
    """Widen columns to their longest value, capped at 50 characters."""
    for column in worksheet.columns:
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)


@performance_monitor("Export Summary Report")
def export_summary_excel(db: AssetDatabase, file_path: str) -> str:
    """Write the asset register and its summaries to one workbook."""
    sheets: Dict[str, pd.DataFrame] = {
        "资产明细": assets_dataframe(db),
        "按状态": summarize_assets(db, "status"),
        "按分类": summarize_assets(db, "category"),
        "按部门": summarize_assets(db, "department"),
        "员工资产": employee_asset_table(db),
    }

    with pd.ExcelWriter(file_path, engine='openpyxl') as writer:
        for sheet_name, df in sheets.items():
            df.rename(columns=COLUMN_LABELS).to_excel(writer, sheet_name=sheet_name, index=False)
            _autofit_columns(writer.sheets[sheet_name])

    db.logger.info(f"Exported summary report to {file_path}")
    return file_path
