"""
CSV bulk import of assets.

A whole file is imported inside one transaction. Referenced categories,
departments and employees are created on demand and cached for the rest of
the batch; rows whose asset code already exists are skipped, never updated.
Every record ends in a RowOutcome, so one bad row never aborts the batch.
"""

import codecs
import csv
import io
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from asset_database import AssetDatabase
from asset_models import Asset, Category, Department, Employee, normalize_status
from config_manager import AppConfig
from error_handling import AppLogger
from performance_monitoring import performance_monitor
from validation import parse_price

CSV_HEADER = ["资产编号", "资产名称", "分类", "使用人", "部门",
              "购入日期", "金额", "存放位置", "状态", "备注"]
FIELD_COUNT = len(CSV_HEADER)
MIN_FIELD_COUNT = 2

# A first record with a field equal to one of these is a header
HEADER_TOKENS = ("资产编号", "asset_code", "asset code")

COMMENT_PREFIX = "#"

TEMPLATE_ROWS = [
    ["ZC001", "联想笔记本电脑", "电脑设备", "张三", "技术部", "2024-01-15", "6999", "3楼研发部", "在用", ""],
    ["ZC002", "办公桌", "办公家具", "李四", "行政部", "2024-01-20", "1200", "2楼办公室", "在用", ""],
    ["ZC003", "打印机", "电子设备", "", "", "2024-02-01", "3500", "1楼前台", "闲置", "待分配"],
]

TEMPLATE_NOTES = [
    "# 填写说明：",
    "# 1. 资产编号和资产名称为必填项",
    "# 2. 分类、部门、使用人如果不存在会自动创建",
    "# 3. 状态可选：在用、闲置、维修中、已报废",
    "# 4. 日期格式：YYYY-MM-DD",
    "# 5. 金额为数字，不要包含货币符号",
    "# 6. 以 # 开头的行为注释，导入时会被忽略",
]

OUTCOME_SUCCESS = "success"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_ERROR = "error"


@dataclass
class RowOutcome:
    """Result of importing one record."""
    record_number: int
    kind: str
    asset_code: str = ""
    message: str = ""
    asset_id: Optional[int] = None


@dataclass
class ImportResult:
    """Counts and messages of one import batch."""
    message_limit: int = 10
    success_count: int = 0
    skip_count: int = 0
    error_count: int = 0
    outcomes: List[RowOutcome] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)
    hidden_message_count: int = 0

    def record(self, outcome: RowOutcome):
        self.outcomes.append(outcome)
        if outcome.kind == OUTCOME_SUCCESS:
            self.success_count += 1
            return

        if outcome.kind == OUTCOME_DUPLICATE:
            self.skip_count += 1
        else:
            self.error_count += 1

        message = f"Record {outcome.record_number}: {outcome.message}"
        if len(self.messages) < self.message_limit:
            self.messages.append(message)
        else:
            self.hidden_message_count += 1

    def summary(self) -> str:
        lines = ["Import finished.", "",
                 f"Imported: {self.success_count}",
                 f"Skipped: {self.skip_count}"]
        if self.error_count:
            lines.append(f"Errors: {self.error_count}")
        if self.messages:
            lines.append("")
            lines.append("Details:")
            lines.extend(self.messages)
        if self.hidden_message_count:
            lines.append(f"... and {self.hidden_message_count} more message(s)")
        return "\n".join(lines)


def decode_import_bytes(data: bytes, legacy_encoding: str = "gbk") -> str:
    """Decode an import file: UTF-8 when it starts with a BOM, else the legacy encoding."""
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8):].decode("utf-8", errors="replace")
    return data.decode(legacy_encoding, errors="replace")


def is_header_record(fields: Sequence[str]) -> bool:
    return any(value.strip().lower() in HEADER_TOKENS for value in fields)


def _is_blank_record(fields: Sequence[str]) -> bool:
    return not fields or all(not value.strip() for value in fields)


def _is_comment_record(fields: Sequence[str]) -> bool:
    return fields[0].lstrip().startswith(COMMENT_PREFIX)


class _LookupCache:
    """In-memory name lookups preloaded once per batch."""

    def __init__(self, db: AssetDatabase, logger: AppLogger):
        self.db = db
        self.logger = logger
        self.categories: Dict[str, int] = {c.name: c.id for c in db.get_all_categories()}
        self.departments: Dict[str, int] = {d.name: d.id for d in db.get_all_departments()}
        self.employees: List[Employee] = db.get_all_employees()
        self.logger.info(f"Loaded lookup cache - categories: {len(self.categories)}, "
                         f"departments: {len(self.departments)}, employees: {len(self.employees)}")

    def category_id(self, name: str) -> Optional[int]:
        if not name:
            return None
        if name in self.categories:
            return self.categories[name]

        category = Category(name=name)
        if not self.db.add_category(category):
            self.logger.error(f"Could not create category '{name}': {self.db.last_error}")
            return None
        self.categories[name] = category.id
        self.logger.info(f"Created category '{name}' (id {category.id})")
        return category.id

    def department_id(self, name: str) -> Optional[int]:
        if not name:
            return None
        if name in self.departments:
            return self.departments[name]

        department = Department(name=name)
        if not self.db.add_department(department):
            self.logger.error(f"Could not create department '{name}': {self.db.last_error}")
            return None
        self.departments[name] = department.id
        self.logger.info(f"Created department '{name}' (id {department.id})")
        return department.id

    def employee_id(self, name: str, department_name: str) -> Optional[int]:
        """Match by name and department, or by name alone when no department resolves."""
        department_id = self.department_id(department_name)
        for employee in self.employees:
            if employee.name == name and (department_id is None or employee.department_id == department_id):
                return employee.id

        employee = Employee(name=name, department_id=department_id)
        if not self.db.add_employee(employee):
            self.logger.error(f"Could not create employee '{name}': {self.db.last_error}")
            return None
        self.employees.append(employee)
        self.logger.info(f"Created employee '{name}' (id {employee.id})")
        return employee.id


class ImportService:
    """Imports assets from delimited text into the database."""

    def __init__(self, db: AssetDatabase, config: AppConfig = None, logger: AppLogger = None):
        self.db = db
        self.config = config or AppConfig()
        self.logger = logger or db.logger

    @performance_monitor("CSV Import")
    def import_file(self, file_path: str) -> ImportResult:
        """Import a CSV file, decoding it according to its byte-order mark."""
        self.logger.info(f"Importing assets from {file_path}")
        with open(file_path, 'rb') as f:
            data = f.read()
        return self.import_text(decode_import_bytes(data, self.config.legacy_encoding))

    def import_text(self, text: str) -> ImportResult:
        return self.import_rows(csv.reader(io.StringIO(text)))

    def import_rows(self, rows: Iterable[Sequence[str]]) -> ImportResult:
        """Import parsed records in one transaction and return the batch result.

        Raises TransactionError if the transaction cannot be opened or committed,
        in which case nothing from the batch is kept.
        """
        result = ImportResult(message_limit=self.config.import_message_limit)

        with self.db.transaction():
            cache = _LookupCache(self.db, self.logger)
            seen_data = False
            for record_number, fields in enumerate(rows, 1):
                if _is_blank_record(fields) or _is_comment_record(fields):
                    continue
                if not seen_data:
                    seen_data = True
                    if is_header_record(fields):
                        self.logger.debug(f"Record {record_number}: header, skipped")
                        continue

                outcome = self._import_record_safely(record_number, fields, cache)
                if outcome.kind != OUTCOME_SUCCESS:
                    self.logger.warning(f"Record {record_number}: {outcome.message}")
                result.record(outcome)

        self.logger.info(f"Import committed - imported: {result.success_count}, "
                         f"skipped: {result.skip_count}, errors: {result.error_count}")
        return result

    def _import_record_safely(self, record_number: int, fields: Sequence[str],
                              cache: _LookupCache) -> RowOutcome:
        try:
            return self._import_record(record_number, fields, cache)
        except Exception as e:
            self.logger.error(f"Record {record_number}: unexpected failure", exception=e)
            return RowOutcome(record_number, OUTCOME_ERROR, message=f"Could not parse record: {e}")

    def _import_record(self, record_number: int, fields: Sequence[str],
                       cache: _LookupCache) -> RowOutcome:
        if len(fields) < MIN_FIELD_COUNT:
            return RowOutcome(record_number, OUTCOME_ERROR,
                              message=f"Expected at least {MIN_FIELD_COUNT} fields, found {len(fields)}")

        values = [value.strip() for value in fields[:FIELD_COUNT]]
        values += [""] * (FIELD_COUNT - len(values))
        (code, name, category_name, user_name, department_name,
         purchase_date, price_text, location, status_text, remark) = values

        if not code or not name:
            return RowOutcome(record_number, OUTCOME_ERROR, asset_code=code,
                              message="Asset code and name are required")

        if self.db.get_asset_by_code(code) is not None:
            return RowOutcome(record_number, OUTCOME_DUPLICATE, asset_code=code,
                              message=f"Asset code {code} already exists, skipped")

        price = parse_price(price_text)
        if price is None or price < 0:
            return RowOutcome(record_number, OUTCOME_ERROR, asset_code=code,
                              message=f"Invalid amount '{price_text}'")

        status = normalize_status(status_text)
        if status is None:
            return RowOutcome(record_number, OUTCOME_ERROR, asset_code=code,
                              message=f"Unknown status '{status_text}'")

        category_id = cache.category_id(category_name)
        user_id = cache.employee_id(user_name, department_name) if user_name else None

        asset = Asset(
            asset_code=code,
            name=name,
            category_id=category_id,
            user_id=user_id,
            purchase_date=purchase_date,
            price=price,
            location=location,
            status=status,
            remark=remark,
        )
        if not self.db.add_asset(asset):
            return RowOutcome(record_number, OUTCOME_ERROR, asset_code=code,
                              message=f"Could not add asset {code}: {self.db.last_error}")

        self.logger.debug(f"Record {record_number}: added asset {code} (id {asset.id})")
        return RowOutcome(record_number, OUTCOME_SUCCESS, asset_code=code, asset_id=asset.id)

    def write_template(self, file_path: str) -> str:
        """Write the import template: header, three sample rows and instructions."""
        with open(file_path, 'w', newline='', encoding='utf-8-sig') as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerow(CSV_HEADER)
            writer.writerows(TEMPLATE_ROWS)
            f.write("\n")
            for note in TEMPLATE_NOTES:
                f.write(note + "\n")
        self.logger.info(f"Wrote import template to {file_path}")
        return file_path
