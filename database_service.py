"""
Database service layer providing high-level operations for the asset management system.
Wraps the storage engine for front ends and turns its failures into typed errors.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from asset_database import (
    AssetDatabase, ERROR_GUARD, ERROR_NOT_FOUND, ERROR_UNIQUE, ERROR_VALIDATION,
)
from asset_models import Asset, AssetChangeLog, Category, Department, Employee, next_asset_code
from config_manager import AppConfig
from error_handling import (
    AppLogger, NotFoundError, ReferentialGuardError, StorageError, UniquenessError, ValidationError,
)
from validation import AssetValidator, parse_price

_ERROR_TYPES = {
    ERROR_VALIDATION: lambda message: ValidationError([message]),
    ERROR_UNIQUE: UniquenessError,
    ERROR_GUARD: ReferentialGuardError,
    ERROR_NOT_FOUND: NotFoundError,
}


@dataclass
class EmployeeResolution:
    """Outcome of looking up an employee by name.

    ``employee_id`` is None unless exactly one employee qualifies; when the
    name is ambiguous the qualifying employees are listed in ``candidates``.
    """
    employee_id: Optional[int] = None
    candidates: List[Employee] = field(default_factory=list)
    message: str = ""

    @property
    def resolved(self) -> bool:
        return self.employee_id is not None


class DatabaseService:
    """High-level database service providing common operations."""

    def __init__(self, db: AssetDatabase, config: AppConfig = None, logger: AppLogger = None):
        self.db = db
        self.config = config or AppConfig()
        self.logger = logger or db.logger
        self.validator = AssetValidator()

    def get_database_instance(self) -> AssetDatabase:
        """Get the underlying database instance."""
        return self.db

    def _raise_last_error(self):
        error_type = _ERROR_TYPES.get(self.db.last_error_kind, StorageError)
        raise error_type(self.db.last_error)

    def _check(self, ok: bool):
        if not ok:
            self._raise_last_error()

    def _require_name(self, name: str, label: str):
        result = self.validator.validate_name(name, label)
        if not result.is_valid:
            raise ValidationError(result.errors)

    # ========== Categories ==========

    def add_category(self, name: str) -> Category:
        self._require_name(name, "Category")
        category = Category(name=name.strip())
        self._check(self.db.add_category(category))
        return category

    def rename_category(self, category_id: int, name: str) -> Category:
        self._require_name(name, "Category")
        category = Category(id=category_id, name=name.strip())
        self._check(self.db.update_category(category))
        return category

    def delete_category(self, category_id: int):
        self._check(self.db.delete_category(category_id))

    # ========== Departments ==========

    def add_department(self, name: str) -> Department:
        self._require_name(name, "Department")
        department = Department(name=name.strip())
        self._check(self.db.add_department(department))
        return department

    def rename_department(self, department_id: int, name: str) -> Department:
        self._require_name(name, "Department")
        department = Department(id=department_id, name=name.strip())
        self._check(self.db.update_department(department))
        return department

    def delete_department(self, department_id: int):
        """Delete a department; raises ReferentialGuardError while it has employees."""
        self._check(self.db.delete_department(department_id))

    # ========== Employees ==========

    def add_employee(self, name: str, department_id: Optional[int] = None) -> Employee:
        self._require_name(name, "Employee")
        employee = Employee(name=name.strip(), department_id=department_id)
        self._check(self.db.add_employee(employee))
        return employee

    def update_employee(self, employee: Employee) -> Employee:
        self._require_name(employee.name, "Employee")
        self._check(self.db.update_employee(employee))
        return employee

    def delete_employee(self, employee_id: int):
        """Delete an employee; their assets become unassigned and idle."""
        self._check(self.db.delete_employee(employee_id))

    def resolve_employee(self, name: str, department_id: Optional[int] = None) -> EmployeeResolution:
        """Find the single employee meant by a typed name.

        Several employees may share a name; the department narrows them down.
        An ambiguous name is never guessed.
        """
        name = (name or "").strip()
        if not name:
            return EmployeeResolution(message="No employee name given")

        matches = self.db.get_employees_by_name(name)
        if not matches:
            return EmployeeResolution(message=f"Employee '{name}' not found")
        if len(matches) == 1:
            return EmployeeResolution(employee_id=matches[0].id, candidates=matches)

        if department_id is not None:
            in_department = [e for e in matches if e.department_id == department_id]
            if len(in_department) == 1:
                return EmployeeResolution(employee_id=in_department[0].id, candidates=in_department)
            if in_department:
                matches = in_department

        departments = ", ".join(e.department_name or "no department" for e in matches)
        return EmployeeResolution(
            candidates=matches,
            message=f"{len(matches)} employees are named '{name}' ({departments}); "
                    f"select a department to choose one",
        )

    # ========== Assets ==========

    def get_asset(self, asset_id: int) -> Asset:
        asset = self.db.get_asset_by_id(asset_id)
        if asset is None:
            raise NotFoundError(f"Asset {asset_id} not found")
        return asset

    def search_assets(self, search_text: str = "", category_id: Optional[int] = None,
                      status: str = "", department_id: Optional[int] = None) -> List[Asset]:
        return self.db.search_assets(search_text, category_id, status, department_id)

    def save_asset(self, asset: Asset) -> Asset:
        """Add a new asset (no id yet) or update an existing one."""
        result = self.validator.validate_asset(asset)
        if not result.is_valid:
            raise ValidationError(result.errors)
        for warning in result.warnings:
            self.logger.warning(f"Asset {asset.asset_code}: {warning}")

        asset.asset_code = asset.asset_code.strip()
        asset.name = asset.name.strip()
        asset.price = parse_price(asset.price)
        if asset.id is None:
            self._check(self.db.add_asset(asset))
            self.logger.info(f"Added asset {asset.asset_code} (id {asset.id})")
        else:
            self._check(self.db.update_asset(asset))
            self.logger.info(f"Updated asset {asset.asset_code} (id {asset.id})")
        return asset

    def delete_asset(self, asset_id: int):
        self._check(self.db.delete_asset(asset_id))

    def next_asset_code(self) -> str:
        """Suggest the code for the next asset from the most recent one."""
        last_asset = self.db.get_last_asset()
        last_code = last_asset.asset_code if last_asset else None
        return next_asset_code(last_code, self.config.default_asset_code)

    def get_asset_history(self, asset_id: int) -> List[AssetChangeLog]:
        return self.db.get_change_logs_by_asset_id(asset_id)

    def get_statistics(self) -> Dict[str, Any]:
        """Counts shown on the main window's status line."""
        asset_count, total_value = self.db.get_asset_stats()
        return {
            'asset_count': asset_count,
            'total_value': total_value,
            'employee_count': len(self.db.get_all_employees()),
            'category_count': len(self.db.get_all_categories()),
            'department_count': len(self.db.get_all_departments()),
            'change_log_count': self.db.get_change_log_count(),
        }
