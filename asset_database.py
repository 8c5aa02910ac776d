"""
SQLite database manager for the fixed asset inventory.
Handles database creation, transactions, all CRUD operations and searches.

One AssetDatabase owns one long-lived connection for the lifetime of the
process. Mutating methods return True/False (getters return the entity or
None) and record a human-readable ``last_error`` on failure, together with a
``last_error_kind`` that callers use to tell failures apart.
"""

import math
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Any, Iterable

from asset_models import (
    Asset, AssetChangeLog, Category, Department, Employee, FIELD_LABELS,
    STATUS_IDLE, STATUS_IN_USE, auto_correct_status, normalize_status,
)
from change_audit import diff_assets
from error_handling import AppLogger, TransactionError
from query_builder import QueryBuilder

ERROR_VALIDATION = "validation"
ERROR_UNIQUE = "unique"
ERROR_GUARD = "guard"
ERROR_NOT_FOUND = "not_found"
ERROR_CONSTRAINT = "constraint"
ERROR_DATABASE = "database"

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS departments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        created_at TEXT DEFAULT (datetime('now', 'localtime'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS employees (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        department_id INTEGER,
        created_at TEXT DEFAULT (datetime('now', 'localtime')),
        updated_at TEXT DEFAULT (datetime('now', 'localtime')),
        FOREIGN KEY (department_id) REFERENCES departments(id) ON DELETE SET NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS assets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        asset_code TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        category_id INTEGER,
        user_id INTEGER,
        purchase_date TEXT,
        price REAL DEFAULT 0,
        location TEXT,
        status TEXT DEFAULT '在用',
        remark TEXT,
        created_at TEXT DEFAULT (datetime('now', 'localtime')),
        updated_at TEXT DEFAULT (datetime('now', 'localtime')),
        FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE SET NULL,
        FOREIGN KEY (user_id) REFERENCES employees(id) ON DELETE SET NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_assets_category ON assets(category_id)",
    "CREATE INDEX IF NOT EXISTS idx_assets_user ON assets(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_assets_status ON assets(status)",
    """
    CREATE TABLE IF NOT EXISTS asset_change_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        asset_id INTEGER NOT NULL,
        asset_code TEXT NOT NULL,
        asset_name TEXT NOT NULL,
        field_name TEXT NOT NULL,
        old_value TEXT,
        new_value TEXT,
        change_time TEXT DEFAULT (datetime('now', 'localtime')),
        FOREIGN KEY (asset_id) REFERENCES assets(id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_changelog_asset ON asset_change_logs(asset_id)",
    "CREATE INDEX IF NOT EXISTS idx_changelog_time ON asset_change_logs(change_time)",
]

ASSET_SELECT = """
    SELECT a.id, a.asset_code, a.name, a.category_id, a.user_id,
           a.purchase_date, a.price, a.location, a.status, a.remark,
           a.created_at, a.updated_at,
           c.name AS category_name, e.name AS user_name, d.name AS department_name
    FROM assets a
    LEFT JOIN categories c ON a.category_id = c.id
    LEFT JOIN employees e ON a.user_id = e.id
    LEFT JOIN departments d ON e.department_id = d.id
    WHERE 1=1
"""

EMPLOYEE_SELECT = """
    SELECT e.id, e.name, e.department_id, e.created_at, e.updated_at,
           d.name AS department_name
    FROM employees e
    LEFT JOIN departments d ON e.department_id = d.id
    WHERE 1=1
"""

CHANGE_LOG_SELECT = """
    SELECT id, asset_id, asset_code, asset_name, field_name,
           old_value, new_value, change_time
    FROM asset_change_logs
    WHERE 1=1
"""


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class AssetDatabase:
    """Manages the SQLite connection and all persistence for the inventory."""

    def __init__(self, db_path: str, logger: AppLogger = None, enable_wal: bool = True):
        """Open the database and ensure the schema exists."""
        self.db_path = db_path
        self.logger = logger or AppLogger()
        self.last_error = ""
        self.last_error_kind = ""
        self.conn: Optional[sqlite3.Connection] = None
        self._open(enable_wal)

    # ========== Connection management ==========

    def _open(self, enable_wal: bool):
        if self.db_path != ":memory:":
            db_dir = os.path.dirname(self.db_path)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)

        # Autocommit mode: transactions are opened explicitly with BEGIN
        self.conn = sqlite3.connect(self.db_path, isolation_level=None)
        self.conn.row_factory = sqlite3.Row
        try:
            self.conn.execute("PRAGMA foreign_keys = ON")
            if enable_wal and self.db_path != ":memory:":
                self.conn.execute("PRAGMA journal_mode = WAL")
            self.conn.execute("PRAGMA synchronous = NORMAL")
            self.conn.execute("PRAGMA cache_size = 10000")
            for statement in SCHEMA:
                self.conn.execute(statement)
        except sqlite3.Error as e:
            self.logger.error(f"Failed to initialize database {self.db_path}", exception=e)
            self.conn.close()
            self.conn = None
            raise
        self.logger.debug(f"Opened database {self.db_path}")

    def close(self):
        """Close the database connection."""
        if self.conn is not None:
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK")
            self.conn.close()
            self.conn = None
            self.logger.debug(f"Closed database {self.db_path}")

    @property
    def is_open(self) -> bool:
        return self.conn is not None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ========== Error bookkeeping ==========

    def _set_error(self, message: str, kind: str, exception: Exception = None):
        self.last_error = message
        self.last_error_kind = kind
        if kind == ERROR_DATABASE:
            self.logger.error(message, exception=exception)
        else:
            self.logger.warning(message)

    def _set_integrity_error(self, e: sqlite3.IntegrityError, unique_message: str):
        if "UNIQUE" in str(e):
            self._set_error(unique_message, ERROR_UNIQUE)
        else:
            self._set_error(f"Constraint violation: {e}", ERROR_CONSTRAINT)

    # ========== Low-level helpers ==========

    def _execute(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        return self.conn.execute(sql, tuple(params))

    def _query(self, sql: str, params: Iterable[Any] = ()) -> List[sqlite3.Row]:
        try:
            return self._execute(sql, params).fetchall()
        except sqlite3.Error as e:
            self._set_error(f"Query failed: {e}", ERROR_DATABASE, e)
            return []

    def _query_one(self, sql: str, params: Iterable[Any] = ()) -> Optional[sqlite3.Row]:
        rows = self._query(sql, params)
        return rows[0] if rows else None

    def _write(self, sql: str, params: Iterable[Any], unique_message: str) -> Optional[sqlite3.Cursor]:
        """Run one auto-committed statement, recording any failure."""
        try:
            return self._execute(sql, params)
        except sqlite3.IntegrityError as e:
            self._set_integrity_error(e, unique_message)
        except sqlite3.Error as e:
            self._set_error(f"Database error: {e}", ERROR_DATABASE, e)
        return None

    # ========== Transactions ==========

    def begin_transaction(self) -> bool:
        """Start a transaction. Transactions do not nest."""
        if self.conn.in_transaction:
            self._set_error("A transaction is already in progress", ERROR_DATABASE)
            return False
        try:
            self.conn.execute("BEGIN")
            return True
        except sqlite3.Error as e:
            self._set_error(f"Could not begin transaction: {e}", ERROR_DATABASE, e)
            return False

    def commit(self) -> bool:
        try:
            self.conn.execute("COMMIT")
            return True
        except sqlite3.Error as e:
            self._set_error(f"Could not commit transaction: {e}", ERROR_DATABASE, e)
            return False

    def rollback(self) -> bool:
        if not self.conn.in_transaction:
            return True
        try:
            self.conn.execute("ROLLBACK")
            return True
        except sqlite3.Error as e:
            self._set_error(f"Could not roll back transaction: {e}", ERROR_DATABASE, e)
            return False

    @contextmanager
    def transaction(self):
        """Context manager committing on success and rolling back on any exception."""
        if not self.begin_transaction():
            raise TransactionError(self.last_error)
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        if not self.commit():
            self.rollback()
            raise TransactionError(self.last_error)

    @contextmanager
    def _atomic(self, name: str = "atomic"):
        """Run a block atomically, as a savepoint when a transaction is already open."""
        if not self.conn.in_transaction:
            with self.transaction():
                yield self
            return

        self.conn.execute(f"SAVEPOINT {name}")
        try:
            yield self
        except BaseException:
            self.conn.execute(f"ROLLBACK TO {name}")
            self.conn.execute(f"RELEASE {name}")
            raise
        self.conn.execute(f"RELEASE {name}")

    # ========== Row mapping ==========

    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> Category:
        return Category(id=row["id"], name=row["name"])

    @staticmethod
    def _row_to_department(row: sqlite3.Row) -> Department:
        return Department(id=row["id"], name=row["name"], created_at=row["created_at"])

    @staticmethod
    def _row_to_employee(row: sqlite3.Row) -> Employee:
        return Employee(
            id=row["id"],
            name=row["name"],
            department_id=row["department_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            department_name=row["department_name"] or "",
        )

    @staticmethod
    def _row_to_asset(row: sqlite3.Row) -> Asset:
        return Asset(
            id=row["id"],
            asset_code=row["asset_code"],
            name=row["name"],
            category_id=row["category_id"],
            user_id=row["user_id"],
            purchase_date=row["purchase_date"] or "",
            price=float(row["price"] or 0.0),
            location=row["location"] or "",
            status=row["status"] or STATUS_IN_USE,
            remark=row["remark"] or "",
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            category_name=row["category_name"] or "",
            user_name=row["user_name"] or "",
            department_name=row["department_name"] or "",
        )

    @staticmethod
    def _row_to_change_log(row: sqlite3.Row) -> AssetChangeLog:
        return AssetChangeLog(
            id=row["id"],
            asset_id=row["asset_id"],
            asset_code=row["asset_code"],
            asset_name=row["asset_name"],
            field_name=row["field_name"],
            old_value=row["old_value"] or "",
            new_value=row["new_value"] or "",
            change_time=row["change_time"] or "",
        )

    # ========== Categories ==========

    def get_all_categories(self) -> List[Category]:
        rows = self._query("SELECT id, name FROM categories ORDER BY name")
        return [self._row_to_category(row) for row in rows]

    def get_category_by_id(self, category_id: int) -> Optional[Category]:
        row = self._query_one("SELECT id, name FROM categories WHERE id = ?", (category_id,))
        return self._row_to_category(row) if row else None

    def get_category_by_name(self, name: str) -> Optional[Category]:
        row = self._query_one("SELECT id, name FROM categories WHERE name = ?", (name,))
        return self._row_to_category(row) if row else None

    def add_category(self, category: Category) -> bool:
        """Insert a category and assign its new id."""
        if _is_blank(category.name):
            self._set_error("Category name is required", ERROR_VALIDATION)
            return False
        cursor = self._write("INSERT INTO categories (name) VALUES (?)", (category.name,),
                             f"Category '{category.name}' already exists")
        if cursor is None:
            return False
        category.id = cursor.lastrowid
        self.logger.debug(f"Added category {category.id}: {category.name}")
        return True

    def update_category(self, category: Category) -> bool:
        if _is_blank(category.name):
            self._set_error("Category name is required", ERROR_VALIDATION)
            return False
        cursor = self._write("UPDATE categories SET name = ? WHERE id = ?",
                             (category.name, category.id),
                             f"Category '{category.name}' already exists")
        if cursor is None:
            return False
        if cursor.rowcount == 0:
            self._set_error(f"Category {category.id} not found", ERROR_NOT_FOUND)
            return False
        return True

    def delete_category(self, category_id: int) -> bool:
        """Delete a category; referencing assets lose their category (ON DELETE SET NULL)."""
        cursor = self._write("DELETE FROM categories WHERE id = ?", (category_id,), "")
        if cursor is None:
            return False
        if cursor.rowcount == 0:
            self._set_error(f"Category {category_id} not found", ERROR_NOT_FOUND)
            return False
        self.logger.info(f"Deleted category {category_id}")
        return True

    # ========== Departments ==========

    def get_all_departments(self) -> List[Department]:
        rows = self._query("SELECT id, name, created_at FROM departments ORDER BY name")
        return [self._row_to_department(row) for row in rows]

    def get_department_by_id(self, department_id: int) -> Optional[Department]:
        row = self._query_one("SELECT id, name, created_at FROM departments WHERE id = ?",
                              (department_id,))
        return self._row_to_department(row) if row else None

    def get_department_by_name(self, name: str) -> Optional[Department]:
        row = self._query_one("SELECT id, name, created_at FROM departments WHERE name = ?",
                              (name,))
        return self._row_to_department(row) if row else None

    def add_department(self, department: Department) -> bool:
        """Insert a department and assign its new id."""
        if _is_blank(department.name):
            self._set_error("Department name is required", ERROR_VALIDATION)
            return False
        now = _now()
        cursor = self._write("INSERT INTO departments (name, created_at) VALUES (?, ?)",
                             (department.name, now),
                             f"Department '{department.name}' already exists")
        if cursor is None:
            return False
        department.id = cursor.lastrowid
        department.created_at = now
        self.logger.debug(f"Added department {department.id}: {department.name}")
        return True

    def update_department(self, department: Department) -> bool:
        if _is_blank(department.name):
            self._set_error("Department name is required", ERROR_VALIDATION)
            return False
        cursor = self._write("UPDATE departments SET name = ? WHERE id = ?",
                             (department.name, department.id),
                             f"Department '{department.name}' already exists")
        if cursor is None:
            return False
        if cursor.rowcount == 0:
            self._set_error(f"Department {department.id} not found", ERROR_NOT_FOUND)
            return False
        return True

    def get_department_employee_count(self, department_id: int) -> int:
        row = self._query_one("SELECT COUNT(*) FROM employees WHERE department_id = ?",
                              (department_id,))
        return row[0] if row else 0

    def delete_department(self, department_id: int) -> bool:
        """Delete a department that no employee belongs to."""
        employee_count = self.get_department_employee_count(department_id)
        if employee_count > 0:
            self._set_error(
                f"Department {department_id} still has {employee_count} employee(s) and cannot be deleted",
                ERROR_GUARD)
            return False

        cursor = self._write("DELETE FROM departments WHERE id = ?", (department_id,), "")
        if cursor is None:
            return False
        if cursor.rowcount == 0:
            self._set_error(f"Department {department_id} not found", ERROR_NOT_FOUND)
            return False
        self.logger.info(f"Deleted department {department_id}")
        return True

    # ========== Employees ==========

    def get_all_employees(self) -> List[Employee]:
        return self.search_employees()

    def get_employee_by_id(self, employee_id: int) -> Optional[Employee]:
        row = self._query_one(EMPLOYEE_SELECT + " AND e.id = ?", (employee_id,))
        return self._row_to_employee(row) if row else None

    def get_employees_by_name(self, name: str) -> List[Employee]:
        """All employees sharing an exact name, in id order."""
        rows = self._query(EMPLOYEE_SELECT + " AND e.name = ? ORDER BY e.id", (name,))
        return [self._row_to_employee(row) for row in rows]

    def add_employee(self, employee: Employee) -> bool:
        """Insert an employee and assign its new id."""
        if _is_blank(employee.name):
            self._set_error("Employee name is required", ERROR_VALIDATION)
            return False
        now = _now()
        cursor = self._write(
            "INSERT INTO employees (name, department_id, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (employee.name, employee.department_id, now, now), "")
        if cursor is None:
            return False
        employee.id = cursor.lastrowid
        employee.created_at = now
        employee.updated_at = now
        self.logger.debug(f"Added employee {employee.id}: {employee.name}")
        return True

    def update_employee(self, employee: Employee) -> bool:
        if _is_blank(employee.name):
            self._set_error("Employee name is required", ERROR_VALIDATION)
            return False
        now = _now()
        cursor = self._write(
            "UPDATE employees SET name = ?, department_id = ?, updated_at = ? WHERE id = ?",
            (employee.name, employee.department_id, now, employee.id), "")
        if cursor is None:
            return False
        if cursor.rowcount == 0:
            self._set_error(f"Employee {employee.id} not found", ERROR_NOT_FOUND)
            return False
        employee.updated_at = now
        return True

    def delete_employee(self, employee_id: int) -> bool:
        """Delete an employee, releasing their assets as idle in the same transaction."""
        if self.get_employee_by_id(employee_id) is None:
            self._set_error(f"Employee {employee_id} not found", ERROR_NOT_FOUND)
            return False

        try:
            with self.transaction():
                released = self._execute(
                    "UPDATE assets SET user_id = NULL, status = ?, updated_at = ? WHERE user_id = ?",
                    (STATUS_IDLE, _now(), employee_id)).rowcount
                self._execute("DELETE FROM employees WHERE id = ?", (employee_id,))
        except TransactionError:
            return False
        except sqlite3.Error as e:
            self._set_error(f"Could not delete employee {employee_id}: {e}", ERROR_DATABASE, e)
            return False

        self.logger.info(f"Deleted employee {employee_id}, released {released} asset(s)")
        return True

    def get_employee_asset_count(self, employee_id: int) -> int:
        row = self._query_one("SELECT COUNT(*) FROM assets WHERE user_id = ?", (employee_id,))
        return row[0] if row else 0

    def get_all_employee_asset_counts(self) -> Dict[int, int]:
        """Map employee id to number of assigned assets with a single grouped query."""
        rows = self._query(
            "SELECT user_id, COUNT(*) FROM assets WHERE user_id IS NOT NULL GROUP BY user_id")
        return {row[0]: row[1] for row in rows}

    def search_employees(self, search_text: str = "", department_id: Optional[int] = None) -> List[Employee]:
        """Search employees by name substring and optional department."""
        sql, params = (QueryBuilder(EMPLOYEE_SELECT)
                       .add_like(["e.name"], search_text)
                       .add_equals("e.department_id", department_id)
                       .order_by("e.name, e.id")
                       .build())
        return [self._row_to_employee(row) for row in self._query(sql, params)]

    # ========== Assets ==========

    def get_all_assets(self) -> List[Asset]:
        return self.search_assets()

    def search_assets(self, search_text: str = "", category_id: Optional[int] = None,
                      status: str = "", department_id: Optional[int] = None) -> List[Asset]:
        """Search assets, newest first.

        Free text matches code, name, user name or remark; the remaining
        filters are exact matches and are ignored when empty.
        """
        if status:
            status = normalize_status(status) or status
        sql, params = (QueryBuilder(ASSET_SELECT)
                       .add_like(["a.asset_code", "a.name", "e.name", "a.remark"], search_text)
                       .add_equals("a.category_id", category_id)
                       .add_equals("a.status", status)
                       .add_equals("e.department_id", department_id)
                       .order_by("a.id DESC")
                       .build())
        return [self._row_to_asset(row) for row in self._query(sql, params)]

    def get_asset_by_id(self, asset_id: int) -> Optional[Asset]:
        row = self._query_one(ASSET_SELECT + " AND a.id = ?", (asset_id,))
        return self._row_to_asset(row) if row else None

    def get_asset_by_code(self, asset_code: str) -> Optional[Asset]:
        row = self._query_one(ASSET_SELECT + " AND a.asset_code = ?", (asset_code,))
        return self._row_to_asset(row) if row else None

    def get_last_asset(self) -> Optional[Asset]:
        """The most recently inserted asset (highest id)."""
        row = self._query_one(ASSET_SELECT + " ORDER BY a.id DESC LIMIT 1")
        return self._row_to_asset(row) if row else None

    def _prepare_asset(self, asset: Asset) -> bool:
        """Validate an asset and settle its status before it is written."""
        if _is_blank(asset.asset_code):
            self._set_error("Asset code is required", ERROR_VALIDATION)
            return False
        if _is_blank(asset.name):
            self._set_error("Asset name is required", ERROR_VALIDATION)
            return False
        if (not isinstance(asset.price, (int, float)) or not math.isfinite(asset.price)
                or asset.price < 0):
            self._set_error(f"Asset price must be a non-negative number, got {asset.price!r}",
                            ERROR_VALIDATION)
            return False
        status = normalize_status(asset.status)
        if status is None:
            self._set_error(f"Unknown asset status '{asset.status}'", ERROR_VALIDATION)
            return False
        asset.status = auto_correct_status(status, asset.user_id)
        return True

    def add_asset(self, asset: Asset) -> bool:
        """Insert an asset and assign its new id and timestamps."""
        if not self._prepare_asset(asset):
            return False
        now = _now()
        cursor = self._write("""
            INSERT INTO assets (asset_code, name, category_id, user_id, purchase_date,
                                price, location, status, remark, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (asset.asset_code, asset.name, asset.category_id, asset.user_id,
              asset.purchase_date, asset.price, asset.location, asset.status,
              asset.remark, now, now),
            f"Asset code '{asset.asset_code}' already exists")
        if cursor is None:
            return False
        asset.id = cursor.lastrowid
        asset.created_at = now
        asset.updated_at = now
        self.logger.debug(f"Added asset {asset.id}: {asset.asset_code}")
        return True

    def _category_name(self, category_id: Optional[int]) -> str:
        if category_id is None:
            return ""
        category = self.get_category_by_id(category_id)
        return category.name if category else ""

    def _employee_name(self, employee_id: Optional[int]) -> str:
        if employee_id is None:
            return ""
        employee = self.get_employee_by_id(employee_id)
        return employee.name if employee else ""

    def update_asset(self, asset: Asset) -> bool:
        """Replace an asset by id and record one change-log row per changed field.

        The update and its log rows are written atomically; if the update
        fails nothing is logged.
        """
        if asset.id is None:
            self._set_error("Asset has no id", ERROR_NOT_FOUND)
            return False
        if not self._prepare_asset(asset):
            return False
        old_asset = self.get_asset_by_id(asset.id)
        if old_asset is None:
            self._set_error(f"Asset {asset.id} not found", ERROR_NOT_FOUND)
            return False

        now = _now()
        new_asset = replace(asset,
                            category_name=self._category_name(asset.category_id),
                            user_name=self._employee_name(asset.user_id))
        changes = diff_assets(old_asset, new_asset, change_time=now)

        try:
            with self._atomic("asset_update"):
                self._execute("""
                    UPDATE assets
                    SET asset_code = ?, name = ?, category_id = ?, user_id = ?,
                        purchase_date = ?, price = ?, location = ?, status = ?, remark = ?,
                        updated_at = ?
                    WHERE id = ?
                """, (asset.asset_code, asset.name, asset.category_id, asset.user_id,
                      asset.purchase_date, asset.price, asset.location, asset.status,
                      asset.remark, now, asset.id))
                self._insert_change_logs(changes)
        except TransactionError:
            return False
        except sqlite3.IntegrityError as e:
            self._set_integrity_error(e, f"Asset code '{asset.asset_code}' already exists")
            return False
        except sqlite3.Error as e:
            self._set_error(f"Could not update asset {asset.id}: {e}", ERROR_DATABASE, e)
            return False

        asset.updated_at = now
        asset.category_name = new_asset.category_name
        asset.user_name = new_asset.user_name
        self.logger.debug(f"Updated asset {asset.id} with {len(changes)} change(s)")
        return True

    def delete_asset(self, asset_id: int) -> bool:
        """Delete an asset; its change logs go with it (ON DELETE CASCADE)."""
        cursor = self._write("DELETE FROM assets WHERE id = ?", (asset_id,), "")
        if cursor is None:
            return False
        if cursor.rowcount == 0:
            self._set_error(f"Asset {asset_id} not found", ERROR_NOT_FOUND)
            return False
        self.logger.info(f"Deleted asset {asset_id}")
        return True

    def get_asset_stats(self) -> Tuple[int, float]:
        """Total number of assets and their summed price."""
        row = self._query_one("SELECT COUNT(*), COALESCE(SUM(price), 0) FROM assets")
        if row is None:
            return 0, 0.0
        return row[0], float(row[1])

    # ========== Change logs ==========

    def _insert_change_logs(self, logs: List[AssetChangeLog]):
        for log in logs:
            if not log.change_time:
                log.change_time = _now()
            cursor = self._execute("""
                INSERT INTO asset_change_logs
                    (asset_id, asset_code, asset_name, field_name, old_value, new_value, change_time)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (log.asset_id, log.asset_code, log.asset_name, log.field_name,
                  log.old_value, log.new_value, log.change_time))
            log.id = cursor.lastrowid

    def add_change_log(self, log: AssetChangeLog) -> bool:
        return self.add_change_logs([log])

    def add_change_logs(self, logs: List[AssetChangeLog]) -> bool:
        """Append change-log rows, all or none."""
        if not logs:
            return True
        try:
            with self._atomic("change_logs"):
                self._insert_change_logs(logs)
        except TransactionError:
            return False
        except sqlite3.IntegrityError as e:
            self._set_integrity_error(e, "")
            return False
        except sqlite3.Error as e:
            self._set_error(f"Could not write change logs: {e}", ERROR_DATABASE, e)
            return False
        return True

    def get_change_logs_by_asset_id(self, asset_id: int) -> List[AssetChangeLog]:
        sql, params = (QueryBuilder(CHANGE_LOG_SELECT)
                       .add_equals("asset_id", asset_id)
                       .order_by("change_time DESC, id DESC")
                       .build())
        return [self._row_to_change_log(row) for row in self._query(sql, params)]

    def get_all_change_logs(self, limit: int = -1, offset: int = 0) -> List[AssetChangeLog]:
        """All change logs, newest first; a non-positive limit returns everything."""
        sql, params = (QueryBuilder(CHANGE_LOG_SELECT)
                       .order_by("change_time DESC, id DESC")
                       .limit(limit, offset)
                       .build())
        return [self._row_to_change_log(row) for row in self._query(sql, params)]

    def search_change_logs(self, search_text: str = "", start_date: str = "",
                           end_date: str = "") -> List[AssetChangeLog]:
        """Search change logs by text and an inclusive date range.

        Text matches the asset code or name, and the changed field by key or by
        its display label. A bare ``YYYY-MM-DD`` end date covers that whole day.
        """
        if end_date and len(end_date.strip()) == 10:
            end_date = end_date.strip() + " 23:59:59"
        labelled_keys = [key for key, label in FIELD_LABELS.items()
                         if search_text and search_text in label]
        sql, params = (QueryBuilder(CHANGE_LOG_SELECT)
                       .add_like(["asset_code", "asset_name", "field_name"], search_text,
                                 also_in=("field_name", labelled_keys))
                       .add_compare("change_time", ">=", start_date)
                       .add_compare("change_time", "<=", end_date)
                       .order_by("change_time DESC, id DESC")
                       .build())
        return [self._row_to_change_log(row) for row in self._query(sql, params)]

    def get_change_log_count(self) -> int:
        row = self._query_one("SELECT COUNT(*) FROM asset_change_logs")
        return row[0] if row else 0
