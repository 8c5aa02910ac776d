"""Shared fixtures: one temporary SQLite database per test."""

import logging

import pytest

from asset_database import AssetDatabase
from asset_models import Asset, Category, Department, Employee, STATUS_IN_USE
from config_manager import AppConfig
from database_service import DatabaseService
from error_handling import AppLogger
from import_service import ImportService


@pytest.fixture()
def logger():
    return AppLogger(level=logging.DEBUG, name="AssetInventoryTest")


@pytest.fixture()
def config(tmp_path):
    return AppConfig(
        database_path=str(tmp_path / "assets.db"),
        log_file="",
        output_directory=str(tmp_path / "output"),
    )


@pytest.fixture()
def db(config, logger):
    database = AssetDatabase(config.database_path, logger)
    yield database
    database.close()


@pytest.fixture()
def service(db, config, logger):
    return DatabaseService(db, config, logger)


@pytest.fixture()
def importer(db, config, logger):
    return ImportService(db, config, logger)


@pytest.fixture()
def sample(db):
    """A category, a department and one employee in it."""
    category = Category(name="电脑设备")
    department = Department(name="技术部")
    assert db.add_category(category)
    assert db.add_department(department)
    employee = Employee(name="张三", department_id=department.id)
    assert db.add_employee(employee)
    return {"category": category, "department": department, "employee": employee}


@pytest.fixture()
def make_asset(db):
    """Insert an asset, failing the test if the insert is refused."""
    def _make(asset_code, name="联想笔记本电脑", **kwargs):
        kwargs.setdefault("status", STATUS_IN_USE)
        asset = Asset(asset_code=asset_code, name=name, **kwargs)
        assert db.add_asset(asset), db.last_error
        return asset
    return _make
