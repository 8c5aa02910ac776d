import logging

import pytest

from asset_models import Asset
from error_handling import (
    AppLogger, ErrorHandler, NotFoundError, StorageError, ValidationError, safe_execute,
)
from validation import AssetValidator, parse_price


@pytest.mark.parametrize("value, expected", [
    ("", 0.0),
    (None, 0.0),
    (" 12.5 ", 12.5),
    (7, 7.0),
    ("¥100", None),
    ("1,200", None),
    ("nan", None),
    ("inf", None),
    ("-Infinity", None),
    (float("nan"), None),
    (float("inf"), None),
])
def test_parse_price(value, expected):
    assert parse_price(value) == expected


def test_valid_asset():
    result = AssetValidator().validate_asset(Asset(asset_code="ZC001", name="打印机",
                                                   purchase_date="2024-02-01", price=3500))
    assert result.is_valid
    assert result.warnings == []


def test_invalid_asset_collects_all_errors():
    result = AssetValidator().validate_asset(Asset(asset_code=" ", name="打印机", price="abc",
                                                   status="丢失"))
    assert not result.is_valid
    assert len(result.errors) == 3
    assert "Asset code is required" in result.errors


@pytest.mark.parametrize("price", [float("nan"), float("inf"), "nan"])
def test_non_finite_price_is_an_error(price):
    result = AssetValidator().validate_asset(Asset(asset_code="ZC001", name="打印机", price=price))
    assert not result.is_valid
    assert result.errors == [f"Invalid monetary value: {price}"]


def test_odd_purchase_date_is_only_a_warning():
    result = AssetValidator().validate_asset(Asset(asset_code="ZC001", name="打印机",
                                                   purchase_date="2024/02/01"))
    assert result.is_valid
    assert len(result.warnings) == 1


def test_validate_file_path(tmp_path):
    validator = AssetValidator()
    assert not validator.validate_file_path("").is_valid
    assert not validator.validate_file_path(str(tmp_path / "missing.csv")).is_valid
    assert validator.validate_file_path(str(tmp_path / "new.csv"), must_exist=False).is_valid


class TestErrorHandler:

    def test_notifier_receives_friendly_message(self):
        shown = []
        handler = ErrorHandler(AppLogger(name="AssetInventoryTest"),
                               notifier=lambda title, message: shown.append((title, message)))

        assert handler.handle_exception(ValidationError(["Asset name is required"]), "saving asset") is False

        assert shown[0][0] == "Error"
        assert "• Asset name is required" in shown[0][1]

    def test_silent_when_not_shown(self):
        shown = []
        handler = ErrorHandler(notifier=lambda title, message: shown.append(message))
        handler.handle_exception(NotFoundError("Asset 3 not found"), show_to_user=False)
        assert shown == []

    def test_friendly_messages(self):
        handler = ErrorHandler()
        assert "Database error" in handler.get_user_friendly_message(StorageError("disk I/O"), "import")
        assert "File error" in handler.get_user_friendly_message(FileNotFoundError("x.csv"), "import")

    def test_safe_execute_returns_default(self):
        def fail():
            raise RuntimeError("boom")

        assert safe_execute(fail, default_return=-1, context="test") == -1
        assert safe_execute(lambda a, b: a + b, 1, b=2) == 3

    def test_logger_writes_file(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        logger = AppLogger(log_file=str(log_file), level=logging.DEBUG, name="AssetInventoryFileTest")
        logger.info("库存已更新")
        for handler in logger.logger.handlers:
            handler.flush()
        assert "库存已更新" in log_file.read_text(encoding="utf-8")

