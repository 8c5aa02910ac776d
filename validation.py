"""
Validation framework for asset data.
Provides consistent validation rules and user feedback.
"""

import math
import os
from datetime import datetime
from typing import Any, List, Optional

from asset_models import ASSET_STATUSES, normalize_status


class ValidationResult:
    """Result of a validation operation."""

    def __init__(self, is_valid: bool = True, errors: List[str] = None, warnings: List[str] = None):
        self.is_valid = is_valid
        self.errors = errors or []
        self.warnings = warnings or []

    def add_error(self, error: str):
        """Add an error message."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        """Add a warning message."""
        self.warnings.append(warning)


def parse_price(value: Any) -> Optional[float]:
    """Parse a plain decimal amount; blank means 0, anything unparsable or non-finite None."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        price = float(value)
    else:
        text = str(value).strip()
        if not text:
            return 0.0
        try:
            price = float(text)
        except ValueError:
            return None
    # NaN and infinity parse as floats but are not amounts
    if not math.isfinite(price):
        return None
    return price


class AssetValidator:
    """Validates asset data according to business rules."""

    DATE_FORMAT = '%Y-%m-%d'

    def validate_asset(self, asset) -> ValidationResult:
        """Validate an Asset before it is saved."""
        result = ValidationResult()

        self._validate_required_fields(asset, result)
        self._validate_price(asset.price, result)

        if normalize_status(asset.status) is None:
            result.add_error(f"Status must be one of {', '.join(ASSET_STATUSES)}")

        # Purchase dates are free text; other formats are kept but flagged
        if not self.validate_date_format(asset.purchase_date):
            result.add_warning(f"Invalid purchase date '{asset.purchase_date}'. Expected format: YYYY-MM-DD")

        return result

    def _validate_required_fields(self, asset, result: ValidationResult):
        if not (asset.asset_code or "").strip():
            result.add_error("Asset code is required")
        if not (asset.name or "").strip():
            result.add_error("Asset name is required")

    def _validate_price(self, price: Any, result: ValidationResult):
        value = parse_price(price)
        if value is None:
            result.add_error(f"Invalid monetary value: {price}")
        elif value < 0:
            result.add_error(f"Price cannot be negative: {price}")

    def validate_name(self, name: str, label: str) -> ValidationResult:
        """Check the single required name of a category, department or employee."""
        result = ValidationResult()
        if not (name or "").strip():
            result.add_error(f"{label} name is required")
        return result

    def validate_date_format(self, date_value: Any) -> bool:
        """Validate date format. Empty dates are accepted."""
        if not date_value:
            return True

        date_str = str(date_value).strip()
        if not date_str:
            return True
        try:
            datetime.strptime(date_str, self.DATE_FORMAT)
            return True
        except ValueError:
            return False

    def validate_file_path(self, file_path: str, must_exist: bool = True) -> ValidationResult:
        """Validate file path."""
        result = ValidationResult()

        if not file_path:
            result.add_error("File path is required")
            return result

        if must_exist and not os.path.isfile(file_path):
            result.add_error(f"File does not exist: {file_path}")
        elif must_exist and not os.access(file_path, os.R_OK):
            result.add_error(f"File is not readable: {file_path}")

        return result
