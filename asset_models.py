"""
Data model for the fixed asset inventory.

Entities mirror the database tables. Display-only names (category_name,
user_name, department_name) are filled by joins at read time and take no part
in equality.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

STATUS_IN_USE = "在用"
STATUS_IDLE = "闲置"
STATUS_REPAIR = "维修中"
STATUS_SCRAPPED = "已报废"

ASSET_STATUSES = (STATUS_IN_USE, STATUS_IDLE, STATUS_REPAIR, STATUS_SCRAPPED)

# Enumerated tokens accepted as equivalents of the status labels
STATUS_ALIASES = {
    "in-use": STATUS_IN_USE,
    "in_use": STATUS_IN_USE,
    "in use": STATUS_IN_USE,
    "idle": STATUS_IDLE,
    "under-repair": STATUS_REPAIR,
    "under_repair": STATUS_REPAIR,
    "under repair": STATUS_REPAIR,
    "repair": STATUS_REPAIR,
    "scrapped": STATUS_SCRAPPED,
}

# Change-log field keys, in diff order, with their display labels
FIELD_LABELS = {
    "asset_code": "资产编号",
    "name": "资产名称",
    "category_name": "分类",
    "user_name": "使用人",
    "purchase_date": "购入日期",
    "price": "价格",
    "location": "存放位置",
    "status": "状态",
    "remark": "备注",
}

EMPTY_DISPLAY = "(空)"

_ASSET_CODE_PATTERN = re.compile(r"(\D*)(\d+)")


@dataclass
class Category:
    name: str
    id: Optional[int] = None


@dataclass
class Department:
    name: str
    id: Optional[int] = None
    created_at: Optional[str] = None


@dataclass
class Employee:
    name: str
    department_id: Optional[int] = None
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    department_name: str = field(default="", compare=False)


@dataclass
class Asset:
    asset_code: str
    name: str
    category_id: Optional[int] = None
    user_id: Optional[int] = None
    purchase_date: str = ""
    price: float = 0.0
    location: str = ""
    status: str = STATUS_IN_USE
    remark: str = ""
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    category_name: str = field(default="", compare=False)
    user_name: str = field(default="", compare=False)
    department_name: str = field(default="", compare=False)


@dataclass
class AssetChangeLog:
    asset_id: int
    asset_code: str
    asset_name: str
    field_name: str
    old_value: str = ""
    new_value: str = ""
    change_time: Optional[str] = None
    id: Optional[int] = None

    @property
    def field_label(self) -> str:
        """Display label of the changed field."""
        return FIELD_LABELS.get(self.field_name, self.field_name)


def normalize_status(value: Optional[str]) -> Optional[str]:
    """Map a status label or token to its canonical label.

    Blank input yields the in-use default; unknown input yields None.
    """
    text = (value or "").strip()
    if not text:
        return STATUS_IN_USE
    if text in ASSET_STATUSES:
        return text
    return STATUS_ALIASES.get(text.lower())


def auto_correct_status(status: str, user_id: Optional[int]) -> str:
    """Keep in-use/idle consistent with whether the asset has a user."""
    if user_id is not None and status == STATUS_IDLE:
        return STATUS_IN_USE
    if user_id is None and status == STATUS_IN_USE:
        return STATUS_IDLE
    return status


def next_asset_code(last_code: Optional[str], default_code: str = "ZC001") -> str:
    """Derive the code following ``last_code``, keeping prefix and digit width.

    >>> next_asset_code("ZC009")
    'ZC010'
    """
    if last_code:
        match = _ASSET_CODE_PATTERN.fullmatch(last_code)
        if match:
            prefix, digits = match.groups()
            return f"{prefix}{int(digits) + 1:0{len(digits)}d}"
    return default_code


def display_value(value: Optional[str]) -> str:
    """Text shown for a logged value, with empty values made visible."""
    return value if value else EMPTY_DISPLAY
