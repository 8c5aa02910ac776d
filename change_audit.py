"""
Field-level change detection for asset updates.
"""

from datetime import datetime
from typing import List, Optional

from asset_models import Asset, AssetChangeLog, FIELD_LABELS


def format_price(price: Optional[float]) -> str:
    """Two-decimal text used both for comparison and for the log."""
    return f"{float(price or 0.0):.2f}"


def _field_text(asset: Asset, field_name: str) -> str:
    if field_name == "price":
        return format_price(asset.price)
    value = getattr(asset, field_name)
    return "" if value is None else str(value)


def current_change_time() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def diff_assets(old: Asset, new: Asset, change_time: Optional[str] = None) -> List[AssetChangeLog]:
    """Compare two snapshots of the same asset.

    Returns one AssetChangeLog per audited field whose text differs, all
    stamped with the same change time. The new asset's code and name are
    recorded so the history stays readable after later renames. Category and
    user are compared by display name, so ``new`` must carry resolved names.
    """
    change_time = change_time or current_change_time()
    changes = []
    for field_name in FIELD_LABELS:
        old_value = _field_text(old, field_name)
        new_value = _field_text(new, field_name)
        if old_value != new_value:
            changes.append(AssetChangeLog(
                asset_id=new.id if new.id is not None else old.id,
                asset_code=new.asset_code,
                asset_name=new.name,
                field_name=field_name,
                old_value=old_value,
                new_value=new_value,
                change_time=change_time,
            ))
    return changes
