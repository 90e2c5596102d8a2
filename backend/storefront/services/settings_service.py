# Overview: Operator policy settings persisted in the keyed record store.

from __future__ import annotations

import logging
from typing import Optional

from flask import current_app, has_app_context

from ..persistence import RecordStore, SqlRecordStore


logger = logging.getLogger(__name__)

DEFAULT_AUTO_CONFIRM_KEY = "storefront.auto_confirm_orders"
TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


class SettingsValidationError(ValueError):
    pass


def _config(name: str, default):
    if has_app_context():
        return current_app.config.get(name, default)
    return default


def coerce_flag(raw) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise SettingsValidationError(f"expected a boolean, got {raw!r}")


def get_auto_confirm(store: Optional[RecordStore] = None, *, default: Optional[bool] = None) -> bool:
    """
    Current auto-confirm policy.

    Falls back to AUTO_CONFIRM_ORDERS_DEFAULT when nothing was stored or
    the stored value is unreadable.
    """
    store = store or SqlRecordStore()
    if default is None:
        default = bool(_config("AUTO_CONFIRM_ORDERS_DEFAULT", True))
    raw = store.get(_config("AUTO_CONFIRM_STORAGE_KEY", DEFAULT_AUTO_CONFIRM_KEY))
    if raw is None:
        return default
    try:
        return coerce_flag(raw)
    except SettingsValidationError:
        logger.warning("Ignoring unreadable auto-confirm value %r", raw)
        return default


def set_auto_confirm(enabled, actor: Optional[str] = "admin", store: Optional[RecordStore] = None) -> bool:
    store = store or SqlRecordStore()
    value = coerce_flag(enabled)
    store.put(_config("AUTO_CONFIRM_STORAGE_KEY", DEFAULT_AUTO_CONFIRM_KEY), "true" if value else "false")
    store.commit()
    logger.info("Auto-confirm policy set to %s by %s", value, (actor or "").strip() or "admin")
    return value
