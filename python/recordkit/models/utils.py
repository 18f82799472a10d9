"""Helpers for Model declaration and argument handling.

Functions:
    _is_scalar(value) -> bool:
        True for values usable as a single-column lookup key.

        16, "john", Decimal("1.5"), date(2016, 1, 1)  →  True
        {"id": 16}, [1, 2], None                      →  False

    _meta_options(meta) -> dict:
        Public attributes of a Model's inner Meta class.

    _class_name_for(table_name) -> str:
        Class name used by define_model() when none is given.

        "user_accounts"  →  "UserAccounts"
"""

from __future__ import annotations

import re
from datetime import date, time, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

_SCALAR_TYPES = (str, bytes, int, float, Decimal, date, time, timedelta, UUID)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, _SCALAR_TYPES)


def _meta_options(meta: type | None) -> dict[str, Any]:
    if meta is None:
        return {}
    return {
        name: value
        for name, value in vars(meta).items()
        if not name.startswith("_")
    }


def _class_name_for(table_name: Any) -> str:
    parts = re.split(r"[^0-9a-zA-Z]+", str(table_name))
    name = "".join(part[:1].upper() + part[1:] for part in parts if part)
    if not name or name[0].isdigit():
        name = f"Model{name}"
    return name


__all__ = [
    "_is_scalar",
    "_meta_options",
    "_class_name_for",
]
