from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any

import numpy as np
import pandas as pd


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        pass
    return False


def safe_str(value: Any) -> str | None:
    if is_missing(value):
        return None
    text = str(value).strip()
    return text if text else None


def safe_int(value: Any) -> int | None:
    if is_missing(value) or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def safe_float(value: Any) -> float | None:
    if is_missing(value) or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def safe_bool(value: Any) -> bool:
    if is_missing(value):
        return False
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    try:
        return bool(value)
    except (TypeError, ValueError):
        return False


def normalize_steamid64(value: Any) -> int | None:
    """Coerce a SteamID64 from awpy/polars/pandas cells into an int.

    Floats are routed through Decimal so large u64 ids keep their precision
    as far as the float allows; anything unparseable becomes None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        if not np.isfinite(value):
            return None
        return int(Decimal(str(value)))
    if isinstance(value, Decimal):
        try:
            return int(value)
        except (InvalidOperation, ValueError):
            return None
    if is_missing(value):
        return None
    if isinstance(value, str):
        try:
            dec_value = Decimal(value.strip())
        except (InvalidOperation, ValueError):
            return None
        if not dec_value.is_finite():
            return None
        return int(dec_value)
    if hasattr(value, "item"):
        return normalize_steamid64(value.item())
    return normalize_steamid64(str(value))


def to_jsonable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {str(key): to_jsonable(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        value = float(value)
        return value if math.isfinite(value) else None
    if isinstance(value, np.ndarray):
        return to_jsonable(value.tolist())
    if isinstance(value, np.generic):
        return to_jsonable(value.item())
    return str(value)
