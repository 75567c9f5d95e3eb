from __future__ import annotations

import math
import re
from typing import Any, Optional

# как parseInt: ведущие пробелы, знак, цифры; хвост игнорируем ("15abc" -> 15)
_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Any) -> Optional[int]:
    """Строгий разбор: None, если целое не распознано."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # 7.0 -> 7; дробное число целым не считается
        if not math.isfinite(value) or not value.is_integer():
            return None
        return int(value)
    m = _INT_RE.match(str(value))
    if not m:
        return None
    return int(m.group(1))


def parse_amount(value: Any, default: int = 0) -> int:
    """Мягкий разбор для степперов: всё нераспознанное считаем default."""
    n = parse_int(value)
    return default if n is None else n


def parse_optional_amount(value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_int(value)
