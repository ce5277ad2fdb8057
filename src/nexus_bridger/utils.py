"""Utility functions for nexus-bridger."""

from __future__ import annotations

import random
from decimal import Decimal, InvalidOperation
from pathlib import Path

from .exceptions import ValidationError

ETHER_DECIMALS = 18


def parse_units(value: str | Decimal, decimals: int = ETHER_DECIMALS) -> int:
    """Convert a human readable decimal amount to raw integer units."""
    try:
        quantity = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationError("Invalid decimal amount", field="value", value=value) from exc

    if not quantity.is_finite():
        raise ValidationError("Amount must be finite", field="value", value=value)
    if quantity < 0:
        raise ValidationError("Amount cannot be negative", field="value", value=value)

    return int(quantity.scaleb(decimals))


def format_units(value: int, decimals: int) -> Decimal:
    """Convert raw integer units to a Decimal."""
    return Decimal(value).scaleb(-decimals)


def draw_amount(max_amount: int, rng: random.Random | None = None) -> int:
    """Draw a random amount in ``[1, max_amount)``."""
    if max_amount < 2:
        raise ValidationError(
            "Maximum spend must be at least 2 raw units", field="max_amount", value=max_amount
        )
    source = rng or random
    return source.randrange(1, max_amount)


def normalise_private_key(key: str) -> str:
    key = key.strip()
    if key and not key.startswith("0x"):
        key = "0x" + key
    return key


def load_private_keys(path: str | Path) -> list[str]:
    """Read one private key per line, skipping blanks and adding ``0x``."""
    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ValidationError(
            f"Private keys file not found: {file_path}", field="private_keys_file", value=str(path)
        ) from exc

    keys = [normalise_private_key(line) for line in content.splitlines()]
    return [key for key in keys if key]
