from __future__ import annotations

from typing import TypeVar

V = TypeVar("V")


def restore_at(items: dict[str, V], key: str, value: V, position: int) -> None:
    """Put `key` back into `items` at its former insertion position."""
    entries = [(k, v) for k, v in items.items() if k != key]
    entries.insert(min(position, len(entries)), (key, value))
    items.clear()
    items.update(entries)
