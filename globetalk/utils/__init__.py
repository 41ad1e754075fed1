"""Shared constants and helpers."""

from .pair_id import make_pair_id

__all__ = [
    'make_pair_id',
]
