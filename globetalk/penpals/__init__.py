"""Penpal request lifecycle and listings."""

from .request_ledger import PenpalRequestLedger

__all__ = [
    'PenpalRequestLedger',
]
