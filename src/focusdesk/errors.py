# src/focusdesk/errors.py

"""
Exception hierarchy.

Expected "not found" / "no-op" outcomes are never raised; they are returned as
None or empty results. Only storage-layer failures propagate as exceptions.
"""

from __future__ import annotations


class FocusDeskError(Exception):
    """Base class for all focusdesk errors."""


class StorageError(FocusDeskError):
    """The persistent store failed to execute an operation."""


class TransactionFailure(StorageError):
    """A statement or transaction failed and was rolled back."""


class InvariantViolation(StorageError):
    """The store rejected a write because it would break a constraint."""
