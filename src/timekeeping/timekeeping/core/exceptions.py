from __future__ import annotations

from .enums import ErrorKind


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind: ErrorKind = ErrorKind.VALIDATION
    retryable: bool = False


class ValidationError(DomainError):
    """Raised when input data is malformed. Nothing was mutated."""

    kind = ErrorKind.VALIDATION


class PolicyViolation(DomainError):
    """Raised when a well-formed request breaks a business rule (caps, balance, eligibility)."""

    kind = ErrorKind.POLICY


class StateError(DomainError):
    """Raised when the target is missing or in the wrong state for the operation."""

    kind = ErrorKind.STATE


class CollaboratorError(DomainError):
    """Raised when persistence or another collaborator fails."""

    kind = ErrorKind.COLLABORATOR
    retryable = True


class ConcurrencyError(CollaboratorError):
    """Raised when an optimistic version check loses a race. Safe to retry."""
