"""Exceptions raised by a11y-audit."""


class A11yAuditError(Exception):
    """Base class for all a11y-audit errors."""


class InvalidInputError(A11yAuditError, ValueError):
    """Input that cannot produce a meaningful score or comparison."""


class SourceError(A11yAuditError):
    """Audit rows could not be fetched."""


class AuditNotFoundError(SourceError):
    """The requested audit does not exist in the source."""

    def __init__(self, audit_id: str):
        super().__init__(f"Audit not found: {audit_id}")
        self.audit_id = audit_id


class SourceNotConfiguredError(SourceError):
    """No audit source could be configured."""
