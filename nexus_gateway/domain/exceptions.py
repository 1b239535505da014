"""Domain-specific exceptions.

Expected conditions (bad input, policy denials, unknown records) are returned
as result values. These are reserved for integration failures and privilege
violations.
"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class CopRegistryError(DomainException):
    """Confirmation of Payee registry returned an error or is unavailable"""

    pass


class TokenizationError(DomainException):
    """Card token could not be issued. The message is safe to show to a client."""

    pass


class PrivilegeError(DomainException):
    """Operation attempted without the required privileged scope"""

    pass
