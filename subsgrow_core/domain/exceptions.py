"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class SubscriptionError(DomainException):
    """Live query transport failed; the last good snapshot stays valid"""

    pass


class QueryError(DomainException):
    """Point read against the document store failed"""

    pass


class WriteError(DomainException):
    """Document insert failed; nothing was persisted"""

    pass


class ConfigError(DomainException):
    """Tenant or plan configuration value is malformed"""

    pass
