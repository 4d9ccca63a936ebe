# src/jetworker/exceptions.py


class JetworkerException(Exception):
    """Base exception class for jetworker."""

    pass


class ConfigurationError(JetworkerException):
    """Raised for configuration issues."""

    pass


class SerializationError(JetworkerException):
    """Raised when a message payload cannot be encoded or decoded."""

    pass


class JetworkerConnectionError(JetworkerException):
    """Raised when there is a connection-related error with NATS."""

    pass


class JobNotPresentError(JetworkerException):
    """Raised when a worker is created without any jobs."""

    pass


class JobNotFoundError(JetworkerException):
    """Raised when a job identifier cannot be resolved to a job type."""

    pass


class WorkerError(JetworkerException):
    """Raised when a worker cannot claim its runtime resources (e.g. a pidfile)."""

    pass
