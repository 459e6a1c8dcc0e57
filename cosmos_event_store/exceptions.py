"""
Custom exceptions for event store configuration.

Every failure raised while configuring, provisioning or registering
an event store derives from EventStoreError.
"""


class EventStoreError(Exception):
    """Base exception for all event store configuration errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidArgumentError(EventStoreError, ValueError):
    """Raised when a configuration value violates its constraint.

    The offending value is never committed to the settings.
    """

    def __init__(self, field: str, reason: str, value: object = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = str(value)
        super().__init__(f"Invalid value for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class ConfigurationError(InvalidArgumentError):
    """Raised when the configuration as a whole cannot be used."""


class AuthenticationError(EventStoreError):
    """Raised when credentials for the remote store are missing or rejected."""

    def __init__(self, endpoint: str, reason: str | None = None):
        details = {"endpoint": endpoint}
        if reason:
            details["reason"] = reason
        super().__init__(f"Authentication failed for {endpoint}", details)
        self.endpoint = endpoint
        self.reason = reason


class ProvisioningError(EventStoreError):
    """Raised when the database or collection could not be ensured."""

    def __init__(
        self,
        database_name: str,
        collection_name: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ):
        details: dict = {
            "database_name": database_name,
            "collection_name": collection_name,
        }
        if status_code is not None:
            details["status_code"] = status_code
        if cause is not None:
            details["cause"] = str(cause) or type(cause).__name__
        super().__init__(
            f"Provisioning failed for {database_name}/{collection_name}",
            details,
        )
        self.database_name = database_name
        self.collection_name = collection_name
        self.status_code = status_code
        self.cause = cause


class StorageConnectionError(EventStoreError):
    """Raised when the event store is used without a usable connection.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str | None, reason: str | None = None):
        details: dict = {"endpoint": endpoint}
        if reason:
            details["reason"] = reason
        super().__init__(f"No usable connection to {endpoint or 'Cosmos DB'}", details)
        self.endpoint = endpoint
        self.reason = reason


class RegistrationError(EventStoreError):
    """Raised on duplicate or unknown registry keys."""

    def __init__(self, service: str, name: str, reason: str):
        super().__init__(
            f"Registration error for {service} '{name}': {reason}",
            {"service": service, "name": name, "reason": reason},
        )
        self.service = service
        self.name = name
        self.reason = reason
