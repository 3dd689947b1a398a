"""Domain exceptions raised by services and translated to HTTP responses in main."""


class TaskforgeError(Exception):
    """Base exception for taskforge errors."""

    pass


class ValidationError(TaskforgeError):
    """Raised when a request fails field-level validation.

    Carries a mapping of field name to the list of messages for that field.
    """

    def __init__(self, fields: dict[str, list[str]], message: str = "One or more validation errors occurred."):
        super().__init__(message)
        self.message = message
        self.fields = fields


class NotFoundError(TaskforgeError):
    """Raised when a resource is absent or not owned by the caller."""

    def __init__(self, model: str = "Resource"):
        super().__init__(f"{model} not found")
        self.model = model


class DependencyError(TaskforgeError):
    """Raised when the blob store, identity directory or database fails mid-workflow."""

    def __init__(self, dependency: str, message: str):
        super().__init__(f"{dependency}: {message}")
        self.dependency = dependency


class StartupFailure(TaskforgeError):
    """Raised when a required dependency is unreachable at boot."""

    pass
