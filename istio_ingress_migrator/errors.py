"""
Errors raised while migrating an Ingress to an Istio VirtualService.
"""


class MigrationError(Exception):
    """
    Base class for every error the migrator reports.
    """


class MalformedInputError(MigrationError):
    """
    The Ingress lacks a field the mapping needs.
    """

    def __init__(self, field: str, message: str = "") -> None:
        self.field: str = field
        super().__init__(message or f"Ingress is missing required field '{field}'")


class UnsupportedBackendError(MigrationError):
    """
    A path backend cannot be represented as an Istio route destination.
    """

    def __init__(self, location: str, reason: str) -> None:
        self.location: str = location
        self.reason: str = reason
        super().__init__(f"Unsupported backend at {location}: {reason}")


class NotFoundError(MigrationError):
    """
    The source Ingress does not exist.
    """


class ConflictError(MigrationError):
    """
    A VirtualService with the same namespace and name already exists.
    """


class TransportError(MigrationError):
    """
    Communication with the cluster API (or the manifest file) failed.
    """


class KubeConfigError(MigrationError):
    """
    Neither an in-cluster configuration nor a kubeconfig could be loaded.
    """
