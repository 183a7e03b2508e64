"""Exception classes for hydrodispatch."""


class HydroDispatchError(Exception):
    """Base class for hydrodispatch errors."""
    pass


class ConfigurationError(HydroDispatchError):
    """Invalid configuration or malformed solve options."""
    pass


class UnknownBackendError(ConfigurationError):
    """Requested solver backend is not registered."""
    pass


class BackendUnavailableError(ConfigurationError):
    """Requested solver backend is registered but could not be loaded."""

    def __init__(self, backend: str, install_hint: str | None = None):
        self.backend = backend
        self.install_hint = install_hint
        message = f"Solver backend '{backend}' is not available"
        if install_hint:
            message += f". Install with: {install_hint}"
        super().__init__(message)


class ModelStateError(HydroDispatchError):
    """Optimization model is not in a state that allows the operation."""
    pass


class ModelBusyError(ModelStateError):
    """Optimization model is already borrowed by another solve."""
    pass
