class RedisBrainError(Exception):
    """Base class for redis brain errors."""


class ConfigurationError(RedisBrainError):
    """The Redis connection URL could not be turned into a connection config."""


class BrainLoadError(RedisBrainError):
    """Reading the stored brain failed; startup of the persistence layer aborts."""

    def __init__(self, key: str, message: str):
        super().__init__(f"Failed to load brain from '{key}': {message}")
        self.key = key
