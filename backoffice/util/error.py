"""Utility layer errors."""


class UtilError(Exception):
    """Base utility error."""

    pass


class ConfigurationError(UtilError):
    """Configuration error."""

    pass


class SealError(UtilError):
    """A session value could not be sealed or unsealed."""

    pass
