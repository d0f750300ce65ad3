"""Base service class for domain services."""


class Service:
    """Base class for all domain services.

    Domain services hold the session and identity logic that does not
    belong to a single model.
    """

    pass
