"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class PokeApiError(ServiceError):
    """Remote lookup failed or returned a payload we cannot read."""
