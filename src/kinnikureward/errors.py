"""
kinnikureward/errors.py

Exception hierarchy for kinnikureward.

ClientInputError subclasses map to 4xx responses, ServerConfigError to a
5xx without side effects, ExternalServiceError to failures of the ledger
node or the text-generation service.
"""


class KinnikuError(Exception):
    """Base class for all kinnikureward errors."""
    pass


class ClientInputError(KinnikuError):
    """The caller sent something we cannot act on."""
    pass


class InvalidWorkoutError(ClientInputError):
    """No workout entry produced a positive token amount."""
    pass


class InvalidAddressError(ClientInputError):
    """Recipient address is malformed or belongs to another network."""
    pass


class ServerConfigError(KinnikuError):
    """Server is missing configuration it needs."""
    pass


class ConfigurationError(ServerConfigError):
    """Raised when required settings are absent or malformed."""
    pass


class ExternalServiceError(KinnikuError):
    """A collaborator service failed or answered with garbage."""
    pass


class LedgerError(ExternalServiceError):
    """Ledger node request failed."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class TextGenerationError(ExternalServiceError):
    """Text-generation service returned nothing usable."""
    pass
