class LgtmStackError(Exception):
    """Base class for errors raised by the service."""


class SimulatedFailureError(LgtmStackError):
    """Raised on purpose by the demo error endpoint."""


class DuplicateEndpointError(LgtmStackError):
    pass


class RegistryFrozenError(LgtmStackError):
    pass


class UnknownEndpointError(LgtmStackError, KeyError):
    pass
