"""Error taxonomy shared by the collector and the heartbeat agent."""


class HeartbeatError(Exception):
    """Base class for liveness-monitor errors."""


class ConfigurationError(HeartbeatError):
    """Bad option combination or unusable key file. Fatal at startup."""


class TransportError(HeartbeatError):
    """A heartbeat could not be delivered. Logged; the next tick retries."""


class AuthenticationError(HeartbeatError):
    """Signature missing or invalid while a verification key is configured."""


class ValidationError(HeartbeatError):
    """Malformed payload, malformed signature, or non-fresh timestamp."""
