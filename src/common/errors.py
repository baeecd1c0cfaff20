"""
Error taxonomy shared by the gateway and the session layer.

ConfigurationError and GatewayError surface at the nearest view boundary as a
fixed message. StreamInterrupted is recovered inside the chat orchestrator.
"""


class NationSenseError(Exception):
    """Base class for all expected failures."""


class ConfigurationError(NationSenseError):
    """Required configuration (the API credential) is missing."""


class GatewayError(NationSenseError):
    """A remote model call failed or returned an unusable response."""


class StreamInterrupted(GatewayError):
    """A streamed chat reply failed at initiation or mid-stream."""
