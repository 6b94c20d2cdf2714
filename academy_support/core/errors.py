"""
Dispatcher exception types
"""


class GenerationError(Exception):
    """Text-generation call failed (network, timeout, bad status or malformed body)"""


class ChannelDeliveryError(Exception):
    """Reply could not be delivered over the channel transport"""

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.details = details


class InvalidTransition(Exception):
    """Requested case state change is not allowed (e.g. reopening a closed case)"""
