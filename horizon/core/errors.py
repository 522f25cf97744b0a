# horizon/core/errors.py
"""Exception types raised across component boundaries."""


class HorizonError(Exception):
    """Base class for Horizon errors."""


class PersistenceError(HorizonError):
    """A durable store read or write failed."""


class InvalidEventError(HorizonError):
    """An inbound engagement event is malformed."""


class ChannelError(HorizonError):
    """Base class for request/response channel failures."""


class ChannelClosedError(ChannelError):
    """The channel was closed before a response was produced."""


class ChannelTimeoutError(ChannelError):
    """No response arrived within the request timeout."""
