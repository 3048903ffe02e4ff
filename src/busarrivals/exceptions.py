"""Exceptions raised by the bus arrivals tracker."""


class BusArrivalsError(Exception):
    """Base class for tracker errors."""


class ConfigError(BusArrivalsError):
    """Missing API key or unreadable configuration file."""


class FeedError(BusArrivalsError):
    """The upstream feed could not be fetched or parsed."""
