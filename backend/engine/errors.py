"""Exceptions raised by the itinerary time engine."""


class ItineraryError(Exception):
    """Base class for engine errors."""


class InvalidTimeError(ItineraryError, ValueError):
    """A wall-clock value is not a valid "HH:MM" string."""


class StopIndexError(ItineraryError, IndexError):
    """An edit referenced a stop position outside the list."""


class TravelTimeError(ItineraryError):
    """The travel-time estimator could not produce an estimate."""
