from __future__ import annotations


class HnError(Exception):
    """Base class for everything that can go wrong while loading stories."""


class TransportError(HnError):
    """The upstream API could not be reached or answered with an error status."""


class DecodeError(HnError):
    """The upstream API answered, but the payload was not what we expected."""


class UpstreamUnavailable(HnError):
    """The ranked list of story ids could not be loaded."""


class InsufficientStories(HnError):
    """The id list ran out before enough stories were collected."""

    def __init__(self, wanted: int, found: int) -> None:
        super().__init__(f"Only found {found} of {wanted} requested stories")
        self.wanted = wanted
        self.found = found
