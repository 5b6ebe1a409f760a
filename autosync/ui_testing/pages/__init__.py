"""Page objects for the UI suites."""

from .playground_page import PLAYGROUND_HTML, PlaygroundPage

__all__ = [
    "PLAYGROUND_HTML",
    "PlaygroundPage",
]
