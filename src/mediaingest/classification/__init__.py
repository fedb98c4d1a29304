"""Content classification package."""

from .engine import ContentClassifier, MediaExtensions
from .models import MediaClass, ProbeResult

__all__ = [
    "ContentClassifier",
    "MediaClass",
    "MediaExtensions",
    "ProbeResult",
]
