"""Drop-root discovery, stability checks and external probing capabilities."""

from .discovery import DirectoryScanner
from .models import ClaimSnapshot, IncomingEntry
from .stability import StabilityDetector

__all__ = ["ClaimSnapshot", "DirectoryScanner", "IncomingEntry", "StabilityDetector"]
