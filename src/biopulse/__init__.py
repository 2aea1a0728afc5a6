"""biopulse -- sleep metrics derived from health-store samples."""

__version__ = "0.1.0"
