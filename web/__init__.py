"""Web API for the SRI assessment."""

from assessment_platform import __version__

__all__ = ["__version__"]
