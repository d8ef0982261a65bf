"""Conversational action pipeline for the business-management assistant."""

from .__version__ import __version__

__all__ = ["__version__"]
