"""Constants module for the playground broker.

This module contains the error messages shared by the engine and both
transports.
"""

from .errors import ErrorMessages

__all__ = ["ErrorMessages"]
