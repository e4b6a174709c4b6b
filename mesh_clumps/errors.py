"""
Exceptions raised by the clump generator.
"""

from typing import Optional


class ClumpError(Exception):
    """Base class for all clump generation errors."""


class InvalidInputError(ClumpError, ValueError):
    """The input geometry cannot be mapped to a mesh."""


class ParameterError(ClumpError, ValueError):
    """A generation parameter is outside its allowed range."""


class GrowthError(ClumpError, RuntimeError):
    """A tangent sphere could not be grown from a vertex."""

    def __init__(self, message: str, vertex_index: Optional[int] = None,
                 radius: Optional[float] = None):
        super().__init__(message)
        self.vertex_index = vertex_index
        self.radius = radius
