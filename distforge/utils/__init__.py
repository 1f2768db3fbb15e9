"""Small shared helpers."""

from .once import OnceCell
from .naming import capitalize

__all__ = ["OnceCell", "capitalize"]
