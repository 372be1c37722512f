"""
Resources package - the composition and reconciliation engine.
"""

from .manager import ResourceManager

__all__ = ["ResourceManager"]
