"""
Configuration layer: Settings (pydantic-settings), constants and the
built-in documentation domains.

    from docs_expert.config import Settings
"""

from .settings import Settings

__all__ = ["Settings"]
