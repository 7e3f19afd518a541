"""
Top-level package for the Tactical Board API.

All functionality lives in submodules under ``app``.
"""

__all__ = []
