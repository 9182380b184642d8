"""FOMS backend - fiber optic construction asset tracking.

Soft-delete lifecycle and retention-based purge of vaults, midpoints,
cables and their photo files.
"""

__version__ = "0.1.0"
