"""State/store layer.

This package holds the single source of truth for a store's values and
collections, plus the structural diff used by sync hooks.
"""
