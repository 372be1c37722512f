"""
Utilities package - cluster access, ownership annotations and
structural helpers for generic resource trees.
"""
