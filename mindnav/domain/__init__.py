"""Domain layer for Mind Navigator.

This package holds the decision graph model and budget arithmetic.
It is intentionally framework-agnostic: domain logic should be testable without Flask.
"""
