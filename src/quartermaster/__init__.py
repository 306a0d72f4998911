"""Quartermaster: production, yard and shipping logistics for a regiment."""

__version__ = "0.1.0"
