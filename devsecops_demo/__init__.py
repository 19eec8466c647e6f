"""Secure Cloud DevSecOps demo service package."""

__version__ = "1.0.0"
