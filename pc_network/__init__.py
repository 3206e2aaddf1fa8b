"""Shared-patient provider networks for palliative-care analysis."""

__version__ = "1.0.0"
