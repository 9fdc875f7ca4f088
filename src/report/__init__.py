"""Diagnosis report module."""

from .report import ReportGenerator

__all__ = ['ReportGenerator']
