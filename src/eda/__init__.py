"""Exploratory Data Analysis module."""

from .eda import ExploratoryDataAnalyzer

__all__ = ['ExploratoryDataAnalyzer']
