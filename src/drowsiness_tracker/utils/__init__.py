"""
Offline analysis utilities.
"""

from .data_analyzer import SessionDataAnalyzer

__all__ = ['SessionDataAnalyzer']
