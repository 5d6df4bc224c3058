"""
Real-time Interface Module

Provides the display used during a live drowsiness check.
"""

from .gui_interface import GUIInterface

__all__ = ['GUIInterface']
