"""
Integration Module

Combines per-frame segmentation votes into a drowsiness verdict.
"""

from .drowsiness_analyzer import DrowsinessAnalyzer, DrowsinessVerdict, FrameAnalysis

__all__ = [
    'DrowsinessAnalyzer',
    'DrowsinessVerdict',
    'FrameAnalysis'
]
