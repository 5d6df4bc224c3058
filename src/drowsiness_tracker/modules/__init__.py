"""
Analysis and capture modules.
"""
