#!/usr/bin/env python3
"""
Setup script for Drowsiness Tracker
"""

from setuptools import setup, find_packages

setup(
    name="drowsiness-tracker",
    version="1.0.0",
    description="Reference-frame webcam drowsiness check built on OpenCV",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.8",
    install_requires=[
        "opencv-python>=4.5",
        "numpy>=1.20",
        "PyYAML>=5.4",
        "pandas>=1.3",
        "matplotlib>=3.4",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "drowsiness-tracker=drowsiness_tracker.main:main",
        ],
    },
)
