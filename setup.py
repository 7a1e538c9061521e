#!/usr/bin/env python3
"""
Setup script for CardioView Hand Control
"""

from setuptools import find_packages, setup

setup(
    name="cardioview",
    version="0.1.0",
    description="Hand, voice and click control for an interactive heart anatomy viewer",
    author="Healthcare Intake Assistant Team",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pyyaml",
        "python-dotenv",
        "pydantic>=2",
        "google-generativeai",
        "aiohttp",
        "fastapi",
        "uvicorn",
    ],
    extras_require={
        "vision": ["mediapipe", "opencv-python"],
        "voice": ["pyaudio", "torch", "elevenlabs"],
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": [
            "cardioview=cardioview.main:cli",
            "cardioview-server=cardioview.server:main",
        ],
    },
)
