#!/usr/bin/env python3
"""
Setup script for the GGST Rating Update system
"""

from setuptools import setup, find_packages

# Read the README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="ggst-ratings",
    version="1.0.0",
    author="GGST Community",
    description="Glicko-2 player ratings for Guilty Gear -Strive- replays, published as static player pages",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.7",
    install_requires=[
        "requests>=2.25.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "beautifulsoup4>=4.9.0",
            "black>=21.0",
            "flake8>=3.8",
        ],
    },
    entry_points={
        "console_scripts": [
            "ggst-rater=ggst_ratings.core.rater:main",
            "ggst-sync=ggst_ratings.utils.sync_games:main",
            "ggst-web=ggst_ratings.web.generate_web_ui:main",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Games/Entertainment",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="guilty-gear ggst strive glicko2 ratings fighting-games statistics",
)
