#!/usr/bin/env python3
"""
Setup script for GrammarLens package.
"""

from setuptools import setup, find_packages

# Read the README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements
with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

# Filter out development dependencies
install_requires = [req for req in requirements if not req.startswith("pytest")]

setup(
    name="grammarlens",
    version="1.0.0",
    description="Grammar-check highlights and one-click suggestion application over the LanguageTool API",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Text Processing :: Linguistic",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-flask>=1.3.0",
            "pytest-cov>=4.1.0",
        ],
        "production": [
            "gunicorn>=21.2.0",
            "waitress>=3.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "grammarlens-server=grammarlens.app:main",
        ],
    },
    keywords="grammar spelling languagetool text correction highlights",
)
