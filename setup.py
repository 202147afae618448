"""setuptools setup for PomoTrack.

Install for development:
    pip install -e ".[test]"
    python -m pomotrack
"""

from setuptools import setup, find_packages

setup(
    name="PomoTrack",
    version="0.1.0",
    description="Pomodoro work/break timer with durable progress statistics",
    packages=find_packages(include=["pomotrack", "pomotrack.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyQt6>=6.5",
        "SQLAlchemy>=2.0",
        "numpy>=1.24",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": ["pomotrack=pomotrack.__main__:main"],
    },
)
