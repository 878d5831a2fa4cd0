"""Setup configuration for response_tracker"""

from setuptools import setup, find_packages

setup(
    name="gh-response-time-tracker",
    version="0.1.0",
    description=(
        "CLI tool measuring how quickly organization members respond to "
        "community GitHub issues and pull requests, in business hours."
    ),
    author="GitHub Response Time Tracker Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "gh-response-time-tracker=response_tracker.main:main",
        ],
    },
)
