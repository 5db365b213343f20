"""Setup configuration for the TMC test runner."""

from setuptools import setup, find_packages

setup(
    name="tmc-test-runner",
    version="0.1.0",
    description="Runs TMC exercise tests in an isolated runner process",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"tmc_runner": ["defaults.yaml"]},
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tmc-test=tmc_runner.cli:main",
        ],
    },
)
