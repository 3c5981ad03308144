"""Setup configuration for all-tickers package."""

from setuptools import find_namespace_packages, setup

with open("README.md", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="all-tickers",
    version="1.0.0",
    description="Enumerate every A-Z ticker symbol and classify it as active or delisted",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Daniel",
    packages=find_namespace_packages(include=["src", "src.*", "config", "config.*", "scripts"]),
    python_requires=">=3.10",
    install_requires=[
        "pandas>=2.0.0",
        "yfinance>=0.2.54",
        "requests>=2.31.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "python-dateutil>=2.8.2",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.21.0",
            "ruff>=0.1.0",
            "mypy>=1.5.0",
            "pre-commit>=3.4.0",
            "types-python-dateutil>=2.8.19",
            "types-requests>=2.31.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "all-tickers=scripts.run_scan:main",
        ],
    },
)
