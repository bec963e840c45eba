"""
Setup configuration for valr-client package.
"""
from setuptools import setup, find_packages

setup(
    name="valr-client",
    version="0.1.0",
    description="VALR exchange client: signed REST transport and resilient WebSocket sessions",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="VALR Client Team",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.28.0,<3.0",
        "aiohttp>=3.8.0,<4.0",
        "yarl>=1.8.0,<2.0",
        "pyyaml>=6.0,<7.0",
        "loguru>=0.7.0,<1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0,<9.0",
            "pytest-asyncio>=0.21.0,<1.0",
        ],
        "dev": [
            "black>=23.0.0,<24.0",
            "ruff>=0.1.0,<1.0",
            "mypy>=1.0.0,<2.0",
            "isort>=5.12.0,<6.0",
            "pytest-cov>=4.0.0,<5.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
