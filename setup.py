"""
Setup script for docstore.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="docstore",
    version="0.1.0",
    packages=find_packages(include=["docstore", "docstore.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pymongo>=4.13",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "fastapi>=0.110",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
)
