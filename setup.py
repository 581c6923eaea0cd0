"""
Setup script for relational-anonymizer package.
"""

from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="relational-anonymizer",
    version="1.0.0",
    author="Relational Anonymizer Contributors",
    description="Referentially consistent anonymization of relational data",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/your-org/relational-anonymizer",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Database",
        "Topic :: Security",
    ],
    python_requires=">=3.10",
    install_requires=[
        "networkx>=3.0",
        "tabulate>=0.9.0",
        "Faker>=20.0",  # Realistic replacement values
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov",
            "mypy",
            "black",
            "ruff",
        ],
    },
)
