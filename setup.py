# setup.py
from setuptools import setup, find_packages

setup(
    name="request-schema",            # the *distribution* name on PyPI
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),   # will find request_schema/
    install_requires=[
        "jsonschema>=4.18",           # validation engine (drafts 7, 2019-09, 2020-12)
        "pandas",                     # tabular mapping views
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["request-schema=request_schema.cli:main"],
    },
    python_requires=">=3.9",
    description="Versioned request schemas: JSON Schema rendering and external → internal parameter mapping",
    author="Your Name",
    license="Creative Commons Attribution-NonCommercial-ShareAlike 4.0 International License",
)
