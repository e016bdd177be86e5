# setup.py
from setuptools import setup, find_packages

setup(
    name="ltclient",
    version="0.1.0",
    description="Evaluation client for LightTable-style editor hosts",
    packages=find_packages(include=["ltclient", "ltclient.*"]),
    python_requires=">=3.8",
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": ["ltclient=ltclient.cli:main"],
    },
    zip_safe=False,
)
