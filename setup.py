#!/usr/bin/env python3
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="s3-sigv4-client",
    version="0.1.0",
    description="S3-compatible storage client and CLI with AWS Signature Version 4 signing",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["s3cli"],
    include_package_data=True,
    install_requires=[
        "click>=8.1.3",
        "requests>=2.31.0",
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
        "tabulate>=0.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "freezegun>=1.2.0",
            "boto3>=1.28.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "s3cli=s3cli:cli",
        ],
    },
    python_requires=">=3.8",
)
