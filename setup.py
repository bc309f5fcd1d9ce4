# -*- coding: utf-8 -*-

import os
import re

from setuptools import setup

extras_require = {
    "test": [
        "pytest>=6.2.5,<9.0",
        "pytest-cov>=2.10,<6.0",
        "pytest-instafail>=0.4,<1.0",
        "pytest-xdist>=2.5,<4.0",
        "hypothesis>=6.0,<7.0",
    ],
    "lint": [
        "black==23.12.0",
        "flake8==6.1.0",
        "flake8-bugbear==23.12.2",
        "flake8-use-fstring==1.4",
        "isort==5.13.2",
        "mypy==1.5",
    ],
    "dev": ["ipython", "pre-commit", "twine"],
}

extras_require["dev"] = extras_require["test"] + extras_require["lint"] + extras_require["dev"]

with open("README.md", "r") as f:
    long_description = f.read()


# single source of truth for the version, shared with the installed package
def _read_version():
    version_file = os.path.join("ballot", "version.py")
    with open(version_file) as f:
        match = re.search(r'^version = "([^"]+)"', f.read(), re.M)
    if match is None:
        raise RuntimeError(f"no version found in {version_file}")
    return match.group(1)


setup(
    name="ballot-engine",
    version=_read_version(),
    description="Weighted voting with vote delegation, as a Python state machine",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Ballot Team",
    author_email="",
    license="Apache License 2.0",
    keywords="ballot voting delegation governance",
    include_package_data=True,
    packages=["ballot", "ballot.cli"],
    python_requires=">=3.10,<4",
    install_requires=[
        "cbor2>=5.4.6,<6",
        "pycryptodome>=3.5.1,<4",
        "packaging>=23.1",
    ],
    tests_require=extras_require["test"],
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "ballot=ballot.cli.ballot_cli:_parse_cli_args",
            "ballot-json=ballot.cli.ballot_json:_parse_cli_args",
        ]
    },
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
