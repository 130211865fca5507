import os
import re
import setuptools
from typing import List


def get_content(file: str) -> str:
    with open(file, "r", encoding="utf-8") as f:
        return f.read()


def get_version(package: str) -> str:
    path = os.path.join(package, "__init__.py")
    return re.search("__version__ = ['\"]([^'\"]+)['\"]", get_content(path)).group(1)


def get_packages(package: str) -> List[str]:
    return [
        directory.replace(os.path.sep, ".")
        for directory, subdirectories, filenames in os.walk(package)
        if os.path.exists(os.path.join(directory, "__init__.py"))
    ]


setuptools.setup(
    name="hypercollection",
    version=get_version("hypercollection"),
    packages=get_packages("hypercollection"),
    description="Flexible collection envelopes (sorting, paging, detail levels) for RESTful APIs",
    long_description=get_content("README.md"),
    long_description_content_type="text/markdown",
    license="GPLv3",
    install_requires=[
        "fastapi>=0.100.0,<1.0",
        "pydantic>=2.5,<3.0",
        "pydantic-settings>=2.1,<3.0",
        "SQLAlchemy>=2.0,<3.0",
        "uvicorn>=0.20.0,<1.0"
    ],
    extras_require={
        "test": [
            "httpx>=0.24",
            "pytest>=7.0"
        ]
    },
    project_urls={},
    python_requires=">=3.8",
    classifiers=[
        "Operating System :: OS Independent",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Topic :: Internet :: WWW/HTTP",
        "Programming Language :: Python :: 3",
        "Development Status :: 3 - Alpha"
    ]
)
