import setuptools
from setuptools import find_packages

with open("readme.md", "r") as fh:
    long_description = fh.read()


vars2find = ["__author__", "__version__"]
vars2readme = {}
with open("./snap_reindexer/__init__.py") as f:
    for line in f.readlines():
        for v in vars2find:
            if line.startswith(v):
                line = line.replace(" ", "").replace('"', "").replace("'", "").strip()
                vars2readme[v] = line.split("=")[1]

core_deps = [
    "elasticsearch[async]>=8.0.0,<9",
    "redis[hiredis]>=5.0.1",
    "tenacity",
    "pydantic>=2.0",
    "pydantic-settings",
]

setuptools.setup(
    name="snap-reindexer",
    version=vars2readme["__version__"],
    author=vars2readme["__author__"],
    description="Restore, reindex and re-archive every index in an Elasticsearch snapshot repository",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["snap_reindexer", "snap_reindexer.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=core_deps,
    extras_require={
        "api": [
            "fastapi",
            "uvicorn",
        ],
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
            "fastapi",
        ],
        "all": [
            "fastapi",
            "uvicorn",
        ],
    },
    entry_points={
        "console_scripts": [
            "snap-reindexer=snap_reindexer.cli:main",
        ],
    },
)
