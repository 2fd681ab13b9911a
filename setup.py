"""Setup script for canvasgraph: ensures package discovery works with setuptools."""
from setuptools import setup, find_packages

# Explicit package discovery for reliable build (editable and wheel)
setup(
    name="canvasgraph",
    version="0.1.0",
    description="Pipeline-graph assembler for SDXL canvas outpainting",
    python_requires=">=3.9",
    packages=find_packages(where=".", include=("canvasgraph", "canvasgraph.*")),
    package_dir={"": "."},
    install_requires=[
        "pydantic>=2.0",
        "omegaconf>=2.3",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["canvasgraph=canvasgraph.cli:main"],
    },
)
