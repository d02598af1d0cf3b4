from __future__ import annotations

from setuptools import find_namespace_packages, setup

setup(
    name="quadfield",
    version="0.1.0",
    description=(
        "Quad-mesh topology engine and piecewise-bilinear vector field "
        "streamline tracer"
    ),
    python_requires=">=3.10",
    packages=find_namespace_packages(
        include=[
            "core",
            "core.*",
            "geometry",
            "geometry.*",
            "parameters",
            "parameters.*",
            "quadfield",
            "quadfield.*",
            "runtime",
            "runtime.*",
            "visualization",
            "visualization.*",
        ]
    ),
    py_modules=["main"],
    install_requires=[
        "numpy",
        "PyYAML",
        "matplotlib",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "quadfield=main:main",
            "quadfield-viz=visualization.cli:main",
        ]
    },
)
