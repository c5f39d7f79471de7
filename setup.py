"""
Setup script for the HybridLBOpt package.

This script is used to install the HybridLBOpt package, making it available
in the Python environment and creating a command-line entry point.
"""
from setuptools import setup, find_packages

# Read the contents of your README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read the contents of your requirements file
with open('requirements.txt') as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]

setup(
    name="HybridLBOpt",
    version="0.1.0",
    description="ACO-PSO hybrid optimization for balancing cloud workloads across data centers.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*", "examples*", "docs*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering",
    ],
    python_requires='>=3.8',
    install_requires=requirements,
    extras_require={
        'test': ['pytest'],
    },
    # This is the crucial part for the command-line interface
    entry_points={
        'console_scripts': [
            'run_lb_problem=HybridLBOpt.run_problem:cli',
        ],
    },
)
