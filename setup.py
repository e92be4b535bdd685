from setuptools import setup, find_packages
import pathlib

# Detect layout
use_src = pathlib.Path("src/orcajobs").exists()
pkg_args = {"package_dir": {"": "src"}, "packages": find_packages(where="src")} if use_src \
           else {"packages": find_packages(where=".")}

setup(
    name="orca-jobs",
    version="0.1.0",
    description="Prepare, submit and post-process ORCA jobs on a SLURM cluster",
    include_package_data=True,
    package_data={"orcajobs": ["templates/*/*.j2"]},
    python_requires=">=3.10",
    install_requires=[
        "typer>=0.9",
        "jinja2>=3.0",
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "pandas>=1.5",
    ],
    extras_require={"test": ["pytest>=7"]},
    entry_points={"console_scripts": ["orcajobs=orcajobs.cli:app"]},
    **pkg_args
)
