"""orca-jobs: SLURM submission and post-processing helpers for ORCA."""

__version__ = "0.1.0"
