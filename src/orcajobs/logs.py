from __future__ import annotations

import logging

LOGGER_NAME = "orcajobs"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger (or a child of it), configuring it once."""
    root = logging.getLogger(LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[orcajobs] %(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False
    if name:
        return root.getChild(name)
    return root


def set_verbose(verbose: bool) -> None:
    get_logger().setLevel(logging.DEBUG if verbose else logging.INFO)
