"""Environment variables read by elm-compiler."""

import os
from typing import Optional


def get_elm_compiler_path() -> Optional[str]:
    """Get the compiler executable configured through the environment.

    Environment Variables
    ---------------------
    ELM_COMPILER_PATH : str, optional
        Path to the ``elm`` executable.

    Returns
    -------
    Optional[str]
        The configured path, or None if the variable is unset or empty.
    """
    value = os.environ.get("ELM_COMPILER_PATH")
    return value or None


def get_node_path() -> str:
    """Get the Node.js executable used to host worker artifacts.

    Environment Variables
    ---------------------
    ELM_COMPILER_NODE_PATH : str, optional
        Path to the ``node`` executable. Defaults to "node".

    Returns
    -------
    str
        The node executable name or path.
    """
    return os.environ.get("ELM_COMPILER_NODE_PATH") or "node"


def get_log_level() -> str:
    """Get the default log level.

    Environment Variables
    ---------------------
    ELM_COMPILER_LOG_LEVEL : str, optional
        A standard logging level name. Defaults to "INFO".
    """
    return (os.environ.get("ELM_COMPILER_LOG_LEVEL") or "INFO").upper()
