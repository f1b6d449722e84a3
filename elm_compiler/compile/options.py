"""Resolve defaults for an invocation and bind the process executor."""

from __future__ import annotations

import os
import shutil
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

from elm_compiler.data import CompilerOptions
from elm_compiler.env import get_elm_compiler_path

from .args import Sources, normalize_sources, validate_options
from .executor import AsyncProcessExecutor, ProcessExecutor

DEFAULT_COMPILER = "elm"
"""Executable name searched on ``PATH`` when no compiler path is configured."""


class ProcessedOptions(BaseModel):
    """An invocation with every default resolved. Immutable once constructed."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    sources: List[str]
    """Source paths in the order given."""
    options: CompilerOptions
    """The validated options as given by the caller."""
    path_to_elm: str
    """The resolved compiler executable."""
    cwd: str
    """The resolved working directory."""
    executor: Any
    """The bound process executor. Not validated here so that a misconfigured executor is
    reported by the invoker as a ``SpawnInvocationError``."""

    def with_overrides(self, **updates: Any) -> "ProcessedOptions":
        """Return a copy whose ``options`` have the given fields replaced."""
        return self.model_copy(update={"options": self.options.model_copy(update=updates)})


def resolve_compiler_path(path_to_elm: Optional[str] = None) -> str:
    """Resolve the compiler executable.

    The explicit path wins, then the ``ELM_COMPILER_PATH`` environment variable, then
    ``elm`` looked up on ``PATH``. If nothing is found the bare name is returned so that the
    spawn failure names it.
    """
    if path_to_elm:
        return path_to_elm
    configured = get_elm_compiler_path()
    if configured:
        return configured
    return shutil.which(DEFAULT_COMPILER) or DEFAULT_COMPILER


def process_options(
    sources: Sources,
    options: Union[CompilerOptions, Mapping[str, Any], None] = None,
    executor: Optional[ProcessExecutor] = None,
) -> ProcessedOptions:
    """Validate an invocation and resolve its defaults.

    Parameters
    ----------
    sources : str, os.PathLike or a sequence of them
        The Elm source files to compile.
    options : CompilerOptions or Mapping[str, Any], optional
        The compiler options.
    executor : ProcessExecutor, optional
        The executor used to start the compiler. Defaults to ``AsyncProcessExecutor``.

    Returns
    -------
    ProcessedOptions
        The resolved invocation.

    Raises
    ------
    InvalidConfiguration
        If the sources or the options are malformed (including unrecognized and legacy
        option names).
    """
    validated = validate_options(options)
    return ProcessedOptions(
        sources=normalize_sources(sources),
        options=validated,
        path_to_elm=resolve_compiler_path(validated.path_to_elm),
        cwd=validated.cwd or os.getcwd(),
        executor=executor if executor is not None else AsyncProcessExecutor(),
    )
