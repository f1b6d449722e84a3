"""Translate compiler options into the ``elm make`` command line."""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Union

from pydantic import ValidationError

from elm_compiler.data import CompilerOption, CompilerOptions

from .errors import InvalidConfiguration, RemovedOption, RenamedOption, UnrecognizedOption

Sources = Union[str, os.PathLike, Sequence[Union[str, os.PathLike]]]
"""One source path, or an ordered sequence of source paths."""

SUBCOMMAND = "make"
"""The compiler subcommand; always the first argument."""

RTS_START = "+RTS"
RTS_END = "-RTS"

_REMOVED_OPTIONS = ("yes", "warn")
"""Options of the 0.18 protocol that have no replacement."""

_RENAMED_OPTIONS: Dict[str, str] = {"path_to_make": CompilerOption.PATH_TO_ELM.value}
"""Options of the 0.18 protocol mapped to their new names."""

_RECOGNIZED = frozenset(option.value for option in CompilerOption)

_FLAG_TOKENS: Dict[CompilerOption, Callable[[Any], List[str]]] = {
    CompilerOption.HELP: lambda value: ["--help"],
    CompilerOption.OUTPUT: lambda value: ["--output", value],
    CompilerOption.REPORT: lambda value: ["--report", value],
    CompilerOption.DEBUG: lambda value: ["--debug"],
    CompilerOption.DOCS: lambda value: ["--docs", value],
    CompilerOption.OPTIMIZE: lambda value: ["--optimize"],
}
"""Flag options in emission order. The runtime-options block is appended after these."""

_PROCESS_ONLY = frozenset(
    {
        CompilerOption.CWD,
        CompilerOption.PATH_TO_ELM,
        CompilerOption.VERBOSE,
        CompilerOption.PROCESS_OPTS,
    }
)
"""Options that configure the process and never reach the command line."""

# Every option must be handled exactly once.
assert _FLAG_TOKENS.keys() | _PROCESS_ONLY | {CompilerOption.RUNTIME_OPTIONS} == set(
    CompilerOption
)


def check_option_names(names: Iterable[str]) -> None:
    """Reject option names outside the recognized set.

    Parameters
    ----------
    names : Iterable[str]
        The keys of a raw options mapping.

    Raises
    ------
    RemovedOption
        For ``yes`` and ``warn``.
    RenamedOption
        For ``path_to_make``.
    UnrecognizedOption
        For any other unknown name.
    """
    for name in names:
        if name in _RECOGNIZED:
            continue
        if name in _REMOVED_OPTIONS:
            raise RemovedOption(name)
        if name in _RENAMED_OPTIONS:
            raise RenamedOption(name, _RENAMED_OPTIONS[name])
        raise UnrecognizedOption(str(name))


def validate_options(options: Union[CompilerOptions, Mapping[str, Any], None]) -> CompilerOptions:
    """Coerce a raw options mapping into ``CompilerOptions``.

    Parameters
    ----------
    options : CompilerOptions, Mapping[str, Any] or None
        The options to validate. ``CompilerOptions`` instances are returned unchanged.

    Returns
    -------
    CompilerOptions
        The validated options.

    Raises
    ------
    InvalidConfiguration
        If a name is not recognized or a value has the wrong type.
    """
    if options is None:
        return CompilerOptions()
    if isinstance(options, CompilerOptions):
        return options
    if not isinstance(options, Mapping):
        raise InvalidConfiguration(
            f"Options must be a mapping or CompilerOptions, got {type(options).__name__}"
        )
    check_option_names(options.keys())
    try:
        return CompilerOptions.model_validate(dict(options))
    except ValidationError as e:
        raise InvalidConfiguration(f"Invalid compiler options: {e}") from e


def normalize_sources(sources: Sources) -> List[str]:
    """Normalize the sources argument into a list of paths.

    Parameters
    ----------
    sources : str, os.PathLike or a sequence of them
        A single source file or an ordered sequence of source files.

    Returns
    -------
    List[str]
        The source paths in the order given.

    Raises
    ------
    InvalidConfiguration
        If sources is neither a path nor a sequence of paths, or is empty.
    """
    if isinstance(sources, (str, os.PathLike)):
        return [os.fspath(sources)]
    if not isinstance(sources, (list, tuple)):
        raise InvalidConfiguration(
            "compile() received neither a list nor a string for its sources argument."
        )
    if len(sources) == 0:
        raise InvalidConfiguration("compile() received an empty list of sources.")
    normalized = []
    for source in sources:
        if not isinstance(source, (str, os.PathLike)):
            raise InvalidConfiguration(
                f"compile() received a non-path entry in its sources argument: {source!r}"
            )
        normalized.append(os.fspath(source))
    return normalized


def compiler_args_from_options(options: CompilerOptions) -> List[str]:
    """Build the flag tokens for the given options.

    Only truthy values produce tokens. Flags come out in a fixed order, and the runtime
    options block, if any, is always last.
    """
    args: List[str] = []
    for option, to_tokens in _FLAG_TOKENS.items():
        value = getattr(options, option.value)
        if value:
            args.extend(to_tokens(value))
    if options.runtime_options:
        args.append(RTS_START)
        args.extend(options.runtime_options)
        args.append(RTS_END)
    return args


def build_process_args(
    sources: Sources, options: Union[CompilerOptions, Mapping[str, Any], None] = None
) -> List[str]:
    """Build the full argument list passed to the compiler executable.

    Parameters
    ----------
    sources : str, os.PathLike or a sequence of them
        The Elm source files to compile.
    options : CompilerOptions or Mapping[str, Any], optional
        The compiler options.

    Returns
    -------
    List[str]
        ``["make", *sources, *flags]``.

    Examples
    --------
    >>> build_process_args("a.elm", {"runtime_options": ["-A128M", "-H128M", "-n8m"]})
    ['make', 'a.elm', '+RTS', '-A128M', '-H128M', '-n8m', '-RTS']
    """
    validated = validate_options(options)
    return [SUBCOMMAND, *normalize_sources(sources), *compiler_args_from_options(validated)]
