"""Error taxonomy for compiler invocation and spawn-error classification."""

from __future__ import annotations

import errno
import json
from typing import Optional


class ElmCompilerError(RuntimeError):
    """Base class for every error raised by elm-compiler."""


class InvalidConfiguration(ElmCompilerError, ValueError):
    """Raised when the sources or options of an invocation are malformed."""


class UnrecognizedOption(InvalidConfiguration):
    """Raised when an option name is not in the recognized set."""

    def __init__(self, option: str) -> None:
        super().__init__(f"elm-compiler was given an unrecognized Elm compiler option: {option}")
        self.option = option


class RemovedOption(InvalidConfiguration):
    """Raised for options that existed in an earlier compiler protocol and were removed."""

    def __init__(self, option: str) -> None:
        super().__init__(
            f"elm-compiler received the `{option}` option, but that was removed in Elm 0.19. "
            f"Try re-running without passing the `{option}` option."
        )
        self.option = option


class RenamedOption(InvalidConfiguration):
    """Raised for options that were renamed; the message names the replacement."""

    def __init__(self, option: str, replacement: str) -> None:
        super().__init__(
            f"elm-compiler received the `{option}` option, but that was renamed to "
            f"`{replacement}` in Elm 0.19. Try re-running after renaming the parameter to "
            f"`{replacement}`."
        )
        self.option = option
        self.replacement = replacement


class SpawnInvocationError(ElmCompilerError, TypeError):
    """Raised when the bound process executor cannot be used to start a process."""


class SpawnFailure(ElmCompilerError):
    """Raised when the operating system could not start the compiler (or the JS host)."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class CompilationFailed(ElmCompilerError):
    """Raised when the compiler ran but exited with a non-zero status.

    The combined stdout/stderr text of the run is kept on ``output``.
    """

    def __init__(self, output: str, exit_code: Optional[int]) -> None:
        super().__init__("Compilation failed\n" + output)
        self.output = output
        self.exit_code = exit_code


class ModuleNotFound(ElmCompilerError, LookupError):
    """Raised when a dotted module name cannot be resolved inside a loaded artifact."""

    def __init__(self, module_name: str, segment: str) -> None:
        super().__init__(
            f"Could not find module `{module_name}` in the compiled artifact "
            f"(no export named `{segment}`)"
        )
        self.module_name = module_name
        self.segment = segment


class WorkerBootstrapError(ElmCompilerError):
    """Raised when the JS host fails to evaluate an artifact or to start a module."""


def classify_spawn_error(
    err: BaseException, path_to_elm: str, program: str = "Elm compiler"
) -> str:
    """Turn a low-level spawn failure into a message a user can act on.

    The result is advisory text only; callers decide what to raise.

    Parameters
    ----------
    err : BaseException
        The error raised while starting the process.
    path_to_elm : str
        The executable that was being started.
    program : str, optional
        Human name of the executable, used in the message. Default is "Elm compiler".

    Returns
    -------
    str
        The classified message.
    """
    code = getattr(err, "errno", None)
    if isinstance(code, int):
        if code == errno.ENOENT:
            return f'Could not find {program} "{path_to_elm}". Is it installed?'
        if code == errno.EACCES:
            return (
                f'{program} "{path_to_elm}" did not have permission to run. '
                "Do you need to give it executable permissions?"
            )
        return f'Error attempting to run {program} "{path_to_elm}":\n{err}'
    message = str(err)
    if message:
        return json.dumps(message)
    return f"Exception thrown when attempting to run {program} {json.dumps(path_to_elm)}"
