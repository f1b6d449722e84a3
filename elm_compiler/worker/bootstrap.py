"""Compile an Elm module and start it in worker mode."""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional, Union

from elm_compiler.compile.capture import TempFileScope, compile_to_string
from elm_compiler.compile.executor import ProcessExecutor
from elm_compiler.data import CompilerOption, CompilerOptions
from elm_compiler.logging import ensure_console_logging, get_logger

from .loader import ArtifactLoader
from .node import NodeArtifactLoader
from .ports import WorkerHandle

logger = get_logger("Worker")


def _worker_options(
    project_root: Union[str, os.PathLike],
    options: Union[CompilerOptions, Mapping[str, Any], None],
) -> dict:
    if isinstance(options, CompilerOptions):
        merged = options.model_dump(exclude_none=True)
    else:
        merged = dict(options or {})
    merged[CompilerOption.CWD.value] = os.fspath(project_root)
    # Worker mode needs a script artifact, whatever output kind was requested.
    merged.pop(CompilerOption.OUTPUT.value, None)
    return merged


async def compile_worker(
    project_root: Union[str, os.PathLike],
    entry_path: Union[str, os.PathLike],
    module_name: str,
    flags: Any = None,
    *,
    options: Union[CompilerOptions, Mapping[str, Any], None] = None,
    executor: Optional[ProcessExecutor] = None,
    loader: Optional[ArtifactLoader] = None,
) -> WorkerHandle:
    """Compile ``entry_path`` and instantiate ``module_name`` from it in worker mode.

    Parameters
    ----------
    project_root : str or os.PathLike
        Directory containing ``elm.json``; the compiler runs there.
    entry_path : str or os.PathLike
        The Elm source file to compile.
    module_name : str
        Dotted name of the module to instantiate, e.g. "Workers.Counter".
    flags : Any, optional
        Initialization data for the module. Must be JSON-serializable.
    options : CompilerOptions or Mapping[str, Any], optional
        Extra compiler options. ``cwd`` and ``output`` are overridden.
    executor : ProcessExecutor, optional
        A non-blocking executor for the compiler. Defaults to ``AsyncProcessExecutor``.
    loader : ArtifactLoader, optional
        The host runtime the artifact is evaluated in. Defaults to ``NodeArtifactLoader``.

    Returns
    -------
    WorkerHandle
        The running module. Subscribe to its outbound ports before awaiting anything else
        to see every value it publishes.

    Raises
    ------
    CompilationFailed
        If the module does not compile.
    ModuleNotFound
        If ``module_name`` is not exported by the artifact.
    WorkerBootstrapError
        If the host runtime cannot evaluate the artifact or start the module.

    Examples
    --------
    >>> worker = await compile_worker("app", "app/src/Counter.elm", "Counter", {"start": 1})
    >>> worker.ports.count.subscribe(print)
    >>> worker.ports.increment.send(None)
    """
    loader = loader if loader is not None else NodeArtifactLoader()
    compile_options = _worker_options(project_root, options)

    with TempFileScope(prefix="elm_worker_") as scope:
        script = await compile_to_string(
            entry_path, compile_options, executor=executor, scope=scope
        )

    registry = await loader.load(script)
    try:
        factory = loader.lookup(registry, module_name)
        worker = await factory.init(flags)
    except BaseException:
        await registry.close()
        raise
    if compile_options.get(CompilerOption.VERBOSE.value):
        ensure_console_logging()
        logger.info("Started worker %s with ports %s", module_name, list(worker.ports))
    return worker
