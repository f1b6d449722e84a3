import asyncio
import subprocess
import sys

import pytest

from elm_compiler.compile import (
    AsyncProcessExecutor,
    CompletedRun,
    InvalidConfiguration,
    ProcessHandle,
    SpawnFailure,
    SpawnInvocationError,
    SyncProcessExecutor,
    compile,
    compile_sync,
    invoke,
    process_options,
)
from elm_compiler.testing import FakeAsyncExecutor, FakeSyncExecutor


def test_compile_sync_runs_make_with_sources_and_flags(tmp_path):
    executor = FakeSyncExecutor(chunks=[("stdout", "Success!\n")])
    run = compile_sync(
        ["Main.elm", "Other.elm"],
        {"path_to_elm": "/opt/elm", "cwd": tmp_path, "optimize": True},
        executor=executor,
    )
    assert isinstance(run, CompletedRun)
    assert run.exit_code == 0
    assert run.stdout == "Success!\n"
    (call,) = executor.calls
    assert call["command"] == "/opt/elm"
    assert call["args"] == ["make", "Main.elm", "Other.elm", "--optimize"]
    assert call["cwd"] == str(tmp_path)


def test_compile_sync_nonzero_exit_is_not_an_error():
    executor = FakeSyncExecutor(exit_code=1, chunks=[("stderr", "-- PARSE ERROR --\n")])
    run = compile_sync("Bad.elm", executor=executor)
    assert run.exit_code == 1
    assert run.stderr == "-- PARSE ERROR --\n"


def test_process_opts_passed_to_executor():
    executor = FakeSyncExecutor()
    compile_sync("Main.elm", {"process_opts": {"env": {"HOME": "/tmp"}}}, executor=executor)
    assert executor.calls[0]["process_opts"] == {"env": {"HOME": "/tmp"}}


def test_verbose_logs_invocation(package_logs):
    executor = FakeSyncExecutor()
    compile_sync("Main.elm", {"verbose": True, "path_to_elm": "elm"}, executor=executor)
    assert "Running elm make Main.elm" in package_logs.text


def test_quiet_by_default(package_logs):
    compile_sync("Main.elm", {"path_to_elm": "elm"}, executor=FakeSyncExecutor())
    assert "Running" not in package_logs.text


def test_configuration_error_raised_before_spawn():
    executor = FakeSyncExecutor()
    with pytest.raises(InvalidConfiguration):
        compile_sync("Main.elm", {"foo": "bar", "output": "/dev/null"}, executor=executor)
    assert executor.calls == []


def test_executor_without_execute_rejected():
    with pytest.raises(SpawnInvocationError):
        compile_sync("Main.elm", executor=object())


def test_wrong_executor_mode_rejected():
    with pytest.raises(SpawnInvocationError):
        compile_sync("Main.elm", executor=FakeAsyncExecutor())


@pytest.mark.asyncio
async def test_compile_requires_non_blocking_executor():
    with pytest.raises(SpawnInvocationError):
        await compile("Main.elm", executor=FakeSyncExecutor())


def test_spawn_error_is_classified():
    executor = FakeSyncExecutor(error=FileNotFoundError(2, "No such file or directory"))
    with pytest.raises(SpawnFailure) as exc_info:
        compile_sync("Main.elm", {"path_to_elm": "/nowhere/elm"}, executor=executor)
    assert str(exc_info.value) == 'Could not find Elm compiler "/nowhere/elm". Is it installed?'
    assert exc_info.value.path == "/nowhere/elm"
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_missing_compiler_with_real_executor(tmp_path):
    missing = str(tmp_path / "no-such-elm")
    with pytest.raises(SpawnFailure, match="Is it installed"):
        compile_sync("Main.elm", {"path_to_elm": missing})


def test_non_executable_compiler_with_real_executor(tmp_path):
    script = tmp_path / "elm"
    script.write_text("#!/bin/sh\nexit 0\n")
    script.chmod(0o644)
    with pytest.raises(SpawnFailure, match="did not have permission to run"):
        compile_sync("Main.elm", {"path_to_elm": str(script)})


@pytest.mark.asyncio
async def test_async_missing_compiler_surfaces_on_await(tmp_path):
    missing = str(tmp_path / "no-such-elm")
    processed = process_options("Main.elm", {"path_to_elm": missing}, AsyncProcessExecutor())
    pending = invoke(processed)
    with pytest.raises(SpawnFailure, match="Is it installed"):
        await pending


@pytest.mark.asyncio
async def test_compile_returns_live_handle():
    executor = FakeAsyncExecutor(
        exit_code=1, chunks=[("stdout", "Compiling ...\n"), ("stderr", "-- PARSE ERROR --\n")]
    )
    handle = await compile("Bad.elm", {"path_to_elm": "elm"}, executor=executor)
    assert isinstance(handle, ProcessHandle)
    assert handle.args == ["elm", "make", "Bad.elm"]
    assert await handle.wait() == 1
    assert handle.returncode == 1
    assert handle.output == "Compiling ...\n-- PARSE ERROR --\n"
    assert handle.stderr == "-- PARSE ERROR --\n"


@pytest.mark.asyncio
async def test_listeners_see_every_chunk_before_wait_returns():
    chunks = [("stdout", "one\n"), ("stderr", "two\n"), ("stdout", "three\n")]
    handle = await compile("Main.elm", executor=FakeAsyncExecutor(chunks=chunks))
    seen = []
    handle.add_listener(lambda stream, text: seen.append((stream, text)))
    assert await handle.wait() == 0
    assert seen == chunks
    assert handle.output == "one\ntwo\nthree\n"


@pytest.mark.asyncio
async def test_real_process_output_and_exit_code(make_script):
    script = make_script('echo "compiling $1 $2"\necho "oops" >&2\nexit 3\n')
    handle = await compile("Main.elm", {"path_to_elm": str(script)})
    assert await handle.wait() == 3
    assert handle.stdout == "compiling make Main.elm\n"
    assert handle.stderr == "oops\n"


def test_sync_executor_pipes_by_default(make_script):
    script = make_script('echo "out"\necho "err" >&2\n')
    run = SyncProcessExecutor().execute(str(script), ["make"])
    assert run.stdout == "out\n"
    assert run.stderr == "err\n"
    assert run.output == "out\nerr\n"


def test_sync_executor_merges_streams(make_script):
    script = make_script('echo "out"\necho "err" >&2\necho "again"\n')
    run = SyncProcessExecutor().execute(str(script), [], stderr=subprocess.STDOUT)
    assert run.stdout == "out\nerr\nagain\n"
    assert run.stderr == ""


@pytest.mark.asyncio
async def test_terminate_reports_abnormal_exit(make_script):
    script = make_script("exec sleep 30\n")
    handle = await compile("Main.elm", {"path_to_elm": str(script)})
    handle.terminate()
    assert await handle.wait() != 0



def test_rejected_spawn_arguments_are_classified(make_script):
    script = make_script("exit 0\n")
    with pytest.raises(SpawnFailure) as exc_info:
        compile_sync(
            "Main.elm", {"path_to_elm": str(script), "process_opts": {"capture_output": True}}
        )
    assert str(exc_info.value) == (
        '"stdout and stderr arguments may not be used with capture_output."'
    )
    assert isinstance(exc_info.value.__cause__, ValueError)


@pytest.mark.asyncio
async def test_async_rejected_spawn_arguments_are_classified(make_script):
    script = make_script("exit 0\n")
    with pytest.raises(SpawnFailure) as exc_info:
        await compile("Main.elm", {"path_to_elm": str(script), "process_opts": {"text": True}})
    assert exc_info.value.path == str(script)
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_spawn_error_without_message_is_classified():
    executor = FakeSyncExecutor(error=RuntimeError())
    with pytest.raises(SpawnFailure) as exc_info:
        compile_sync("Main.elm", {"path_to_elm": "elm"}, executor=executor)
    assert str(exc_info.value) == 'Exception thrown when attempting to run Elm compiler "elm"'



def _failing_on_stdout(stream, text):
    if stream == "stdout":
        raise RuntimeError("listener failed")


@pytest.mark.asyncio
async def test_listener_error_still_drains_and_awaits_process():
    chunks = [("stdout", "one\n"), ("stderr", "two\n"), ("stdout", "three\n")]
    handle = await compile("Main.elm", executor=FakeAsyncExecutor(exit_code=2, chunks=chunks))
    handle.add_listener(_failing_on_stdout)
    with pytest.raises(RuntimeError, match="listener failed"):
        await handle.wait()
    assert handle.returncode == 2
    assert handle.output == "one\ntwo\nthree\n"


@pytest.mark.asyncio
async def test_listener_error_with_large_real_output(make_script):
    # More output than a pipe buffer holds; the child only exits once it is all read.
    script = make_script(
        'i=0\nwhile [ $i -lt 5000 ]; do echo "line $i of compiler output"; i=$((i+1)); done\n'
        "echo done >&2\n"
    )
    handle = await compile("Main.elm", {"path_to_elm": str(script)})
    handle.add_listener(_failing_on_stdout)
    with pytest.raises(RuntimeError, match="listener failed"):
        await asyncio.wait_for(handle.wait(), 30)
    assert handle.returncode == 0
    assert handle.stderr == "done\n"
    assert handle.stdout.count("of compiler output") == 5000


if __name__ == "__main__":
    pytest.main(sys.argv)
