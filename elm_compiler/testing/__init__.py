"""Test doubles for the compiler process and the JS host."""

from .executors import FakeAsyncExecutor, FakeSyncExecutor
from .loader import StubArtifactLoader, StubModule

__all__ = [
    "FakeAsyncExecutor",
    "FakeSyncExecutor",
    "StubArtifactLoader",
    "StubModule",
]
