"""Worker mode: run a compiled module headless and talk to it through its ports."""

from .bootstrap import compile_worker
from .loader import ArtifactLoader, ModuleFactory, ModuleRegistry, lookup
from .node import NodeArtifactLoader
from .ports import InboundPort, OutboundPort, Ports, WorkerHandle

__all__ = [
    "ArtifactLoader",
    "InboundPort",
    "ModuleFactory",
    "ModuleRegistry",
    "NodeArtifactLoader",
    "OutboundPort",
    "Ports",
    "WorkerHandle",
    "compile_worker",
    "lookup",
]
