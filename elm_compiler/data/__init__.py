from .options import CompilerOption, CompilerOptions
from .utils import BaseModelWithDocstrings, PathString

__all__ = [
    "BaseModelWithDocstrings",
    "CompilerOption",
    "CompilerOptions",
    "PathString",
]
