import os
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict


def _fspath(value: Any) -> Any:
    """Convert path-like objects to ``str`` and leave everything else to pydantic."""
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    return value


PathString = Annotated[str, BeforeValidator(_fspath)]
"""A filesystem path stored as ``str``. ``pathlib.Path`` values are accepted on input."""


class BaseModelWithDocstrings(BaseModel):
    """Base model with the attribute docstrings being extracted to the model JSON schema.

    Unknown fields are rejected so that a misspelled option never passes silently.
    """

    model_config = ConfigDict(use_attribute_docstrings=True, extra="forbid")
