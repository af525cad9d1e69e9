"""Packaged resources for commandbridge."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict

from jsonschema import Draft202012Validator

__all__ = ["load_schema", "schema_validator"]


@lru_cache(maxsize=None)
def load_schema(name: str) -> Dict[str, Any]:
    """Return a JSON schema shipped with the package."""

    resource = resources.files(__name__) / name
    with resource.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@lru_cache(maxsize=None)
def schema_validator(name: str) -> Draft202012Validator:
    return Draft202012Validator(load_schema(name))
