"""
Schema base class for run configuration.

A config hashes to a content id, so two batch runs with the same
parameters carry the same id in their RunLog and report.
"""

from __future__ import annotations

import copy
import hashlib
import json
from dataclasses import asdict, dataclass
from typing import Any


def _canon(value: Any):
    """JSON-ready form of a config value; sets become sorted lists."""
    if isinstance(value, dict):
        return {str(k): _canon(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canon(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_canon(v) for v in value)
    return value


def content_id(config: dict, digest_bytes: int = 16) -> str:
    """blake2b hex digest of the canonical JSON of ``config``."""
    payload = json.dumps(_canon(config), sort_keys=True, separators=(",", ":"))
    digest = hashlib.blake2b(payload.encode("utf-8"), digest_size=digest_bytes)
    return digest.hexdigest()


@dataclass
class SchemaClass:
    """
    Dataclass base with value semantics.

    Every assignment stores a deep copy, so a config handed to the
    orchestrator cannot be mutated from the outside mid-run.
    """

    def get_id(self) -> str:
        return content_id(self.to_dict())

    @property
    def short_id(self) -> str:
        return self.get_id()[:12]

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), indent=4)

    def __setattr__(self, name, value):
        super().__setattr__(name, copy.deepcopy(value))
