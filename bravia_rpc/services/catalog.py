"""
Bravia RPC - Method Catalog

Discovered (name, version) pairs for one endpoint, kept in discovery order.
"Latest" version of a method means last discovered, never numerically greatest.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union


@dataclass(frozen=True)
class ScalarParam:
    """Parameter described by a bare type name, e.g. ``"string"``."""
    type_name: str
    kind: str = field(default="scalar", init=False)

    @property
    def names(self) -> List[str]:
        return [self.type_name]

    def to_dict(self) -> Any:
        return self.type_name


@dataclass(frozen=True)
class ObjectParam:
    """Parameter described by a JSON object; ``repeated`` for arrays of objects."""
    fields: Dict[str, Any]
    repeated: bool = False
    kind: str = field(default="object", init=False)

    @property
    def names(self) -> List[str]:
        return list(self.fields)

    def to_dict(self) -> Any:
        return {"fields": dict(self.fields), "repeated": self.repeated}


Param = Union[ScalarParam, ObjectParam]


def decode_param(raw: Any) -> Param:
    """Decode one parameter descriptor as reported by ``getMethodTypes``."""
    if isinstance(raw, dict):
        return ObjectParam(fields=raw)
    text = str(raw)
    if not text.startswith("{"):
        return ScalarParam(text)

    repeated = text.endswith("*")
    body = text[:-1] if repeated else text
    try:
        fields = json.loads(body)
    except json.JSONDecodeError:
        return ScalarParam(text)
    if not isinstance(fields, dict):
        return ScalarParam(text)
    return ObjectParam(fields=fields, repeated=repeated)


@dataclass
class MethodDescriptor:
    """One remote method at one version."""
    name: str
    version: str
    inputs: List[Param] = field(default_factory=list)
    outputs: List[Param] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: List[Any]) -> "MethodDescriptor":
        """Build from a ``[name, in, out, version]`` row; name first, version last."""
        inputs: List[Param] = []
        outputs: List[Param] = []
        if len(row) >= 4:
            inputs = [decode_param(p) for p in row[1] or []]
            outputs = [decode_param(p) for p in row[2] or []]
        return cls(name=row[0], version=str(row[-1]), inputs=inputs, outputs=outputs)

    def to_dict(self) -> dict:
        return {
            "method": self.name,
            "version": self.version,
            "in": [p.to_dict() for p in self.inputs],
            "out": [p.to_dict() for p in self.outputs],
        }


class ServiceCatalog:
    """Method name -> descriptors in discovery order."""

    def __init__(self):
        self._entries: Dict[str, List[MethodDescriptor]] = {}
        self._order: List[MethodDescriptor] = []

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[MethodDescriptor]:
        return iter(self._order)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def add(self, descriptor: MethodDescriptor) -> bool:
        """Record a descriptor; a repeated (name, version) pair is ignored."""
        versions = self._entries.setdefault(descriptor.name, [])
        if any(d.version == descriptor.version for d in versions):
            return False
        versions.append(descriptor)
        self._order.append(descriptor)
        return True

    def lookup(self, name: str) -> List[MethodDescriptor]:
        return list(self._entries.get(name, []))

    def resolve(self, name: str, version: str) -> Optional[MethodDescriptor]:
        """Exact version match, else the latest discovered version, else None."""
        versions = self._entries.get(name)
        if not versions:
            return None
        for descriptor in versions:
            if descriptor.version == version:
                return descriptor
        return versions[-1]

    def methods(self, version: Optional[str] = None) -> List[MethodDescriptor]:
        return [d for d in self if version is None or d.version == version]

    def clear(self) -> None:
        self._entries.clear()
        self._order.clear()
