"""Declaration model for parsed smali classes.

A ``Class`` owns the fields, methods and constructors declared in one file.
Fields and methods compute a *member identifier* (``name:Type`` and
``name(params)ret``) that, prefixed by the owner descriptor and ``->``, is the
exact text smali uses to reference them from other classes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from lsprotocol import types as lsp

CONSTRUCTOR_NAMES = frozenset({"<init>", "<clinit>"})


def range_contains(range: lsp.Range, position: lsp.Position) -> bool:
    """Inclusive containment check, matching editor word ranges."""
    start = (range.start.line, range.start.character)
    end = (range.end.line, range.end.character)
    return start <= (position.line, position.character) <= end


@dataclass
class Name:
    """A token's literal text plus its exact source range."""

    text: str
    range: lsp.Range

    def contains(self, position: lsp.Position) -> bool:
        return range_contains(self.range, position)


@dataclass
class Type(Name):
    """A type descriptor token: primitive, ``L...;`` class, or array."""

    @property
    def identifier(self) -> str:
        return self.text


@dataclass
class Field:
    name: Name
    type: Type
    modifiers: list[str] = field(default_factory=list)

    def identifier(self, name: str | None = None) -> str:
        """Member identifier, optionally with ``name`` substituted."""
        return f"{name if name is not None else self.name.text}:{self.type.identifier}"

    def equal(self, other: Field) -> bool:
        return self.identifier() == other.identifier()


@dataclass
class Method:
    name: Name
    parameters: list[Type]
    return_type: Type
    modifiers: list[str] = field(default_factory=list)

    @property
    def is_constructor(self) -> bool:
        return self.name.text in CONSTRUCTOR_NAMES

    @property
    def signature(self) -> str:
        params = "".join(p.identifier for p in self.parameters)
        return f"({params}){self.return_type.identifier}"

    def identifier(self, name: str | None = None) -> str:
        """Member identifier, optionally with ``name`` substituted."""
        return f"{name if name is not None else self.name.text}{self.signature}"

    def equal(self, other: Method) -> bool:
        return self.identifier() == other.identifier()


@dataclass
class Class:
    """One parsed smali class; ``path`` follows file renames in place."""

    text: str
    path: Path
    name: Type
    super_class: Type | None = None
    interfaces: list[Type] = field(default_factory=list)
    fields: list[Field] = field(default_factory=list)
    methods: list[Method] = field(default_factory=list)
    constructors: list[Method] = field(default_factory=list)

    @property
    def identifier(self) -> str:
        return self.name.identifier

    def find_fields(self, target: Field) -> list[Field]:
        return [f for f in self.fields if target.equal(f)]

    def find_methods(self, target: Method) -> list[Method]:
        candidates = self.constructors if target.is_constructor else self.methods
        return [m for m in candidates if target.equal(m)]


def qualified(owner: str, member_identifier: str) -> str:
    """Qualified reference text, e.g. ``Lpkg/Holder;->count:I``."""
    return f"{owner}->{member_identifier}"
