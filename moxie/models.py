"""Data models for component types and resolved method sets."""

import enum
import inspect
import json
from dataclasses import dataclass, field
from typing import Any

EMPTY = inspect.Parameter.empty


class ParamKind(enum.Enum):
    """How a parameter receives its argument."""

    POSITIONAL_ONLY = "positional_only"
    POSITIONAL = "positional"
    VARIADIC = "variadic"  # *args
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"  # **kwargs


@dataclass(frozen=True)
class Parameter:
    """A single method parameter."""

    name: str
    type: str = "Any"
    kind: ParamKind = ParamKind.POSITIONAL
    default: Any = EMPTY

    @property
    def variadic(self) -> bool:
        return self.kind is ParamKind.VARIADIC

    @property
    def has_default(self) -> bool:
        return self.default is not EMPTY


@dataclass(frozen=True)
class MethodSignature:
    """A method as seen from outside its class, receiver excluded."""

    name: str
    parameters: tuple[Parameter, ...] = ()
    results: tuple[str, ...] = ()
    is_async: bool = False
    mutates_receiver: bool = False  # not used for proxying
    doc: str | None = field(default=None, compare=False)

    @property
    def variadic(self) -> bool:
        return any(p.variadic for p in self.parameters)

    @property
    def result_count(self) -> int:
        return len(self.results)

    def describe(self) -> str:
        """Render as ``name(a, *rest) -> tuple[A, B]`` for logs and JSON."""
        params = []
        for p in self.parameters:
            prefix = {ParamKind.VARIADIC: "*", ParamKind.VAR_KEYWORD: "**"}.get(
                p.kind, ""
            )
            params.append(f"{prefix}{p.name}: {p.type}")
        if not self.results:
            returns = "None"
        elif len(self.results) == 1:
            returns = self.results[0]
        else:
            returns = f"tuple[{', '.join(self.results)}]"
        prefix = "async " if self.is_async else ""
        return f"{prefix}{self.name}({', '.join(params)}) -> {returns}"


@dataclass(eq=False)
class Component:
    """A nested component reached through an attribute of its parent."""

    name: str
    type: "ComponentType"


@dataclass(eq=False)
class ComponentType:
    """A type composed of nested components plus its own methods.

    Compared by identity: two distinct definitions with the same name are
    different types, and the graph may contain cycles until it is resolved.
    """

    name: str
    methods: list[MethodSignature] = field(default_factory=list)
    components: list[Component] = field(default_factory=list)
    # Public non-method members (class and static methods, properties,
    # attributes, embedded fields). They shadow promoted methods too.
    own_names: set[str] = field(default_factory=set)

    def embed(self, name: str, component_type: "ComponentType") -> "ComponentType":
        """Append a nested component and return self for chaining."""
        self.components.append(Component(name=name, type=component_type))
        return self

    def method(self, name: str) -> MethodSignature | None:
        return next((m for m in self.methods if m.name == name), None)


@dataclass(frozen=True)
class ResolvedMethod:
    """A method reachable through composition and eligible for proxying."""

    signature: MethodSignature
    depth: int
    origin: tuple[str, ...]  # attribute path to the declaring component
    declared_by: str

    @property
    def name(self) -> str:
        return self.signature.name

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "depth": self.depth,
            "origin": ".".join(self.origin),
            "declared_by": self.declared_by,
            "signature": self.signature.describe(),
        }


@dataclass
class ResolvedMethodSet:
    """The canonical set of proxied methods of one component type."""

    component: str
    methods: dict[str, ResolvedMethod] = field(default_factory=dict)
    ambiguous: tuple[str, ...] = ()

    def __contains__(self, name: object) -> bool:
        return name in self.methods

    def __getitem__(self, name: str) -> ResolvedMethod:
        return self.methods[name]

    def __iter__(self):
        return iter(self.methods.values())

    def __len__(self) -> int:
        return len(self.methods)

    def names(self) -> list[str]:
        return list(self.methods)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "component": self.component,
            "methods": [m.to_dict() for m in self.methods.values()],
            "ambiguous": list(self.ambiguous),
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)
