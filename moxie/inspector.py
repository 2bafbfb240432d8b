"""Build component types from Python classes."""

import inspect
import logging
import typing
from typing import Annotated, Any

from moxie.errors import GenerationError, UnsupportedSignatureError
from moxie.models import (
    EMPTY,
    Component,
    ComponentType,
    MethodSignature,
    Parameter,
    ParamKind,
)

logger = logging.getLogger(__name__)

_KINDS = {
    inspect.Parameter.POSITIONAL_ONLY: ParamKind.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD: ParamKind.POSITIONAL,
    inspect.Parameter.VAR_POSITIONAL: ParamKind.VARIADIC,
    inspect.Parameter.KEYWORD_ONLY: ParamKind.KEYWORD_ONLY,
    inspect.Parameter.VAR_KEYWORD: ParamKind.VAR_KEYWORD,
}

# Set on every function moxie installs, so re-inspection ignores them.
PROXY_MARKER = "__moxie_proxy__"


class _EmbedMarker:
    def __repr__(self) -> str:
        return "EMBED"


EMBED = _EmbedMarker()


class Embed:
    """Annotation marking an attribute as an embedded component.

    Methods of the embedded class become reachable through the outer class::

        @mockable
        class S3Client:
            client: Embed[BotoClient]

            def __init__(self, client):
                self.client = client

    ``Embed[X]`` is ``Annotated[X, EMBED]``.
    """

    def __class_getitem__(cls, item):
        return Annotated[item, EMBED]


def component_type(cls: type) -> ComponentType:
    """Describe a class and everything it embeds as a ComponentType.

    Each class maps to one ComponentType, so a class embedding itself
    (directly or not) produces a cyclic graph that resolve() rejects.

    Args:
        cls: The class to describe

    Returns:
        ComponentType for cls

    Raises:
        GenerationError: If embedded annotations cannot be evaluated
        UnsupportedSignatureError: If a method has no receiver parameter
    """
    return _build(cls, {})


def _build(cls: type, seen: dict[type, ComponentType]) -> ComponentType:
    if cls in seen:
        return seen[cls]

    ctype = ComponentType(name=cls.__qualname__)
    seen[cls] = ctype
    ctype.methods, ctype.own_names = _declared_members(cls)
    for attr, inner in _embedded_fields(cls):
        ctype.own_names.add(attr)
        ctype.components.append(Component(name=attr, type=_build(inner, seen)))

    logger.debug(
        f"Inspected {ctype.name}: {len(ctype.methods)} methods, "
        f"{len(ctype.components)} components"
    )
    return ctype


def _declared_members(cls: type) -> tuple[list[MethodSignature], set[str]]:
    """Public members of cls, including those inherited from its bases.

    Returns:
        The instance methods, and the names of every other public member
        (static and class methods, properties, plain attributes)
    """
    methods = []
    others: set[str] = set()
    seen: set[str] = set()

    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, value in vars(klass).items():
            if getattr(value, PROXY_MARKER, None):
                continue
            if name in seen:
                continue
            seen.add(name)
            if name.startswith("_"):
                continue
            # staticmethod, classmethod and property objects are not
            # functions.
            if inspect.isfunction(value):
                methods.append(method_signature(value))
            else:
                others.add(name)

    return methods, others


def _embedded_fields(cls: type) -> list[tuple[str, type]]:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as e:
        raise GenerationError(
            f"cannot evaluate annotations of {cls.__qualname__}: {e}",
            component=cls.__qualname__,
        ) from e

    fields = []
    for attr, hint in hints.items():
        if typing.get_origin(hint) is not Annotated:
            continue
        if not any(m is EMBED for m in hint.__metadata__):
            continue
        inner = typing.get_args(hint)[0]
        if not isinstance(inner, type):
            raise GenerationError(
                f"{cls.__qualname__}.{attr}: embedded component must be a class, "
                f"got {inner!r}",
                component=cls.__qualname__,
            )
        fields.append((attr, inner))
    return fields


def method_signature(func: Any) -> MethodSignature:
    """Describe a plain function defined in a class body.

    Args:
        func: The function object (not bound)

    Returns:
        MethodSignature with the receiver parameter removed
    """
    sig = inspect.signature(func)
    params = list(sig.parameters.values())

    if not params or params[0].kind not in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        raise UnsupportedSignatureError(
            f"{func.__qualname__} has no receiver parameter",
            method=func.__name__,
        )

    parameters = tuple(
        Parameter(
            name=p.name,
            type=type_text(p.annotation),
            kind=_KINDS[p.kind],
            default=p.default,
        )
        for p in params[1:]
    )

    return MethodSignature(
        name=func.__name__,
        parameters=parameters,
        results=result_types(sig.return_annotation),
        is_async=inspect.iscoroutinefunction(func),
        doc=inspect.getdoc(func),
    )


def type_text(annotation: Any) -> str:
    """Render an annotation as source-like text."""
    if annotation is EMPTY:
        return "Any"
    if isinstance(annotation, str):
        return annotation
    if annotation is None or annotation is type(None):
        return "None"
    if isinstance(annotation, type) and not typing.get_args(annotation):
        return annotation.__qualname__
    return repr(annotation).replace("typing.", "")


def result_types(annotation: Any) -> tuple[str, ...]:
    """Split a return annotation into the method's result types.

    ``None`` means no results and ``tuple[A, B]`` means two results. A
    missing annotation is a single ``Any`` result.
    """
    if annotation is EMPTY:
        return ("Any",)
    if annotation is None or annotation is type(None) or annotation == "None":
        return ()

    if isinstance(annotation, str):
        text = annotation.strip()
        if text.startswith(("tuple[", "Tuple[")) and text.endswith("]"):
            items = split_top_level(text[text.index("[") + 1 : -1])
            if items and "..." not in items and items != ["()"]:
                return tuple(items)
        return (text,)

    if typing.get_origin(annotation) is tuple:
        args = typing.get_args(annotation)
        if args and Ellipsis not in args:
            return tuple(type_text(a) for a in args)

    return (type_text(annotation),)


def split_top_level(text: str) -> list[str]:
    """Split on commas that are not nested inside brackets."""
    items = []
    current = ""
    depth = 0

    for char in text:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        if char == "," and depth == 0:
            if current.strip():
                items.append(current.strip())
            current = ""
        else:
            current += char

    if current.strip():
        items.append(current.strip())

    return items
