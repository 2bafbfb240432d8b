"""Render the generated control surface as Python stub source."""

import inspect
import logging

from moxie.models import ResolvedMethodSet
from moxie.synthesizer import ProxySpec, build_specs

logger = logging.getLogger(__name__)


def render_surface(resolved: ResolvedMethodSet, source: str | None = None) -> str:
    """Render a stub module describing proxies and their controls.

    Moxie installs these methods at runtime; the stub lets reviewers and type
    checkers see them. All signatures are validated before any text is
    produced.

    Args:
        resolved: The resolved method set
        source: Where the component came from, e.g. ``pkg.mod:Client``

    Returns:
        Stub file content as a string

    Raises:
        UnsupportedSignatureError: If any method cannot be proxied
    """
    specs = build_specs(resolved)
    logger.info(f"Rendering surface of {resolved.component} ({len(specs)} methods)")

    origin = f" from {source}" if source else ""
    lines = [
        f"# Code generated by moxie{origin}. DO NOT EDIT.",
        f'"""Mock control surface of {resolved.component}."""',
        "",
        "from collections.abc import Callable",
        "from typing import Any, NamedTuple",
    ]

    for spec in specs:
        lines.extend(["", ""])
        lines.extend(_render_record(spec))

    class_name = resolved.component.rsplit(".", 1)[-1]
    lines.extend(["", "", f"class {class_name}:"])
    if resolved.ambiguous:
        lines.append(f"    # ambiguous, not proxied: {', '.join(resolved.ambiguous)}")
    if not specs:
        lines.append("    pass")

    for i, spec in enumerate(specs):
        if i:
            lines.append("")
        lines.extend(_render_methods(spec))

    lines.append("")
    return "\n".join(lines)


def _render_record(spec: ProxySpec) -> list[str]:
    lines = [f"class {spec.record_type.__name__}(NamedTuple):"]
    params = list(spec.signature.parameters.values())
    if not params:
        lines.append("    pass")

    for field, param in zip(spec.record_type._fields, params, strict=True):
        annotation = param.annotation
        if param.kind is param.VAR_POSITIONAL:
            annotation = f"tuple[{annotation}, ...]"
        elif param.kind is param.VAR_KEYWORD:
            annotation = f"dict[str, {annotation}]"
        lines.append(f"    {field}: {annotation}")
    return lines


def _render_methods(spec: ProxySpec) -> list[str]:
    method = spec.method
    prefix = "async def" if spec.is_async else "def"
    params = _render_params(spec.signature)
    returns = spec.signature.return_annotation
    record = spec.record_type.__name__
    callable_type = "Callable[..., Any] | None"

    return [
        f"    # {'.'.join(method.origin)}.{spec.name} "
        f"({method.declared_by}, depth {method.depth})",
        f"    {prefix} {spec.name}({params}) -> {returns}: ...",
        f"    def {spec.control_name('stub')}(self) -> None: ...",
        f"    def {spec.control_name('do')}(self, fake: {callable_type}) -> None: ...",
        f"    def {spec.control_name('return')}(self, *values: Any) -> None: ...",
        f"    def {spec.control_name('calls')}(self) -> list[{record}]: ...",
    ]


def _render_params(signature: inspect.Signature) -> str:
    """Render parameters after ``self``, with ``/`` and ``*`` markers."""
    rendered = ["self"]
    params = list(signature.parameters.values())
    has_var_positional = any(p.kind is p.VAR_POSITIONAL for p in params)
    star_written = False

    for i, p in enumerate(params):
        if p.kind is p.KEYWORD_ONLY and not has_var_positional and not star_written:
            rendered.append("*")
            star_written = True

        text = f"{p.name}: {p.annotation}"
        if p.kind is p.VAR_POSITIONAL:
            text = "*" + text
        elif p.kind is p.VAR_KEYWORD:
            text = "**" + text
        if p.default is not p.empty:
            text += " = ..."
        rendered.append(text)

        next_kind = params[i + 1].kind if i + 1 < len(params) else None
        if p.kind is p.POSITIONAL_ONLY and next_kind is not p.POSITIONAL_ONLY:
            rendered.append("/")

    return ", ".join(rendered)
