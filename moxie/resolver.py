"""Resolve the set of methods a composed component type must proxy."""

import logging

from moxie.errors import AmbiguousCompositionError, CyclicCompositionError
from moxie.models import ComponentType, ResolvedMethod, ResolvedMethodSet

logger = logging.getLogger(__name__)


def resolve(component: ComponentType, strict: bool = False) -> ResolvedMethodSet:
    """Compute the methods reachable through a component's composition.

    Walks the composition breadth-first from depth 1. A name found at exactly
    one place at its shallowest depth is resolved there; a name found at
    several places at that depth is ambiguous and excluded. Either way the
    name is settled and deeper occurrences are ignored. Names declared by the
    component itself (depth 0), methods or any other public member, are never
    proxied and shadow everything below.

    Args:
        component: The outer component type
        strict: Raise instead of dropping ambiguous names

    Returns:
        ResolvedMethodSet ordered by depth, then by declaration order

    Raises:
        CyclicCompositionError: If the composition graph has a cycle
        AmbiguousCompositionError: If strict and any name is ambiguous
    """
    _check_acyclic(component)

    shadowed = {m.name for m in component.methods} | component.own_names
    methods: dict[str, ResolvedMethod] = {}
    ambiguous: list[str] = []

    level = [((c.name,), c.type) for c in component.components]
    depth = 1

    while level:
        found: dict[str, dict[tuple[str, ...], ResolvedMethod]] = {}
        for path, ctype in level:
            for sig in ctype.methods:
                if sig.name in shadowed:
                    continue
                providers = found.setdefault(sig.name, {})
                providers.setdefault(
                    path,
                    ResolvedMethod(
                        signature=sig, depth=depth, origin=path, declared_by=ctype.name
                    ),
                )

        for name, providers in found.items():
            if len(providers) == 1:
                methods[name] = next(iter(providers.values()))
            else:
                origins = ", ".join(".".join(p) for p in providers)
                logger.warning(
                    f"{component.name}.{name} is ambiguous at depth {depth} "
                    f"({origins}); not proxied"
                )
                ambiguous.append(name)
            shadowed.add(name)

        level = [
            (path + (c.name,), c.type) for path, ctype in level for c in ctype.components
        ]
        depth += 1

    if strict and ambiguous:
        raise AmbiguousCompositionError(tuple(ambiguous), component=component.name)

    logger.info(
        f"Resolved {len(methods)} methods for {component.name}"
        + (f" ({len(ambiguous)} ambiguous)" if ambiguous else "")
    )
    return ResolvedMethodSet(
        component=component.name, methods=methods, ambiguous=tuple(ambiguous)
    )


def _check_acyclic(root: ComponentType) -> None:
    """Reject composition graphs in which a type embeds itself."""
    done: set[int] = set()
    stack: list[ComponentType] = []

    def visit(ctype: ComponentType) -> None:
        if id(ctype) in done:
            return
        for i, entered in enumerate(stack):
            if entered is ctype:
                cycle = tuple(t.name for t in stack[i:]) + (ctype.name,)
                raise CyclicCompositionError(cycle, component=root.name)
        stack.append(ctype)
        for child in ctype.components:
            visit(child.type)
        stack.pop()
        done.add(id(ctype))

    visit(root)
