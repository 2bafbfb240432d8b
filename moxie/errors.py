"""Errors raised while generating mock proxies."""


class MoxieError(Exception):
    """Base class for moxie errors."""


class GenerationError(MoxieError):
    """Generation of proxies for a component failed.

    Raised before any function is installed or any source text is emitted.
    """

    def __init__(self, message: str, component: str | None = None):
        super().__init__(message)
        self.component = component


class CyclicCompositionError(GenerationError):
    """A component embeds itself, directly or through other components."""

    def __init__(self, cycle: tuple[str, ...], component: str | None = None):
        super().__init__(f"cyclic composition: {' -> '.join(cycle)}", component)
        self.cycle = cycle


class UnsupportedSignatureError(GenerationError):
    """A method cannot be proxied with its exact signature."""

    def __init__(self, message: str, method: str, component: str | None = None):
        super().__init__(message, component)
        self.method = method


class AmbiguousCompositionError(GenerationError):
    """Method names provided by several components at the same depth.

    Only raised in strict mode; by default ambiguous names are dropped.
    """

    def __init__(self, names: tuple[str, ...], component: str | None = None):
        where = f" in {component}" if component else ""
        super().__init__(
            f"ambiguous methods{where}: {', '.join(names)}", component
        )
        self.names = names
