"""Synthesize proxy methods and their control surface."""

import functools
import inspect
import keyword
import logging
import operator
from collections import namedtuple
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from moxie.control import MockControlState, state_for
from moxie.errors import UnsupportedSignatureError
from moxie.inspector import PROXY_MARKER, split_top_level
from moxie.models import ParamKind, ResolvedMethod, ResolvedMethodSet

logger = logging.getLogger(__name__)

Accessor = Callable[[ResolvedMethod], Callable[[Any], Callable[..., Any]]]

CONTROL_VERBS = ("stub", "do", "return", "calls")

_MISSING = object()

_INSPECT_KINDS = {
    ParamKind.POSITIONAL_ONLY: inspect.Parameter.POSITIONAL_ONLY,
    ParamKind.POSITIONAL: inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ParamKind.VARIADIC: inspect.Parameter.VAR_POSITIONAL,
    ParamKind.KEYWORD_ONLY: inspect.Parameter.KEYWORD_ONLY,
    ParamKind.VAR_KEYWORD: inspect.Parameter.VAR_KEYWORD,
}

_ZERO_VALUES = {
    "int": 0,
    "float": 0.0,
    "complex": 0j,
    "str": "",
    "bytes": b"",
    "bool": False,
    "None": None,
}

_ZERO_FACTORIES = {
    "list": list,
    "dict": dict,
    "set": set,
    "frozenset": frozenset,
    "tuple": tuple,
    "bytearray": bytearray,
}


def path_accessor(method: ResolvedMethod) -> Callable[[Any], Callable[..., Any]]:
    """Reach the real method by following the origin attribute path."""
    return operator.attrgetter(".".join(method.origin + (method.name,)))


def zero_value(type_text: str) -> Any:
    """The value a stubbed method returns for a result of this type."""
    text = type_text.strip()
    if text.startswith("Optional[") or len(split_on_union(text)) > 1:
        return None
    if text in _ZERO_VALUES:
        return _ZERO_VALUES[text]
    factory = _ZERO_FACTORIES.get(text.split("[", 1)[0].lower())
    return factory() if factory else None


def split_on_union(text: str) -> list[str]:
    return split_top_level(text.replace("|", ","))


@dataclass(frozen=True)
class ProxySpec:
    """Everything needed to build the proxy for one resolved method."""

    owner: str
    method: ResolvedMethod
    signature: inspect.Signature
    record_type: type
    accessor: Callable[[Any], Callable[..., Any]]
    zero_values: tuple[Any, ...]

    @property
    def name(self) -> str:
        return self.method.name

    @property
    def qualname(self) -> str:
        return f"{self.owner}.{self.name}"

    @property
    def is_async(self) -> bool:
        return self.method.signature.is_async

    def control_name(self, verb: str) -> str:
        return f"_{self.name}_{verb}"

    def attribute_names(self, test_build: bool = True) -> list[str]:
        if not test_build:
            return [self.name]
        return [self.name] + [self.control_name(v) for v in CONTROL_VERBS]

    def new_state(self) -> MockControlState:
        return MockControlState(
            self.qualname, self.method.signature.result_count, self.zero_values
        )

    def state(self, instance: Any) -> MockControlState:
        return state_for(instance, self.name, self.new_state)

    def record(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        """Build the call record, applying defaults for omitted arguments.

        Received values are kept as-is. Every field is filled, so a
        parameter the caller left out holds its default value.

        Raises:
            TypeError: If the arguments do not fit the signature
        """
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return self.record_type(*bound.arguments.values())


def build_specs(
    resolved: ResolvedMethodSet, accessor: Accessor | None = None
) -> list[ProxySpec]:
    """Validate every resolved method and prepare its proxy.

    All methods are checked before any spec is returned, so an unsupported
    signature aborts generation as a whole.

    Args:
        resolved: The resolved method set
        accessor: Maps a method to a function returning the bound real
            method of an instance; defaults to path_accessor

    Returns:
        One ProxySpec per resolved method, in resolution order

    Raises:
        UnsupportedSignatureError: If any method cannot be proxied
    """
    accessor = accessor or path_accessor
    specs = []
    # Records share the stub module with the component class.
    record_names = {resolved.component.rsplit(".", 1)[-1]}

    for method in resolved:
        sig = method.signature
        signature = _python_signature(resolved.component, method)
        specs.append(
            ProxySpec(
                owner=resolved.component,
                method=method,
                signature=signature,
                record_type=_record_type(
                    sig.name, list(signature.parameters), record_names
                ),
                accessor=accessor(method),
                zero_values=tuple(zero_value(t) for t in sig.results),
            )
        )

    return specs


def _python_signature(owner: str, method: ResolvedMethod) -> inspect.Signature:
    sig = method.signature

    def unsupported(reason: str) -> UnsupportedSignatureError:
        return UnsupportedSignatureError(
            f"{owner}.{sig.name}: {reason}", method=sig.name, component=owner
        )

    if not sig.name.isidentifier() or keyword.iskeyword(sig.name):
        raise unsupported("method name is not an identifier")
    if sig.name.startswith("_"):
        raise unsupported("unexported methods are not proxied")

    params = []
    for p in sig.parameters:
        if not p.name.isidentifier() or keyword.iskeyword(p.name):
            raise unsupported(f"parameter {p.name!r} is not an identifier")
        if p.name == "self":
            raise unsupported("parameter 'self' collides with the receiver")
        params.append(
            inspect.Parameter(
                p.name, _INSPECT_KINDS[p.kind], default=p.default, annotation=p.type
            )
        )

    if not sig.results:
        returns = "None"
    elif len(sig.results) == 1:
        returns = sig.results[0]
    else:
        returns = f"tuple[{', '.join(sig.results)}]"

    try:
        return inspect.Signature(params, return_annotation=returns)
    except ValueError as e:
        raise unsupported(str(e)) from e


def _record_type(method_name: str, fields: list[str], taken: set[str]) -> type:
    """NamedTuple named <CamelName>Call, numbered if the name is taken."""
    base = "".join(part[:1].upper() + part[1:] for part in method_name.split("_"))
    name = f"{base}Call"
    suffix = 2
    while name in taken:
        name = f"{base}Call{suffix}"
        suffix += 1
    taken.add(name)
    return namedtuple(name, fields, rename=True)


def synthesize(
    resolved: ResolvedMethodSet,
    accessor: Accessor | None = None,
    test_build: bool = True,
) -> dict[str, Callable[..., Any]]:
    """Produce the functions to install for a resolved method set.

    In a test build each method ``m`` gets a proxy plus ``_m_stub``,
    ``_m_do``, ``_m_return`` and ``_m_calls``. Otherwise each method gets a
    plain delegate to the real implementation.

    Args:
        resolved: The resolved method set
        accessor: See build_specs
        test_build: Whether to include the control surface

    Returns:
        Mapping of attribute name to function
    """
    specs = build_specs(resolved, accessor)
    functions: dict[str, Callable[..., Any]] = {}

    for spec in specs:
        if test_build:
            functions[spec.name] = _make_proxy(spec)
            functions.update(_make_controls(spec))
        else:
            functions[spec.name] = _make_delegate(spec)
        logger.debug(f"Synthesized {spec.qualname}: {spec.method.signature.describe()}")

    logger.info(
        f"Synthesized {len(specs)} {'proxies' if test_build else 'delegates'} "
        f"for {resolved.component}"
    )
    return functions


def _finish(function: Callable, spec: ProxySpec, name: str, doc: str | None) -> None:
    function.__name__ = name
    function.__qualname__ = f"{spec.owner}.{name}"
    function.__doc__ = doc
    setattr(function, PROXY_MARKER, spec.qualname)


def _with_receiver(spec: ProxySpec) -> inspect.Signature:
    params = list(spec.signature.parameters.values())
    kind = inspect.Parameter.POSITIONAL_OR_KEYWORD
    if any(p.kind is p.POSITIONAL_ONLY for p in params):
        kind = inspect.Parameter.POSITIONAL_ONLY
    receiver = inspect.Parameter("self", kind)
    return spec.signature.replace(parameters=[receiver, *params])


def _make_proxy(spec: ProxySpec) -> Callable[..., Any]:
    if spec.is_async:

        async def proxy(self, /, *args, **kwargs):
            record = spec.record(args, kwargs)
            real = functools.partial(spec.accessor, self)
            return await spec.state(self).dispatch_async(record, real, args, kwargs)

    else:

        def proxy(self, /, *args, **kwargs):
            record = spec.record(args, kwargs)
            real = functools.partial(spec.accessor, self)
            return spec.state(self).dispatch(record, real, args, kwargs)

    _finish(proxy, spec, spec.name, spec.method.signature.doc)
    proxy.__signature__ = _with_receiver(spec)
    return proxy


def _make_delegate(spec: ProxySpec) -> Callable[..., Any]:
    if spec.is_async:

        async def delegate(self, /, *args, **kwargs):
            return await spec.accessor(self)(*args, **kwargs)

    else:

        def delegate(self, /, *args, **kwargs):
            return spec.accessor(self)(*args, **kwargs)

    _finish(delegate, spec, spec.name, spec.method.signature.doc)
    delegate.__signature__ = _with_receiver(spec)
    return delegate


def _make_controls(spec: ProxySpec) -> dict[str, Callable[..., Any]]:
    def stub(self) -> None:
        spec.state(self).stub()

    def do(self, fake: Callable[..., Any] | None) -> None:
        if fake is not None:
            check_fake(spec, fake)
        spec.state(self).do(fake)

    def return_(self, *values: Any) -> None:
        spec.state(self).return_values(values)

    def calls(self) -> list[Any]:
        return spec.state(self).calls()

    controls = {
        "stub": (stub, f"Make {spec.name} return zero values."),
        "do": (do, f"Make {spec.name} call fake; None restores the real method."),
        "return": (return_, f"Make {spec.name} return the given values."),
        "calls": (
            calls,
            f"Calls made to {spec.name}, oldest first. Omitted arguments "
            "hold their defaults.",
        ),
    }

    functions = {}
    for verb, (function, doc) in controls.items():
        name = spec.control_name(verb)
        _finish(function, spec, name, doc)
        functions[name] = function
    return functions


def check_fake(spec: ProxySpec, fake: Callable[..., Any]) -> None:
    """Fail fast if fake cannot be called the way the method is.

    Raises:
        TypeError: If fake is not callable or cannot accept the parameters
    """
    if not callable(fake):
        raise TypeError(f"{spec.qualname}: fake must be callable, got {fake!r}")
    try:
        fake_sig = inspect.signature(fake)
    except (TypeError, ValueError):
        # No introspectable signature (some builtins); accept it.
        return

    required_args: list[Any] = []
    all_args: list[Any] = []
    kwargs: dict[str, Any] = {}
    required_kwargs: dict[str, Any] = {}
    for p in spec.signature.parameters.values():
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            all_args.append(None)
            if p.default is p.empty:
                required_args.append(None)
        elif p.kind is p.VAR_POSITIONAL:
            all_args.append(None)
        elif p.kind is p.KEYWORD_ONLY:
            kwargs[p.name] = None
            if p.default is p.empty:
                required_kwargs[p.name] = None
        elif p.kind is p.VAR_KEYWORD:
            kwargs["moxie_extra_keyword"] = None

    for args, kw in ((all_args, kwargs), (required_args, required_kwargs)):
        try:
            fake_sig.bind(*args, **kw)
        except TypeError as e:
            raise TypeError(
                f"fake for {spec.qualname} does not match {spec.signature}: {e}"
            ) from e


def install(cls: type, functions: dict[str, Callable[..., Any]]) -> None:
    """Set synthesized functions on cls.

    Every name is checked before anything is set.

    Raises:
        UnsupportedSignatureError: If a name is already used on cls by
            something moxie did not install
    """
    for name in functions:
        existing = inspect.getattr_static(cls, name, _MISSING)
        if existing is not _MISSING and not getattr(existing, PROXY_MARKER, None):
            raise UnsupportedSignatureError(
                f"{cls.__qualname__}.{name} already exists",
                method=name,
                component=cls.__qualname__,
            )

    for name, function in functions.items():
        function.__module__ = cls.__module__
        setattr(cls, name, function)
    logger.debug(f"Installed {len(functions)} functions on {cls.__qualname__}")
