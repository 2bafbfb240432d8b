"""Install proxies on component classes."""

import logging
from collections.abc import Callable

from moxie.config import MoxieConfig
from moxie.inspector import component_type
from moxie.models import ResolvedMethodSet
from moxie.resolver import resolve
from moxie.synthesizer import Accessor, install, synthesize

logger = logging.getLogger(__name__)

RESOLVED_ATTR = "__moxie_resolved__"


def generate(
    cls: type,
    *,
    test_build: bool | None = None,
    strict: bool | None = None,
    accessor: Accessor | None = None,
) -> ResolvedMethodSet:
    """Resolve the methods cls reaches through composition and install them.

    Args:
        cls: The component class
        test_build: Install the mock control surface; defaults to
            MOXIE_TEST_BUILD
        strict: Fail on ambiguous names; defaults to MOXIE_STRICT
        accessor: How a proxy reaches the real method; see build_specs

    Returns:
        The resolved method set, also stored on the class

    Raises:
        GenerationError: If generation fails; nothing is installed
    """
    if test_build is None or strict is None:
        config = MoxieConfig.from_env()
        test_build = config.test_build if test_build is None else test_build
        strict = config.strict if strict is None else strict

    logger.info(
        f"Generating {'test' if test_build else 'production'} proxies "
        f"for {cls.__qualname__}"
    )
    resolved = resolve(component_type(cls), strict=strict)
    functions = synthesize(resolved, accessor=accessor, test_build=test_build)
    install(cls, functions)
    setattr(cls, RESOLVED_ATTR, resolved)
    return resolved


def mockable(
    cls: type | None = None,
    *,
    test_build: bool | None = None,
    strict: bool | None = None,
) -> type | Callable[[type], type]:
    """Class decorator that makes embedded methods mockable.

    Usage:
        @mockable
        class S3Client:
            client: Embed[BotoClient]

        c = S3Client(boto)
        c._put_object_return(None)
        c.put_object(...)
        assert len(c._put_object_calls()) == 1
    """

    def wrap(cls: type) -> type:
        generate(cls, test_build=test_build, strict=strict)
        return cls

    if cls is None:
        return wrap
    return wrap(cls)


def resolved_methods(cls: type) -> ResolvedMethodSet | None:
    """The method set generated for cls, if any."""
    return getattr(cls, RESOLVED_ATTR, None)
