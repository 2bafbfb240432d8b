"""Selective method mocking for composed classes."""

from moxie.control import MockControlState, Mode
from moxie.errors import (
    AmbiguousCompositionError,
    CyclicCompositionError,
    GenerationError,
    MoxieError,
    UnsupportedSignatureError,
)
from moxie.generator import generate, mockable, resolved_methods
from moxie.inspector import EMBED, Embed, component_type
from moxie.models import (
    Component,
    ComponentType,
    MethodSignature,
    Parameter,
    ParamKind,
    ResolvedMethod,
    ResolvedMethodSet,
)
from moxie.resolver import resolve
from moxie.seams import Seams
from moxie.synthesizer import build_specs, install, synthesize

__all__ = [
    # Models
    "Component",
    "ComponentType",
    "MethodSignature",
    "Parameter",
    "ParamKind",
    "ResolvedMethod",
    "ResolvedMethodSet",
    # Errors
    "MoxieError",
    "GenerationError",
    "CyclicCompositionError",
    "UnsupportedSignatureError",
    "AmbiguousCompositionError",
    # Inspection and resolution
    "EMBED",
    "Embed",
    "component_type",
    "resolve",
    # Synthesis
    "build_specs",
    "synthesize",
    "install",
    "generate",
    "mockable",
    "resolved_methods",
    # Runtime
    "Mode",
    "MockControlState",
    "Seams",
]
