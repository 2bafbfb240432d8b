"""Tests for rendering the control surface as stub source."""

import pytest

from moxie.emitter import render_surface
from moxie.errors import UnsupportedSignatureError
from moxie.inspector import component_type
from moxie.models import ComponentType, MethodSignature, Parameter
from moxie.resolver import resolve
from sample_components import Bucket, Client


class TestRenderSurface:
    """Tests for render_surface function."""

    def given_bucket_surface(self):
        self.text = render_surface(
            resolve(component_type(Bucket)), source="sample_components:Bucket"
        )

    def test_header_names_source(self):
        """The first line marks the file as generated."""
        self.given_bucket_surface()

        assert self.text.splitlines()[0] == (
            "# Code generated by moxie from sample_components:Bucket. DO NOT EDIT."
        )

    def test_records_and_controls(self):
        """Every method has a record class and four controls."""
        self.given_bucket_surface()

        assert "class FetchCall(NamedTuple):" in self.text
        assert "    labels: tuple[str, ...]" in self.text
        assert "    def fetch(self, bucket: str, key: str) -> tuple[bytes, int]: ..." in (
            self.text
        )
        assert "    def _fetch_stub(self) -> None: ..." in self.text
        assert "    def _fetch_calls(self) -> list[FetchCall]: ..." in self.text
        assert "    async def stat(self, key: str) -> int: ..." in self.text

    def test_parameter_markers(self):
        """Positional-only and keyword-only markers are rendered."""
        self.given_bucket_surface()

        assert (
            "    def head(self, key: str, /, *, version: int | None = ...) -> dict: ..."
            in self.text
        )
        assert "    def tag(self, key: str, *labels: str) -> int: ..." in self.text

    def test_origin_comment(self):
        """Each proxy notes where its real method lives."""
        self.given_bucket_surface()

        assert "    # storage.fetch (Storage, depth 1)" in self.text

    def test_output_is_valid_python(self):
        """The stub compiles."""
        self.given_bucket_surface()

        compile(self.text, "surface.pyi", "exec")

    def test_ambiguous_names_are_listed(self):
        """Dropped names are mentioned in the class body."""
        text = render_surface(resolve(component_type(Client)))

        assert "    # ambiguous, not proxied: get" in text
        assert "def delete(self, key: str) -> bool: ..." in text
        assert "    # inner_a.inner_c.list (InnerC, depth 2)" in text
        compile(text, "surface.pyi", "exec")

    def test_empty_component(self):
        """A component with nothing to proxy still renders a class."""
        text = render_surface(resolve(ComponentType("Lonely")))

        assert "class Lonely:\n    pass" in text
        compile(text, "surface.pyi", "exec")

    def test_record_classes_are_unique(self):
        """Methods whose names camel-case alike get separate records."""
        inner = ComponentType(
            "Inner",
            methods=[
                MethodSignature("get_item", (Parameter("key", "str"),), ("bytes",)),
                MethodSignature("getItem", (Parameter("index", "int"),), ("bytes",)),
            ],
        )
        text = render_surface(resolve(ComponentType("Outer").embed("inner", inner)))

        assert text.count("class GetItemCall(NamedTuple):") == 1
        assert text.count("class GetItemCall2(NamedTuple):") == 1
        assert "def _get_item_calls(self) -> list[GetItemCall]: ..." in text
        assert "def _getItem_calls(self) -> list[GetItemCall2]: ..." in text
        compile(text, "surface.pyi", "exec")

    def test_unsupported_signature_produces_no_text(self):
        """Validation happens before rendering."""
        inner = ComponentType(
            "Inner", methods=[MethodSignature("get", (Parameter("self"),))]
        )
        resolved = resolve(ComponentType("Outer").embed("inner", inner))

        with pytest.raises(UnsupportedSignatureError):
            render_surface(resolved)
