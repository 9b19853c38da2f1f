"""Tests for repo_converter.units -- payload assembly."""

import pytest

from conftest import write_tree

from repo_converter.units import ComponentUnit, SimpleUnit


class TestSimpleUnit:
    def test_payload_is_file_content(self, tmp_path):
        write_tree(tmp_path, {"a.py": "print('hi')\n"})
        unit = SimpleUnit.from_path(tmp_path / "a.py")
        assert unit.source_language == "Python"
        assert unit.payload() == "print('hi')\n"

    def test_undecodable_bytes_are_replaced(self, tmp_path):
        (tmp_path / "b.js").write_bytes(b"x = '\xff';")
        assert "\ufffd" in SimpleUnit.from_path(tmp_path / "b.js").payload()


class TestComponentUnit:
    def test_payload_order_and_labels(self, tmp_path):
        write_tree(tmp_path, {
            "foo.component.ts": "LOGIC",
            "foo.component.html": "TEMPLATE",
            "foo.component.scss": "STYLE",
        })
        unit = ComponentUnit(
            logic_path=tmp_path / "foo.component.ts",
            template_path=tmp_path / "foo.component.html",
            style_path=tmp_path / "foo.component.scss",
        )
        assert unit.payload() == "LOGIC\n\n// Template:\nTEMPLATE\n\n// Styles:\nSTYLE"

    def test_missing_parts_omit_their_labels(self, tmp_path):
        write_tree(tmp_path, {"foo.component.ts": "LOGIC", "foo.component.css": "STYLE"})
        unit = ComponentUnit(
            logic_path=tmp_path / "foo.component.ts",
            style_path=tmp_path / "foo.component.css",
        )
        assert unit.payload() == "LOGIC\n\n// Styles:\nSTYLE"
        assert "// Template:" not in unit.payload()

    def test_logic_only(self, tmp_path):
        write_tree(tmp_path, {"foo.component.ts": "LOGIC"})
        assert ComponentUnit(logic_path=tmp_path / "foo.component.ts").payload() == "LOGIC"

    def test_base_name(self, tmp_path):
        assert ComponentUnit(logic_path=tmp_path / "user-list.component.ts").base_name == "user-list"

    def test_rejects_non_component_logic(self, tmp_path):
        with pytest.raises(ValueError):
            ComponentUnit(logic_path=tmp_path / "foo.service.ts")

    def test_rejects_sibling_from_other_directory(self, tmp_path):
        with pytest.raises(ValueError):
            ComponentUnit(
                logic_path=tmp_path / "a" / "foo.component.ts",
                template_path=tmp_path / "b" / "foo.component.html",
            )

    def test_rejects_sibling_with_other_base_name(self, tmp_path):
        with pytest.raises(ValueError):
            ComponentUnit(
                logic_path=tmp_path / "foo.component.ts",
                style_path=tmp_path / "bar.component.css",
            )
