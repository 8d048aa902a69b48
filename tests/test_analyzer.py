"""Tests for the merge analyzer."""

from __future__ import annotations

from templatemerge.engine.analyzer import analyze_merge
from templatemerge.engine.parser import parse_source


def _cls(body: str, usings: str = "") -> str:
    return f"{usings}public class A\n{{\n{body}}}\n"


class TestControllerScenario:
    def test_partitions(self, generated_source: str, existing_source: str) -> None:
        analysis = analyze_merge(parse_source(generated_source), parse_source(existing_source))
        assert [m.name for m in analysis.new_methods] == ["GetAll"]
        assert [p.generated.name for p in analysis.changed_methods] == ["GetById"]
        assert [m.name for m in analysis.removed_methods] == ["Archive"]
        assert analysis.unchanged_methods == ()
        assert analysis.new_properties == ()
        assert analysis.changed_properties == ()
        assert analysis.missing_imports == ("System.Collections.Generic",)
        assert analysis.conflicts == ("Method body changed: GetById",)
        assert analysis.has_work is True

    def test_signature_only_ignores_body(self, generated_source: str, existing_source: str) -> None:
        analysis = analyze_merge(
            parse_source(generated_source),
            parse_source(existing_source),
            compare_bodies=False,
        )
        assert analysis.changed_methods == ()
        assert [m.name for m in analysis.unchanged_methods] == ["GetById"]
        assert analysis.conflicts == ()

    def test_identical_is_all_unchanged(self, existing_source: str) -> None:
        unit = parse_source(existing_source)
        analysis = analyze_merge(unit, unit)
        assert [m.name for m in analysis.unchanged_methods] == ["GetById", "Archive"]
        assert analysis.has_work is False


class TestMethods:
    def test_whitespace_only_difference_is_unchanged(self) -> None:
        gen = _cls("    public int F(int a,int b)\n    {\n        return a+b;\n    }\n")
        ex = _cls("    public int F(int a, int b)\n    {\n        return a + b;\n    }\n")
        analysis = analyze_merge(parse_source(gen), parse_source(ex))
        assert [m.name for m in analysis.unchanged_methods] == ["F"]

    def test_signature_change_message(self) -> None:
        gen = _cls("    public void F(Guid id)\n    {\n    }\n")
        ex = _cls("    public void F(int id)\n    {\n    }\n")
        analysis = analyze_merge(parse_source(gen), parse_source(ex))
        assert analysis.conflicts == ("Method signature changed: F (PARAMETER TYPE CHANGED)",)
        pair = analysis.changed_methods[0]
        assert pair.generated.parameters == "Guid id"
        assert pair.existing.parameters == "int id"

    def test_overloads_first_declaration_wins(self) -> None:
        gen = _cls(
            "    public void F(int a)\n    {\n    }\n\n"
            "    public void F(string s)\n    {\n    }\n"
        )
        ex = _cls("    public void F(int a)\n    {\n    }\n")
        analysis = analyze_merge(parse_source(gen), parse_source(ex))
        assert [m.name for m in analysis.unchanged_methods] == ["F"]
        assert analysis.new_methods == ()
        assert analysis.changed_methods == ()

    def test_removed_methods_keep_existing_order(self) -> None:
        gen = _cls("")
        ex = _cls("    public void B()\n    {\n    }\n\n    public void A()\n    {\n    }\n")
        analysis = analyze_merge(parse_source(gen), parse_source(ex))
        assert [m.name for m in analysis.removed_methods] == ["B", "A"]
        assert analysis.has_work is False


class TestProperties:
    def test_new_and_changed(self) -> None:
        gen = _cls("    public decimal Price { get; set; }\n    public int Stock { get; set; }\n")
        ex = _cls("    public int Price { get; set; }\n")
        analysis = analyze_merge(parse_source(gen), parse_source(ex))
        assert [p.name for p in analysis.new_properties] == ["Stock"]
        assert [pp.generated.name for pp in analysis.changed_properties] == ["Price"]
        assert analysis.conflicts == ("Property type changed: Price",)

    def test_accessor_and_initializer_differences_are_ignored(self) -> None:
        gen = _cls("    public List<int> Ids { get; set; } = new();\n")
        ex = _cls("    public List< int > Ids { get; private set; }\n")
        analysis = analyze_merge(parse_source(gen), parse_source(ex))
        assert analysis.changed_properties == ()
        assert analysis.new_properties == ()

    def test_custom_properties_are_not_reported(self) -> None:
        gen = _cls("")
        ex = _cls("    public int Custom { get; set; }\n")
        analysis = analyze_merge(parse_source(gen), parse_source(ex))
        assert analysis.has_work is False


class TestImports:
    def test_missing_in_generated_order_deduplicated(self) -> None:
        gen = _cls("", usings="using B;\nusing A;\nusing B;\nusing C;\n")
        ex = _cls("", usings="using C;\n")
        analysis = analyze_merge(parse_source(gen), parse_source(ex))
        assert analysis.missing_imports == ("B", "A")

    def test_whitespace_normalized(self) -> None:
        gen = _cls("", usings="using Json  =  System.Text.Json;\n")
        ex = _cls("", usings="using Json = System.Text.Json;\n")
        analysis = analyze_merge(parse_source(gen), parse_source(ex))
        assert analysis.missing_imports == ()
