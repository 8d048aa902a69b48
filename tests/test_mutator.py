"""Tests for content mutation."""

from __future__ import annotations

from templatemerge.engine.analyzer import analyze_merge
from templatemerge.engine.mutator import (
    insert_imports,
    insert_method,
    insert_property,
    reindent,
    replace_member,
)
from templatemerge.engine.parser import parse_source

GET_ALL_BLOCK = (
    "        [HttpGet]\n"
    "        public IEnumerable<int> GetAll()\n"
    "        {\n"
    "            return new List<int>();\n"
    "        }"
)


def test_reindent() -> None:
    assert reindent("  a\n    b", "\t") == "\ta\n\t  b"


class TestInsertMethod:
    def test_appends_after_last_method(self, generated_source: str, existing_source: str) -> None:
        gen = parse_source(generated_source)
        unit = parse_source(existing_source)
        method = gen.find_method("GetAll")
        assert method is not None

        text, new_unit = insert_method(existing_source, unit, method)

        tail = "        }\n    }\n}\n"
        expected = existing_source.replace(tail, "        }\n\n" + GET_ALL_BLOCK + "\n    }\n}\n")
        assert text == expected
        assert [m.name for m in new_unit.methods] == ["GetById", "Archive", "GetAll"]

    def test_text_before_insertion_point_is_untouched(
        self, generated_source: str, existing_source: str
    ) -> None:
        method = parse_source(generated_source).find_method("GetAll")
        assert method is not None
        text, _ = insert_method(existing_source, parse_source(existing_source), method)
        pos = existing_source.rindex("    }\n}")
        assert text[:pos] == existing_source[:pos]
        assert text.endswith(existing_source[pos:])

    def test_into_empty_type_leaves_blank_line_after_brace(self) -> None:
        target = "namespace N\n{\n    public class A\n    {\n    }\n}\n"
        source = "public class B\n{\n    public void Run()\n    {\n    }\n}\n"
        method = parse_source(source).methods[0]
        text, unit = insert_method(target, parse_source(target), method)
        assert text == (
            "namespace N\n{\n    public class A\n    {\n\n"
            "        public void Run()\n        {\n        }\n"
            "    }\n}\n"
        )
        assert [m.name for m in unit.methods] == ["Run"]

    def test_reinserted_method_compares_unchanged(
        self, generated_source: str, existing_source: str
    ) -> None:
        gen = parse_source(generated_source)
        method = gen.find_method("GetAll")
        assert method is not None
        _, unit = insert_method(existing_source, parse_source(existing_source), method)
        analysis = analyze_merge(gen, unit)
        assert "GetAll" in [m.name for m in analysis.unchanged_methods]
        assert analysis.new_methods == ()


class TestInsertProperty:
    STOCK = "public class G\n{\n    public int Stock { get; set; }\n}\n"

    def test_after_last_property(self, existing_source: str) -> None:
        prop = parse_source(self.STOCK).properties[0]
        text, unit = insert_property(existing_source, parse_source(existing_source), prop)
        title = "        public string Title { get; set; }\n"
        assert text == existing_source.replace(title, title + "        public int Stock { get; set; }\n")
        assert [p.name for p in unit.properties] == ["Title", "Stock"]

    def test_before_first_method(self) -> None:
        target = "public class A\n{\n    [HttpGet]\n    public void L()\n    {\n    }\n}\n"
        prop = parse_source(self.STOCK).properties[0]
        text, _ = insert_property(target, parse_source(target), prop)
        assert text == (
            "public class A\n{\n    public int Stock { get; set; }\n\n"
            "    [HttpGet]\n    public void L()\n    {\n    }\n}\n"
        )

    def test_into_empty_type(self) -> None:
        target = "public class A\n{\n}\n"
        prop = parse_source(self.STOCK).properties[0]
        text, _ = insert_property(target, parse_source(target), prop)
        assert text == "public class A\n{\n    public int Stock { get; set; }\n}\n"


class TestReplaceMember:
    def test_replaces_method_with_attributes(self, generated_source: str, existing_source: str) -> None:
        gen = parse_source(generated_source).find_method("GetById")
        unit = parse_source(existing_source)
        current = unit.find_method("GetById")
        assert gen is not None and current is not None

        text, new_unit = replace_member(existing_source, unit, current, gen)

        old = "            return Ok(id);\n        }\n\n        // Hand"
        new = "            if (id <= 0) { return NotFound(); }\n" + old
        assert text == existing_source.replace(old, new)
        assert [m.name for m in new_unit.methods] == ["GetById", "Archive"]

    def test_replaces_property_at_target_indent(self, existing_source: str) -> None:
        source = "public class G\n{\n  public int Title { get; set; }\n}\n"
        gen = parse_source(source).properties[0]
        unit = parse_source(existing_source)
        text, new_unit = replace_member(existing_source, unit, unit.properties[0], gen)
        assert "        public int Title { get; set; }\n" in text
        assert new_unit.properties[0].type == "int"


class TestInsertImports:
    def test_after_existing_usings(self, existing_source: str) -> None:
        text, unit = insert_imports(existing_source, parse_source(existing_source), ["System.Linq"])
        assert text.startswith("using System;\nusing Microsoft.AspNetCore.Mvc;\nusing System.Linq;\n\nnamespace")
        assert unit.imports == ["System", "Microsoft.AspNetCore.Mvc", "System.Linq"]

    def test_without_existing_usings(self) -> None:
        target = "public class A { }\n"
        text, unit = insert_imports(target, parse_source(target), ["System", "System.Linq"])
        assert text == "using System;\nusing System.Linq;\n\npublic class A { }\n"
        assert unit.imports == ["System", "System.Linq"]

    def test_nothing_to_add(self, existing_source: str) -> None:
        unit = parse_source(existing_source)
        text, same = insert_imports(existing_source, unit, [])
        assert text == existing_source
        assert same is unit


class TestAttributeAboveBlankLine:
    TARGET = (
        "public class A\n{\n"
        "    [HttpGet]\n\n"
        "    public int Get()\n    {\n        return 1;\n    }\n"
        "}\n"
    )

    def test_property_goes_above_the_attribute(self) -> None:
        prop = parse_source(TestInsertProperty.STOCK).properties[0]
        text, unit = insert_property(self.TARGET, parse_source(self.TARGET), prop)
        assert text == (
            "public class A\n{\n"
            "    public int Stock { get; set; }\n\n"
            "    [HttpGet]\n\n"
            "    public int Get()\n    {\n        return 1;\n    }\n"
            "}\n"
        )
        assert unit.find_method("Get") is not None
        assert unit.methods[0].attributes == ["[HttpGet]"]

    def test_replace_does_not_duplicate_the_attribute(self) -> None:
        source = "public class G\n{\n    [HttpGet]\n    public int Get()\n    {\n        return 2;\n    }\n}\n"
        gen = parse_source(source).methods[0]
        unit = parse_source(self.TARGET)

        text, _ = replace_member(self.TARGET, unit, unit.methods[0], gen)

        assert text.count("[HttpGet]") == 1
        assert text == (
            "public class A\n{\n"
            "    [HttpGet]\n"
            "    public int Get()\n    {\n        return 2;\n    }\n"
            "}\n"
        )
