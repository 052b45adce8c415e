"""Tests for the minimal Go parser."""

import pytest

from gotmpl.golang.lexer import GoSyntaxError, significant, tokenize
from gotmpl.golang.parser import ImportSpec, check_brackets, parse_file, parse_source


class TestImportSpec:
    def test_default_local_name_is_last_path_element(self):
        assert ImportSpec("net/http").local_name == "http"

    def test_explicit_name(self):
        assert ImportSpec("fmt", name="f").local_name == "f"
        assert ImportSpec("fmt", name=".").local_name == "."


class TestParseFile:
    def test_package_and_imports(self):
        src = 'package main\n\nimport "fmt"\nimport (\n  s "strings"\n  . "math"\n  _ "embed"\n)\n\nfunc main() {}\n'
        gofile = parse_file(src)
        assert gofile.package == "main"
        assert [(i.path, i.name) for i in gofile.imports] == [
            ("fmt", None),
            ("strings", "s"),
            ("math", "."),
            ("embed", "_"),
        ]
        assert [i.line for i in gofile.imports] == [3, 5, 6, 7]
        assert not gofile.is_fragment

    def test_header_end_is_after_package_clause(self):
        src = "package main\nfunc main() {}\n"
        gofile = parse_file(src)
        assert src[: gofile.header_end] == "package main\n"

    def test_imports_end(self):
        src = 'package main\nimport "fmt"\nvar x = 1\n'
        gofile = parse_file(src)
        assert src[gofile.imports_end :] == "var x = 1\n"

    def test_raw_string_import_path(self):
        assert parse_file("package p\nimport `fmt`\n").imports[0].path == "fmt"

    def test_declarations(self):
        src = "package p\nconst a = 1\nvar (\n  b = 2\n)\ntype T struct{ x int }\nfunc (t T) M() {\n  if true {\n  }\n}\n"
        assert parse_file(src).package == "p"

    def test_missing_package(self):
        with pytest.raises(GoSyntaxError, match="expected 'package', found x"):
            parse_file("x := 1\n")

    def test_empty_source(self):
        with pytest.raises(GoSyntaxError, match="expected 'package', found EOF"):
            parse_file("")

    def test_statement_outside_function(self):
        with pytest.raises(GoSyntaxError) as exc_info:
            parse_file("package main\nfmt.Print(`x`)\n")
        assert "non-declaration statement outside function body" in str(exc_info.value)
        assert exc_info.value.line == 2

    def test_late_import(self):
        with pytest.raises(GoSyntaxError, match="imports must appear before other declarations"):
            parse_file('package main\nvar x = 1\nimport "fmt"\n')

    def test_missing_import_path(self):
        with pytest.raises(GoSyntaxError, match="missing import path"):
            parse_file("package main\nimport fmt\n")

    def test_named_function_inside_body(self):
        with pytest.raises(GoSyntaxError) as exc_info:
            parse_file("package main\nfunc main() {\n  func helper() {}\n}\n")
        assert exc_info.value.line == 3

    def test_func_types_and_literals_in_declarations(self):
        src = "package main\nvar f func(int) error\nfunc run(cb func()) {\n  go func() {}()\n}\n"
        assert parse_file(src).package == "main"

    def test_unbalanced_brackets(self):
        with pytest.raises(GoSyntaxError, match="expected '}', found 'EOF'"):
            parse_file("package main\nfunc main() {\n")


class TestParseSource:
    def test_fragment_when_allowed(self):
        gofile = parse_source('import "strings"\nx := strings.ToUpper("a")\n', allow_fragment=True)
        assert gofile.is_fragment
        assert [i.path for i in gofile.imports] == ["strings"]

    def test_fragment_import_end(self):
        src = 'import "os"\nos.Exit(0)\n'
        gofile = parse_source(src, allow_fragment=True)
        assert src[gofile.imports_end :] == "os.Exit(0)\n"

    def test_empty_fragment(self):
        gofile = parse_source("", allow_fragment=True)
        assert gofile.is_fragment
        assert gofile.imports == []

    def test_complete_file_is_not_a_fragment(self):
        gofile = parse_source("package main\n", allow_fragment=True)
        assert gofile.package == "main"

    def test_fragment_rejected_by_default(self):
        with pytest.raises(GoSyntaxError):
            parse_source("x := 1\n")

    def test_named_function_in_fragment(self):
        with pytest.raises(GoSyntaxError, match="expected '\\(', found helper"):
            parse_source("func helper() {}\n", allow_fragment=True)

    def test_function_literal_in_fragment(self):
        assert parse_source("f := func(n int) {}\n", allow_fragment=True).is_fragment

    def test_import_after_statement_in_fragment(self):
        with pytest.raises(GoSyntaxError, match="imports must appear before"):
            parse_source('x := 1\nimport "fmt"\n', allow_fragment=True)


def test_check_brackets_mismatch():
    with pytest.raises(GoSyntaxError, match="expected '\\)', found '\\]'"):
        check_brackets(significant(tokenize("f(a]")))


def test_check_brackets_unexpected_closer():
    with pytest.raises(GoSyntaxError, match="unexpected '}'"):
        check_brackets(significant(tokenize("}")))
