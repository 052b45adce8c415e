"""Tests for the compiler facade."""

import io
from concurrent.futures import ThreadPoolExecutor

import pytest

from gotmpl.compiler import Compiler, compile_template
from gotmpl.config import CompilerConfig, FormatterConfig
from gotmpl.exceptions import HostSyntaxError, InsertionCycleError, ResolutionError


@pytest.fixture
def page(site):
    """The header / heading / footer example site."""
    site("partials/header.tmpl", "<header>\n")
    site("partials/footer.tmpl", "<footer>\n")
    return site(
        "index.tmpl",
        "<?code x := 2 ?>\n"
        "<?insert /partials/header.tmpl ?>\n"
        "<h1>Hi</h1>\n"
        "<?insert partials/footer.tmpl ?>\n",
    )


def test_header_heading_footer_unmerged(page, config):
    config.merge_literals = False
    assert Compiler(config).compile(page) == (
        "package main\n"
        "\n"
        'import "fmt"\n'
        "\n"
        "func main() {\n"
        "  x := 2\n"
        "  fmt.Print(`<header>\n"
        "`)\n"
        "  fmt.Print(`\n"
        "<h1>Hi</h1>\n"
        "`)\n"
        "  fmt.Print(`<footer>\n"
        "`)\n"
        "}\n"
    )


def test_header_heading_footer_merged(page, config):
    sections = Compiler(config).sections(page)
    assert [s.kind.value for s in sections] == ["code", "literal"]
    assert sections[1].text == "<header>\n\n<h1>Hi</h1>\n<footer>\n"


def test_compilation_is_deterministic(page, config):
    compiler = Compiler(config)
    assert compiler.compile(page) == compiler.compile(page)


def test_literal_only_template(site, config):
    path = site("plain.tmpl", "\n  <p>just text</p>  \n")
    out = Compiler(config).compile(path)
    assert "  fmt.Print(`<p>just text</p>`)\n" in out
    assert out.count("fmt.Print") == 1


def test_complete_program_template(site, config):
    path = site(
        "prog.tmpl",
        '<?code package main\n\nimport out "fmt"\n\nfunc main() {\n  for i := 0; i < 2; i++ { ?>\n'
        "<li>item</li>\n"
        "<?code }\n} ?>\n",
    )
    out = Compiler(config).compile(path)
    assert 'import out "fmt"' in out
    assert "out.Print(`<li>item</li>\n`)" in out
    assert 'import "fmt"' not in out


def test_markup_before_importing_code(site, config):
    path = site("p.tmpl", '<p>hi</p>\n<?code import "strings"\n_ = strings.ToUpper ?>')
    out = Compiler(config).compile(path)
    assert out.index('import "strings"') < out.index("func main()")
    assert "  _ = strings.ToUpper\n" in out


def test_compile_template_uses_site_root(page, site):
    config = CompilerConfig(formatter=FormatterConfig(backend="builtin"))
    out = compile_template(site.root, page, config)
    assert "<header>" in out
    # the caller's config is left alone
    assert config.site_root != site.root


def test_errors_propagate(site, config):
    path = site("a.tmpl", "<?insert a.tmpl ?>")
    with pytest.raises(InsertionCycleError):
        Compiler(config).compile(path)


def test_missing_top_level_template(site, config):
    with pytest.raises(ResolutionError):
        Compiler(config).compile(site.root / "absent.tmpl")


class TestProcess:
    def test_success_writes_source(self, page, config):
        sink = io.StringIO()
        assert Compiler(config).process(page, sink) is True
        assert sink.getvalue().startswith("package main\n")

    def test_resolution_error(self, site, config):
        path = site("a.tmpl", "<?insert gone.tmpl ?>")
        sink = io.StringIO()
        assert Compiler(config).process(path, sink) is False
        assert sink.getvalue() == (
            'Template parsing error: cannot resolve template "gone.tmpl" '
            '(inserted at line 1 of "a.tmpl"): No such file or directory\n'
        )

    def test_cycle_error(self, site, config):
        path = site("a.tmpl", "<?insert a.tmpl ?>")
        sink = io.StringIO()
        Compiler(config).process(path, sink)
        assert sink.getvalue() == (
            "Template parsing error: insertion cycle\n  a.tmpl\n  -> line 1: a.tmpl\n"
        )

    def test_host_syntax_error_report(self, site, config):
        path = site("bad.tmpl", "<?code func ( ?>text")
        sink = io.StringIO()
        assert Compiler(config).process(path, sink) is False
        report = sink.getvalue()
        assert report.startswith(" func ( \n\n---\nError parsing code sections: ")


def test_concurrent_compilations(site, config):
    paths = []
    for i in range(8):
        site(f"part{i}.tmpl", f"<b>{i}</b>")
        paths.append(site(f"page{i}.tmpl", f"<?code n := {i} ?><?insert part{i}.tmpl ?><?code _ = n ?>"))
    compiler = Compiler(config)
    expected = [compiler.compile(p) for p in paths]
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(compiler.compile, paths))
    assert results == expected
    assert all(f"<b>{i}</b>" in out for i, out in enumerate(results))


def test_host_syntax_error_is_raised(site, config):
    path = site("bad.tmpl", "<?code package main ?>text")
    with pytest.raises(HostSyntaxError) as exc_info:
        Compiler(config).compile(path)
    assert exc_info.value.stage == "entire template output"
