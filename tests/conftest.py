"""Shared fixtures: template trees on disk and a printer-independent config."""

import logging
from pathlib import Path

import pytest

from gotmpl.config import CompilerConfig, FormatterConfig

LITERAL_ESCAPES = {'"`"': "`", '"\\r"': "\r", '"\\x00"': "\x00", '"\\uFEFF"': "\ufeff"}


@pytest.fixture(autouse=True)
def reset_gotmpl_logger():
    """Undo CLI logging setup so caplog sees every record."""
    yield
    logger = logging.getLogger("gotmpl")
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def site(tmp_path):
    """Return a helper that writes a template below a temporary site root."""
    root = tmp_path / "site"
    root.mkdir()

    def write(relative: str, text: str) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    write.root = root
    return write


@pytest.fixture
def config(site):
    """Compiler config rooted at the site, using the built-in printer."""
    return CompilerConfig(
        site_root=site.root,
        formatter=FormatterConfig(backend="builtin"),
    )


@pytest.fixture
def decode():
    """Return a function giving the value of a generated Go string literal."""

    def decode_literal(literal: str) -> str:
        if literal.startswith("`"):
            return literal[1:-1]
        return LITERAL_ESCAPES[literal]

    return decode_literal
