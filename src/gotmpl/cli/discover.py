"""Template discovery - which files a CLI run compiles and where output goes."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional


def read_list_file(path: Path) -> List[Path]:
    """Read a newline-delimited template list.

    Blank lines and lines starting with # are skipped. Relative entries
    are taken relative to the list file's directory.
    """
    templates: List[Path] = []
    with open(path, encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            entry = Path(line)
            if not entry.is_absolute():
                entry = path.parent / entry
            templates.append(entry)
    return templates


def walk_templates(directory: Path, suffix: str) -> List[Path]:
    """Find files ending in suffix below directory, in sorted order."""
    return sorted(p for p in directory.rglob(f"*{suffix}") if p.is_file())


def collect_templates(
    files: Iterable[Path],
    list_file: Optional[Path] = None,
    recursive: Optional[Path] = None,
    suffix: str = ".tmpl",
) -> List[Path]:
    """Combine explicit files, a list file and a directory walk.

    Order is preserved and duplicates are dropped.
    """
    candidates: List[Path] = list(files)
    if list_file is not None:
        candidates.extend(read_list_file(list_file))
    if recursive is not None:
        candidates.extend(walk_templates(recursive, suffix))

    seen = set()
    templates: List[Path] = []
    for candidate in candidates:
        key = candidate.resolve()
        if key in seen:
            continue
        seen.add(key)
        templates.append(candidate)
    return templates


def output_path(
    template: Path,
    output_dir: Optional[Path] = None,
    template_suffix: str = ".tmpl",
    output_suffix: str = ".go",
) -> Path:
    """Name the Go file for a template: its base name with the output suffix."""
    name = template.name
    if template_suffix and name.endswith(template_suffix):
        name = name[: -len(template_suffix)]
    else:
        name = template.stem
    directory = output_dir if output_dir is not None else template.parent
    return directory / f"{name}{output_suffix}"
