"""
erris/loader.py
═══════════════

Program loading: package patterns → dump files → analysable units.

Patterns
────────
  ``dir/...``   every dump below *dir*, recursively (``...`` alone means ``.``)
  ``dir``       the dumps directly inside *dir*
  ``file``      that dump file

A pattern that names nothing is a :class:`LoadError`; a recursive pattern
that happens to match no dumps simply contributes no units.

Units
─────
Each dump yields the package itself (non-test files).  When test files are
requested the loader also synthesises, following ``go list -test``:

  ``<id> [<id>.test]``        package files plus in-package ``_test.go`` files
  ``<id>_test [<id>.test]``   the external ``<name>_test`` package
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from erris.dump import FileDump, PackageDump, parse_dump
from erris.errors import DumpError, LoadError
from erris.oracle import TypeOracle

_log = logging.getLogger(__name__)

DUMP_SUFFIX = ".dump"
RECURSIVE = "..."


@dataclass
class LoadConfig:
    """
    Knobs for :func:`load`.

    Attributes
    ----------
    tests  : also produce the test variants of every package
    suffix : file-name suffix that marks a dump file
    """
    tests: bool = True
    suffix: str = DUMP_SUFFIX

    def validate(self) -> List[str]:
        """Return a list of warning strings (empty if configuration is sane)."""
        warnings: List[str] = []
        if not self.suffix:
            warnings.append("suffix is empty; every file will be treated as a dump")
        elif not self.suffix.startswith("."):
            warnings.append(f"suffix {self.suffix!r} does not start with '.'")
        return warnings


@dataclass(frozen=True)
class Unit:
    """
    One loaded program unit.

    ``files`` are syntax trees in the order the front end listed them;
    ``errors`` are the front end's load errors for the originating package.
    """
    id: str
    name: str
    files: Tuple[FileDump, ...]
    types: TypeOracle
    errors: Tuple[str, ...] = ()
    for_test: str = ""
    source: str = ""


# ═══════════════════════════════════════════════════════════════════════
#  Pattern resolution
# ═══════════════════════════════════════════════════════════════════════

def _dumps_in(directory: str, suffix: str) -> List[str]:
    return sorted(
        os.path.join(directory, entry)
        for entry in os.listdir(directory)
        if entry.endswith(suffix) and os.path.isfile(os.path.join(directory, entry))
    )


def _dumps_below(directory: str, suffix: str) -> List[str]:
    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        found.extend(os.path.join(dirpath, f) for f in sorted(filenames) if f.endswith(suffix))
    return found


def resolve_patterns(patterns: Iterable[str], suffix: str = DUMP_SUFFIX) -> List[str]:
    """Expand *patterns* into a sorted, duplicate-free list of dump paths."""
    paths = set()
    for pattern in patterns:
        if pattern == RECURSIVE or pattern.endswith("/" + RECURSIVE):
            root = pattern[: -len(RECURSIVE)].rstrip("/") or "."
            if not os.path.isdir(root):
                raise LoadError(f"pattern {pattern}: directory {root} does not exist")
            matched = _dumps_below(root, suffix)
        elif os.path.isdir(pattern):
            matched = _dumps_in(pattern, suffix)
            if not matched:
                raise LoadError(f"no package dumps in {pattern}")
        elif os.path.isfile(pattern):
            matched = [pattern]
        else:
            raise LoadError(f"cannot find package {pattern}")
        _log.debug("pattern %s matched %d dump(s)", pattern, len(matched))
        paths.update(os.path.normpath(p) for p in matched)
    return sorted(paths)


# ═══════════════════════════════════════════════════════════════════════
#  Units
# ═══════════════════════════════════════════════════════════════════════

def units_from_dump(dump: PackageDump, tests: bool = True) -> List[Unit]:
    """Split one package dump into its units (see module docstring)."""
    errors = tuple(dump.errors)
    base = [f for f in dump.files if not f.is_test]
    internal = [f for f in dump.files if f.is_test and f.package == dump.name]
    external = [f for f in dump.files if f.is_test and f.package != dump.name]

    def unit(uid: str, name: str, files: List[FileDump], for_test: str = "") -> Unit:
        return Unit(uid, name, tuple(files), dump.types, errors, for_test, dump.source)

    units = [unit(dump.id, dump.name, base)]
    if not tests:
        return units

    test_id = f"{dump.id}.test"
    if internal:
        units.append(unit(f"{dump.id} [{test_id}]", dump.name, base + internal, dump.id))
    if external:
        units.append(unit(f"{dump.id}_test [{test_id}]", external[0].package,
                          external, dump.id))
    return units


def read_dump(path: str) -> PackageDump:
    """Read and decode the dump file at *path*."""
    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise LoadError(f"cannot read {path}: {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise DumpError(f"invalid UTF-8: {exc.reason}", path) from exc
    return parse_dump(text, path)


def load(config: LoadConfig, *patterns: str) -> List[Unit]:
    """Resolve *patterns* and load every matching package.

    Raises :class:`LoadError` (or its subclass :class:`DumpError`) when a
    pattern names nothing or a dump cannot be decoded.  Load errors the
    front end recorded inside a dump do *not* raise; they travel on the
    resulting units.
    """
    for warning in config.validate():
        _log.warning("load config: %s", warning)

    units: List[Unit] = []
    for path in resolve_patterns(patterns, config.suffix):
        _log.debug("reading %s", path)
        dump = read_dump(path)
        for u in units_from_dump(dump, config.tests):
            _log.debug("unit %s: %d file(s), %d load error(s)",
                       u.id, len(u.files), len(u.errors))
            units.append(u)
    return units
