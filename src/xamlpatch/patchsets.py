"""Patch sets: directories of per-file patches gated by SDK version.

Layout under the project's ``Patches/`` directory::

    Patches/
        Common/                         always applied
        Sdk_Ge_10.0.22621.0/            applied when sdk >= 10.0.22621.0
        Sdk_Lt_10.0.19041.0/            applied when sdk <  10.0.19041.0

Each set holds ``*.patch`` files, one per source path, named by
:func:`sanitize_patch_name`.  Selection order is deterministic: ``Common``
first, then the version-gated sets by bound version, then by name.  Within a
set, patches apply in file-name order.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from xamlpatch.sdk import SdkVersion, parse_version

COMMON_SET = "Common"
PATCH_SUFFIX = ".patch"

_SET_RE = re.compile(r"^Sdk_(?P<rel>[A-Za-z]{2})_(?P<ver>\d+(?:\.\d+){1,3})$")

# Characters that cannot appear in a Windows file name, plus path separators.
_UNSAFE_CHARS_RE = re.compile(r'[\\/<>:"|?*\x00-\x1f]')


class Relation(enum.Enum):
    """Comparison between the current SDK version and a patch set's bound."""

    EQ = "Eq"
    LT = "Lt"
    LE = "Le"
    GT = "Gt"
    GE = "Ge"

    @classmethod
    def parse(cls, token: str) -> Relation:
        """Parse a relation token case-insensitively (``ge``, ``Ge``, ``GE``)."""
        for rel in cls:
            if rel.value.lower() == token.lower():
                return rel
        known = ", ".join(r.value for r in cls)
        raise ValueError(f"Unknown SDK relation {token!r} (known: {known})")

    def matches(self, current: SdkVersion, bound: SdkVersion) -> bool:
        """Return True if ``current <relation> bound`` holds."""
        if self is Relation.EQ:
            return current == bound
        if self is Relation.LT:
            return current < bound
        if self is Relation.LE:
            return current <= bound
        if self is Relation.GT:
            return current > bound
        return current >= bound


@dataclass(frozen=True)
class PatchSet:
    """A directory of patches, either unconditional or version-gated."""

    name: str
    directory: Path
    relation: Relation | None = None
    version: SdkVersion | None = None

    @property
    def is_common(self) -> bool:
        return self.relation is None

    def applies_to(self, sdk_version: SdkVersion) -> bool:
        """True if this set should be applied to a decompile of *sdk_version*."""
        if self.relation is None or self.version is None:
            return True
        return self.relation.matches(sdk_version, self.version)

    def patches(self) -> list[Path]:
        """Return the set's patch files in application order."""
        if not self.directory.is_dir():
            return []
        return sorted(
            (p for p in self.directory.iterdir() if p.is_file() and p.suffix == PATCH_SUFFIX),
            key=lambda p: p.name,
        )

    def describe(self) -> str:
        if self.relation is None:
            return "always"
        symbols = {
            Relation.EQ: "==",
            Relation.LT: "<",
            Relation.LE: "<=",
            Relation.GT: ">",
            Relation.GE: ">=",
        }
        return f"sdk {symbols[self.relation]} {self.version}"


def patch_set_name(relation: Relation | None, version: SdkVersion | str | None = None) -> str:
    """Build the directory name for a set (``Common`` or ``Sdk_<rel>_<ver>``)."""
    if relation is None:
        return COMMON_SET
    if version is None:
        raise ValueError("A version-gated patch set needs a version")
    return f"Sdk_{relation.value}_{version}"


def parse_patch_set_name(name: str) -> tuple[Relation | None, SdkVersion | None]:
    """Parse a patch set directory name.

    Returns ``(None, None)`` for ``Common``.

    Raises:
        ValueError: *name* is neither ``Common`` nor ``Sdk_<rel>_<version>``.
    """
    if name.lower() == COMMON_SET.lower():
        return None, None
    m = _SET_RE.match(name)
    if not m:
        raise ValueError(
            f"Invalid patch set name {name!r}: expected '{COMMON_SET}' or "
            "'Sdk_<Eq|Lt|Le|Gt|Ge>_<version>'"
        )
    return Relation.parse(m.group("rel")), parse_version(m.group("ver"))


def discover_patch_sets(patches_dir: Path) -> tuple[list[PatchSet], list[Path]]:
    """Scan *patches_dir* for patch set directories.

    Returns ``(sets, ignored)`` where *ignored* lists subdirectories whose
    names are not valid set names.  A missing *patches_dir* yields no sets.
    """
    sets: list[PatchSet] = []
    ignored: list[Path] = []
    if not patches_dir.is_dir():
        return sets, ignored
    for child in sorted(patches_dir.iterdir(), key=lambda p: p.name):
        if not child.is_dir():
            continue
        try:
            relation, version = parse_patch_set_name(child.name)
        except ValueError:
            ignored.append(child)
            continue
        sets.append(PatchSet(name=child.name, directory=child, relation=relation, version=version))
    return sets, ignored


def _order_key(ps: PatchSet) -> tuple:
    if ps.is_common:
        return (0, (), ps.name)
    assert ps.version is not None
    return (1, ps.version.parts, ps.name)


def select_patch_sets(sets: list[PatchSet], sdk_version: SdkVersion) -> list[PatchSet]:
    """Return the sets that apply to *sdk_version*, in application order."""
    return sorted((s for s in sets if s.applies_to(sdk_version)), key=_order_key)


def sanitize_patch_name(relpath: str) -> str:
    """Turn a repository-relative path into a flat patch file name.

    ``Microsoft/Build/Foo.cs`` becomes ``Microsoft_Build_Foo.cs.patch``.
    """
    path = PurePosixPath(relpath.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts or not path.parts:
        raise ValueError(f"Not a repository-relative path: {relpath!r}")
    flat = _UNSAFE_CHARS_RE.sub("_", "/".join(path.parts))
    return flat + PATCH_SUFFIX
