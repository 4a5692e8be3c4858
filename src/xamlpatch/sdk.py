"""Windows SDK discovery.

Locates the Windows 10/11 SDK install root (``KitsRoot10``) through the
registry, enumerates the versioned ``bin/<version>`` directories under it,
and resolves the XAML build-task DLL for a given SDK version.

SDK versions are dotted integers (``10.0.22621.0``) and are ordered
numerically, component by component, so ``10.0.9600.0 < 10.0.10240.0``.
"""

from __future__ import annotations

import re
import sys
from functools import total_ordering
from pathlib import Path

_INSTALLED_ROOTS_KEYS = (
    r"SOFTWARE\Microsoft\Windows Kits\Installed Roots",
    r"SOFTWARE\WOW6432Node\Microsoft\Windows Kits\Installed Roots",
)
_KITS_ROOT_VALUE = "KitsRoot10"

_VERSION_RE = re.compile(r"^\d+(\.\d+){1,3}$")


@total_ordering
class SdkVersion:
    """A dotted SDK version such as ``10.0.22621.0``."""

    __slots__ = ("parts", "text")

    def __init__(self, text: str) -> None:
        text = text.strip()
        if not _VERSION_RE.match(text):
            raise ValueError(f"Invalid SDK version: {text!r} (expected e.g. 10.0.22621.0)")
        self.text = text
        parts = [int(p) for p in text.split(".")]
        # 10.0.22621 and 10.0.22621.0 compare equal
        while len(parts) < 4:
            parts.append(0)
        self.parts: tuple[int, ...] = tuple(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SdkVersion):
            return NotImplemented
        return self.parts == other.parts

    def __lt__(self, other: SdkVersion) -> bool:
        if not isinstance(other, SdkVersion):
            return NotImplemented
        return self.parts < other.parts

    def __hash__(self) -> int:
        return hash(self.parts)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"SdkVersion({self.text!r})"


def parse_version(text: str) -> SdkVersion:
    """Parse *text* into an :class:`SdkVersion` (raises ``ValueError``)."""
    return SdkVersion(text)


def is_version(text: str) -> bool:
    """True if *text* looks like a dotted SDK version."""
    return bool(_VERSION_RE.match(text.strip()))


def read_registry_root() -> Path | None:
    """Read ``KitsRoot10`` from the registry, or ``None`` if unavailable.

    Returns ``None`` on non-Windows hosts.
    """
    if sys.platform != "win32":
        return None
    import winreg

    for subkey in _INSTALLED_ROOTS_KEYS:
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, subkey) as key:
                value, _kind = winreg.QueryValueEx(key, _KITS_ROOT_VALUE)
        except OSError:
            continue
        if value:
            return Path(str(value))
    return None


def find_sdk_root(override: Path | None = None) -> Path:
    """Return the SDK install root.

    An explicit *override* (``--sdk-root`` or ``sdk.root`` in
    xamlpatch.toml) wins over the registry.

    Raises:
        FileNotFoundError: no SDK could be located, or the located
            directory does not exist.
    """
    if override is not None:
        root = override
        source = "configured sdk.root"
    else:
        found = read_registry_root()
        if found is None:
            if sys.platform != "win32":
                raise FileNotFoundError(
                    "Windows SDK lookup needs the registry; set sdk.root in "
                    "xamlpatch.toml or pass --sdk-root on this platform."
                )
            raise FileNotFoundError(
                f"Windows SDK not installed: no {_KITS_ROOT_VALUE} value under "
                rf"HKLM\{_INSTALLED_ROOTS_KEYS[0]}"
            )
        root = found
        source = f"registry {_KITS_ROOT_VALUE}"

    if not root.is_dir():
        raise FileNotFoundError(f"SDK root from {source} does not exist: {root}")
    return root


def dll_path(sdk_root: Path, version: SdkVersion | str, dll_relpath: str) -> Path:
    """Return where the target DLL lives for *version* (may not exist)."""
    return sdk_root / "bin" / str(version) / Path(dll_relpath)


def list_sdk_versions(sdk_root: Path, dll_relpath: str) -> list[SdkVersion]:
    """Return installed SDK versions that ship the target DLL, ascending."""
    bin_dir = sdk_root / "bin"
    if not bin_dir.is_dir():
        return []
    versions = []
    for child in bin_dir.iterdir():
        if not child.is_dir() or not is_version(child.name):
            continue
        if dll_path(sdk_root, child.name, dll_relpath).is_file():
            versions.append(SdkVersion(child.name))
    return sorted(versions)


def resolve_dll(
    sdk_root: Path,
    dll_relpath: str,
    version: str | None = None,
) -> tuple[SdkVersion, Path]:
    """Resolve the SDK version and target DLL path.

    With no *version*, the newest installed SDK that ships the DLL is used.

    Raises:
        FileNotFoundError: the DLL does not exist for the requested version,
            or no installed SDK ships it.
        ValueError: *version* is not a dotted version string.
    """
    if version is None:
        installed = list_sdk_versions(sdk_root, dll_relpath)
        if not installed:
            raise FileNotFoundError(
                f"No SDK under {sdk_root / 'bin'} contains {dll_relpath}"
            )
        sdk_version = installed[-1]
    else:
        sdk_version = parse_version(version)

    dll = dll_path(sdk_root, sdk_version, dll_relpath)
    if not dll.is_file():
        raise FileNotFoundError(f"DLL not found for SDK {sdk_version}: {dll}")
    return sdk_version, dll
