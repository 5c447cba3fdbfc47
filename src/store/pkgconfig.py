"""Minimal pkg-config descriptors for vendored packages."""

from pathlib import Path
from typing import Sequence

from versioning.errors import StoreError
from versioning.models import PackageReference


def render_pkg_config(package: PackageReference, libs: Sequence[str], requires: Sequence[str] = ()) -> str:
    """Descriptor text; the prefix is anchored at the .pc file's own directory."""
    lines = [
        f"prefix=${{pcfiledir}}/../packages/{package.name}/{package.version}",
        "includedir=${prefix}/include",
        "libdir=${prefix}/lib",
        "",
        f"Name: {package.name}",
        f"Description: {package.name} {package.version} (vendored by aurora-conan-cli)",
        f"Version: {package.version}",
    ]
    if requires:
        lines.append(f"Requires: {', '.join(requires)}")
    lines.append("Cflags: -I${includedir}")
    if libs:
        lines.append("Libs: -L${libdir} " + " ".join(f"-l{lib}" for lib in libs))
    else:
        lines.append("Libs:")
    return "\n".join(lines) + "\n"


def write_pkg_config(path: Path, package: PackageReference, libs: Sequence[str],
                     requires: Sequence[str] = ()) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_pkg_config(package, libs, requires), encoding="utf-8")
    except OSError as exc:
        raise StoreError("write", str(path), exc) from exc
    return path
