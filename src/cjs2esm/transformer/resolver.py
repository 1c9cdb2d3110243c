"""
Completion of relative module specifiers against the filesystem.

ES modules need the full file name of a local module, while `require` let
the loader guess the extension or an `index` file. The resolver probes the
directory of the converted file to find what the loader would have found:

    node:path  -> node:path           (not local)
    dayjs      -> dayjs               (not local)
    .          -> ./index.js
    ./         -> ./index.js
    ./file     -> ./file.js or ./file/index.js
    ./data.json -> ./data.json        (already has an extension)

A specifier that matches nothing is returned unchanged; the broken import
then surfaces when the converted program is loaded.
"""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".js",)

ExistsPredicate = Callable[[str], bool]


@dataclass(frozen=True)
class ResolvedSpecifier:
    path: str
    is_local: bool
    found: bool = False


def is_local_specifier(specifier: str) -> bool:
    return specifier == "." or specifier.startswith(("./", "../"))


def _index_candidate(specifier: str, ext: str) -> str:
    if specifier.endswith("/"):
        return f"{specifier}index{ext}"
    return f"{specifier}/index{ext}"


def resolve_specifier(
    base_dir: str,
    specifier: str,
    *,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exists: Optional[ExistsPredicate] = None,
) -> ResolvedSpecifier:
    """
    Complete `specifier` as seen from a file living in `base_dir`.

    Args:
        base_dir: Directory of the file being converted.
        specifier: The literal argument of the `require` call.
        extensions: Extensions to probe, in order. Every direct file probe
            runs before any `index` probe.
        exists: Predicate used for probing; defaults to `os.path.isfile`.

    Returns:
        ResolvedSpecifier with the path to emit.
    """
    exists = exists or os.path.isfile
    extensions = tuple(extensions)

    def probe(candidate: str) -> bool:
        return exists(os.path.join(base_dir, candidate))

    if specifier == ".":
        for ext in extensions:
            candidate = f"./index{ext}"
            if probe(candidate):
                return ResolvedSpecifier(path=candidate, is_local=True, found=True)
        return ResolvedSpecifier(path=specifier, is_local=True)

    if not is_local_specifier(specifier):
        return ResolvedSpecifier(path=specifier, is_local=False)

    is_directory = specifier.endswith("/")
    if not is_directory and posixpath.splitext(specifier)[1]:
        return ResolvedSpecifier(path=specifier, is_local=True, found=probe(specifier))

    if not is_directory:
        for ext in extensions:
            candidate = specifier + ext
            if probe(candidate):
                return ResolvedSpecifier(path=candidate, is_local=True, found=True)

    for ext in extensions:
        candidate = _index_candidate(specifier, ext)
        if probe(candidate):
            return ResolvedSpecifier(path=candidate, is_local=True, found=True)

    return ResolvedSpecifier(path=specifier, is_local=True)


__all__ = [
    "DEFAULT_EXTENSIONS",
    "ExistsPredicate",
    "ResolvedSpecifier",
    "is_local_specifier",
    "resolve_specifier",
]
