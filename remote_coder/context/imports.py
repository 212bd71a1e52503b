"""
Import resolver — finds intra-repository module references in JS/TS source.

Only relative references (``./`` and ``../``) are followed; bare module
names such as ``react`` live outside the repository and are dropped.
"""

from __future__ import annotations

import re

# import x from './a';  import { y } from "../b";  import './c';  export * from './d'
_IMPORT_RE = re.compile(
    r"""\b(?:import|export)\s+(?:[^'";]*?\s+from\s+)?['"]([^'"\n]+)['"]""",
)
# require('./e')
_REQUIRE_RE = re.compile(r"""\brequire\s*\(\s*['"]([^'"\n]+)['"]\s*\)""")

_RELATIVE_PREFIXES = ("./", "../")


def is_relative(reference: str) -> bool:
    return reference.startswith(_RELATIVE_PREFIXES)


def resolve_relative(reference: str, owner_path: str) -> str:
    """Resolve *reference* against the directory containing *owner_path*.

    >>> resolve_relative("../d", "a/b/c.ts")
    'a/d'
    """
    owner_dir = owner_path.split("/")[:-1]
    resolved: list[str] = []
    for part in owner_dir + reference.split("/"):
        if part == "..":
            if resolved:
                resolved.pop()
        elif part not in (".", ""):
            resolved.append(part)
    return "/".join(resolved)


def extract_references(content: str, owner_path: str) -> list[str]:
    """Return repo paths referenced by *content*, in source order.

    The list may contain duplicates; callers dedupe.  Paths are unresolved in
    the extension sense (``src/pricing``, not ``src/pricing.ts``).
    """
    raw: list[tuple[int, str]] = []
    for pattern in (_IMPORT_RE, _REQUIRE_RE):
        raw.extend((m.start(), m.group(1)) for m in pattern.finditer(content))
    raw.sort(key=lambda item: item[0])

    return [
        resolve_relative(reference, owner_path)
        for _pos, reference in raw
        if is_relative(reference)
    ]
