"""Output name templating."""

import posixpath
import re
from dataclasses import asdict, dataclass
from typing import Dict

from ..config import FilenameSpec

NAME_PATTERN = re.compile(r"^([^?#]*)(\?[^#]*)?(#.*)?$")
TOKEN_PATTERN = re.compile(r"\[(file|query|fragment|path|base|name|ext)\]")
CONTENT_TOKEN_PATTERN = re.compile(r"\[(name|base|file)\]")


@dataclass(frozen=True)
class PathParts:
    """Components of an asset name such as ``js/app.min.js?v=2#top``."""

    file: str
    query: str
    fragment: str
    path: str
    base: str
    name: str
    ext: str

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


def split_path(asset_name: str) -> PathParts:
    """Split an asset name on query, fragment, directory and extension."""
    match = NAME_PATTERN.match(asset_name)
    # The pattern matches any string without a newline; keep those whole
    file, query, fragment = match.groups() if match else (asset_name, None, None)

    base = posixpath.basename(file)
    ext = posixpath.splitext(base)[1]

    return PathParts(
        file=file,
        query=query or "",
        fragment=fragment or "",
        path=file[: len(file) - len(base)],
        base=base,
        name=base[: len(base) - len(ext)],
        ext=ext,
    )


def resolve_template(pattern: FilenameSpec, parts: PathParts) -> str:
    """Return the template string, calling ``pattern`` if it is a function."""
    if callable(pattern):
        return pattern(parts)
    return pattern


def substitute_tokens(template: str, parts: PathParts) -> str:
    """Replace known ``[tokens]``; unknown ones are left as they are."""
    values = parts.as_dict()
    return TOKEN_PATTERN.sub(lambda m: values[m.group(1)], template)


def render_filename(pattern: FilenameSpec, parts: PathParts) -> str:
    """Render an output name from a pattern and the original's path parts."""
    return substitute_tokens(resolve_template(pattern, parts), parts)


def keeps_content_name(template: str) -> bool:
    """Whether a template carries a token derived from the original name."""
    return CONTENT_TOKEN_PATTERN.search(template) is not None
