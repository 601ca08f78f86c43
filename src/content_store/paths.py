"""Path validation and manipulation for the virtual filesystem.

Paths are '/'-separated, case-sensitive and relative to the repository root.
The root itself is the empty string. Leading and trailing slashes are
stripped; empty, '.' and '..' segments are rejected so that a path can never
escape the repository or alias another path.
"""

from .errors import InvalidPathError

ROOT = ""

# Characters that are never valid in a store path
_FORBIDDEN_CHARS = ("\\", "\0", "\n", "\r")


def normalize_path(path: str, allow_root: bool = True) -> str:
    """Validate and normalize a store path.

    Args:
        path: Path as supplied by a caller (may carry surrounding slashes)
        allow_root: If False, the empty root path is rejected

    Returns:
        Normalized path without leading/trailing slashes

    Raises:
        InvalidPathError: If the path is malformed
    """
    if path is None:
        raise InvalidPathError("", "path is required")
    if not isinstance(path, str):
        raise InvalidPathError(str(path), "path must be a string")

    for char in _FORBIDDEN_CHARS:
        if char in path:
            raise InvalidPathError(path, f"contains forbidden character {char!r}")

    normalized = path.strip().strip("/")
    if not normalized:
        if not allow_root:
            raise InvalidPathError(path, "path is required")
        return ROOT

    for segment in normalized.split("/"):
        if segment in ("", ".", ".."):
            raise InvalidPathError(path, f"invalid segment '{segment}'")
        if segment != segment.strip():
            raise InvalidPathError(path, f"segment '{segment}' has surrounding whitespace")

    return normalized


def join_path(parent: str, name: str) -> str:
    """Join a parent path and a child name."""
    if not parent:
        return name
    return f"{parent}/{name}"


def parent_path(path: str) -> str:
    """Return the parent of ``path`` (the root for top-level entries)."""
    if "/" not in path:
        return ROOT
    return path.rsplit("/", 1)[0]


def base_name(path: str) -> str:
    """Return the last segment of ``path``."""
    return path.rsplit("/", 1)[-1]


def sibling_path(path: str, new_name: str) -> str:
    """Return the path obtained by renaming the last segment of ``path``.

    Raises:
        InvalidPathError: If ``new_name`` is empty or contains a slash
    """
    if new_name is None or not new_name.strip():
        raise InvalidPathError(path, "new name is required")
    if "/" in new_name:
        raise InvalidPathError(new_name, "a name cannot contain '/'")
    return normalize_path(join_path(parent_path(path), new_name.strip()))


def is_within(path: str, ancestor: str) -> bool:
    """Return True if ``path`` equals ``ancestor`` or lies below it."""
    if not ancestor:
        return True
    return path == ancestor or path.startswith(ancestor + "/")


def rebase_path(path: str, old_root: str, new_root: str) -> str:
    """Re-root ``path`` from ``old_root`` to ``new_root``.

    Example:
        >>> rebase_path("a/b/y/z", "a/b", "a/c")
        'a/c/y/z'
    """
    if not is_within(path, old_root):
        raise InvalidPathError(path, f"not below '{old_root}'")
    suffix = path[len(old_root):].lstrip("/") if old_root else path
    if not suffix:
        return new_root
    return join_path(new_root, suffix)
