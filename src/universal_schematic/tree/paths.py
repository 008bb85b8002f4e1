import posixpath


def normalize_path(path: str) -> str:
    """Normalize a tree path to a POSIX path relative to the tree root."""
    normalized = posixpath.normpath(path.replace("\\", "/")).lstrip("/")
    if normalized.startswith("../") or normalized == "..":
        raise ValueError(f"Path escapes the tree root: {path}")
    return normalized


def is_under(path: str, directory: str) -> bool:
    directory = normalize_path(directory)
    return directory == "." or path == directory or path.startswith(directory + "/")
