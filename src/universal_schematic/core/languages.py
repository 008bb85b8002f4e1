from pathlib import PurePosixPath

_LANGUAGE_ALIASES = {
    "javascript": "javascript",
    "js": "javascript",
    "ts": "typescript",
    "tsx": "tsx",
    "typescript": "typescript",
}

_EXTENSION_LANGUAGE_MAP = {
    ".cjs": "javascript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

_SUPPORTED_LANGUAGES = set(_LANGUAGE_ALIASES.values())


def normalize_language(language: str) -> str:
    normalized = language.strip().lower()
    resolved = _LANGUAGE_ALIASES.get(normalized, normalized)
    if resolved not in _SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language '{language}'. Supported: {sorted(_SUPPORTED_LANGUAGES)}")
    return resolved


def detect_language_from_path(path: str) -> str:
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in _EXTENSION_LANGUAGE_MAP:
        return _EXTENSION_LANGUAGE_MAP[suffix]
    raise ValueError(f"Unsupported file extension: {suffix}")


def resolve_language(language: str | None, path: str | None) -> str:
    if language:
        return normalize_language(language)
    if path:
        return detect_language_from_path(path)
    raise ValueError("Language must be provided when no file path is available.")


def is_typescript_source(path: str) -> bool:
    """Return True for ``.ts`` sources that are not declaration files."""
    return path.endswith(".ts") and not path.endswith(".d.ts")
