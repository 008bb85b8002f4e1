from collections.abc import Iterator, Mapping

from universal_schematic.tree.paths import is_under, normalize_path


class InMemoryTree:
    """Staged tree held entirely in memory, keyed by normalized path."""

    def __init__(self, files: Mapping[str, str] | None = None) -> None:
        self.files: dict[str, str] = {}
        for path, text in (files or {}).items():
            self.write_text(path, text)

    def read_text(self, path: str) -> str:
        key = normalize_path(path)
        try:
            return self.files[key]
        except KeyError:
            raise FileNotFoundError(f"File not found: {path}") from None

    def write_text(self, path: str, text: str) -> None:
        self.files[normalize_path(path)] = text

    def delete(self, path: str) -> None:
        key = normalize_path(path)
        if key not in self.files:
            raise FileNotFoundError(f"File not found: {path}")
        del self.files[key]

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self.files

    def visit(self, directory: str) -> Iterator[str]:
        for path in sorted(self.files):
            if is_under(path, directory):
                yield path
