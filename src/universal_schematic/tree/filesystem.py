import logging
from collections.abc import Iterator
from pathlib import Path

from universal_schematic.tree.paths import is_under, normalize_path

logger = logging.getLogger(__name__)

_SKIPPED_DIRECTORIES = frozenset({".git", "node_modules"})


class FileSystemTree:
    """Stage edits over a directory on disk until ``commit()``.

    Reads see staged writes and deletions first; nothing touches the disk
    before ``commit()``.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._staged: dict[str, str | None] = {}

    def _disk_path(self, key: str) -> Path:
        return self.root / key

    def read_text(self, path: str) -> str:
        key = normalize_path(path)
        if key in self._staged:
            staged = self._staged[key]
            if staged is None:
                raise FileNotFoundError(f"File not found: {path}")
            return staged
        try:
            return self._disk_path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            raise FileNotFoundError(f"File not found: {path}") from None

    def write_text(self, path: str, text: str) -> None:
        self._staged[normalize_path(path)] = text

    def delete(self, path: str) -> None:
        key = normalize_path(path)
        if not self.exists(key):
            raise FileNotFoundError(f"File not found: {path}")
        self._staged[key] = None

    def exists(self, path: str) -> bool:
        key = normalize_path(path)
        if key in self._staged:
            return self._staged[key] is not None
        return self._disk_path(key).is_file()

    def _disk_files(self, directory: str) -> Iterator[str]:
        base = self._disk_path(normalize_path(directory))
        if not base.is_dir():
            return
        for file_path in base.rglob("*"):
            relative = file_path.relative_to(self.root)
            if _SKIPPED_DIRECTORIES.intersection(relative.parts) or not file_path.is_file():
                continue
            yield relative.as_posix()

    def visit(self, directory: str) -> Iterator[str]:
        paths = set(self._disk_files(directory))
        for key, text in self._staged.items():
            if not is_under(key, directory):
                continue
            if text is None:
                paths.discard(key)
            else:
                paths.add(key)
        yield from sorted(paths)

    def changes(self) -> list[tuple[str, str]]:
        """Return ``(path, action)`` pairs for every staged change."""
        rows: list[tuple[str, str]] = []
        for key in sorted(self._staged):
            text = self._staged[key]
            if text is None:
                rows.append((key, "delete"))
            elif self._disk_path(key).is_file():
                rows.append((key, "overwrite"))
            else:
                rows.append((key, "create"))
        return rows

    def commit(self) -> int:
        """Write staged changes to disk and clear the stage."""
        for key, text in sorted(self._staged.items()):
            target = self._disk_path(key)
            if text is None:
                target.unlink(missing_ok=True)
                logger.debug("Deleted %s", target)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
            logger.debug("Wrote %s", target)
        count = len(self._staged)
        self._staged.clear()
        logger.info("Committed %d change(s) under %s", count, self.root)
        return count
