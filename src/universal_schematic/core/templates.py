import logging
import posixpath
from collections.abc import Iterator
from pathlib import Path

from universal_schematic.core.ports.tree import StagedTree

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


def iter_template_files(template: str) -> Iterator[tuple[str, str]]:
    """Yield ``(relative_path, text)`` for every file of a template set."""
    root = _TEMPLATES_DIR / template
    if not root.is_dir():
        raise FileNotFoundError(f"Template set not found: {root}")
    for file_path in sorted(root.rglob("*")):
        if file_path.is_file():
            yield file_path.relative_to(root).as_posix(), file_path.read_text(encoding="utf-8")


def merge_templates(tree: StagedTree, template: str, destination: str) -> list[str]:
    """Copy a template set under ``destination``, overwriting existing files."""
    written: list[str] = []
    for relative_path, text in iter_template_files(template):
        path = posixpath.normpath(posixpath.join(destination, relative_path))
        if tree.exists(path):
            logger.debug("Overwriting %s", path)
        tree.write_text(path, text)
        written.append(path)
    logger.info("Merged %d template file(s) into %s", len(written), destination)
    return written
