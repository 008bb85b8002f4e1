from universal_schematic.tree.filesystem import FileSystemTree
from universal_schematic.tree.memory import InMemoryTree
from universal_schematic.tree.paths import normalize_path

__all__ = [
    "FileSystemTree",
    "InMemoryTree",
    "normalize_path",
]
