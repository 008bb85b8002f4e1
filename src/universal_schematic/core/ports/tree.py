from collections.abc import Iterator
from typing import Protocol


class StagedTree(Protocol):
    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, text: str) -> None: ...

    def delete(self, path: str) -> None: ...

    def exists(self, path: str) -> bool: ...

    def visit(self, directory: str) -> Iterator[str]: ...
