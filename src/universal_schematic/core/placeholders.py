import logging
import re
from collections.abc import Mapping

from universal_schematic.core.ports.tree import StagedTree

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"__([A-Za-z_][A-Za-z0-9_]*?)__")


def find_placeholders(text: str) -> set[str]:
    """Return the names of all ``__name__`` tokens left in ``text``."""
    return set(_PLACEHOLDER_RE.findall(text))


def substitute_placeholders(text: str, values: Mapping[str, str]) -> str:
    """Replace every literal ``__name__`` whose name is in ``values``.

    Substitution is a single pass, so a resolved value that itself looks like
    a placeholder is never expanded again.
    """
    if not values:
        return text
    tokens = sorted((f"__{name}__" for name in values), key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(token) for token in tokens))
    return pattern.sub(lambda match: values[match.group(0)[2:-2]], text)


def materialize_placeholders(tree: StagedTree, path: str, values: Mapping[str, str]) -> str:
    """Resolve placeholders in the file at ``path`` and write it back."""
    text = substitute_placeholders(tree.read_text(path), values)
    tree.write_text(path, text)
    unresolved = find_placeholders(text)
    if unresolved:
        logger.warning("%s: unresolved placeholder(s) %s", path, ", ".join(sorted(unresolved)))
    return text
