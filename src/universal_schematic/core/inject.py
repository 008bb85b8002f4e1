import logging
import re

from universal_schematic.core.patch import apply_edits
from universal_schematic.core.ports.tree import StagedTree
from universal_schematic.core.scanner import scan_references
from universal_schematic.core.syntax import SourceDocument
from universal_schematic.core.wiring import receives_dependency, register_constructor_dependency
from universal_schematic.models import Capability, InjectionResult, TargetReference

logger = logging.getLogger(__name__)


def has_candidate_reference(text: str, name: str) -> bool:
    """Cheap lexical gate: ``name`` after a boundary character somewhere past a class opening."""
    pattern = r"class.*{[\s\S]*?[()'\"`\s]" + re.escape(name)
    return re.search(pattern, text) is not None


def inject_dependency(
    tree: StagedTree,
    path: str,
    name: str,
    capability: Capability,
    prefix: str = "this.",
) -> InjectionResult:
    """Route free uses of the global ``name`` in ``path`` through an injected member."""
    if not has_candidate_reference(tree.read_text(path), name):
        logger.debug("%s: no candidate reference to '%s'", path, name)
        return InjectionResult(path=path, name=name, matched=False)

    register_constructor_dependency(
        tree,
        path,
        name,
        capability.type_label,
        capability.provider_module,
        capability.provider_token,
    )

    document = SourceDocument.load(tree, path)
    spans = scan_references(
        document,
        TargetReference(name=name, prefix=prefix),
        include=lambda class_node: receives_dependency(document, class_node, name),
    )
    if spans:
        document.replace_text(apply_edits(document.text, spans))
        document.save(tree)
        logger.info("%s: qualified %d reference(s) to '%s'", path, len(spans), name)
    return InjectionResult(path=path, name=name, matched=True, edits=len(spans))
