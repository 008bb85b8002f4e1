import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from universal_schematic.core.diagnostics import report
from universal_schematic.core.ports.tree import StagedTree
from universal_schematic.core.tasks import TaskQueue
from universal_schematic.models import BootstrapComponent, EntryModule, InjectionResult, UniversalOptions

logger = logging.getLogger(__name__)


@dataclass
class RuleContext:
    """State shared by the steps of one pipeline run over one staged tree."""

    tree: StagedTree
    options: UniversalOptions
    tasks: TaskQueue = field(default_factory=TaskQueue)
    entry_module: EntryModule | None = None
    bootstrap_components: list[BootstrapComponent] = field(default_factory=list)
    dist_folder: str | None = None
    injections: list[InjectionResult] = field(default_factory=list)


@dataclass(frozen=True)
class Step:
    name: str
    run: Callable[[RuleContext], None]


class Pipeline:
    """Run named steps in declared order, stopping at the first failure.

    Edits made by completed steps are not rolled back.
    """

    def __init__(self, steps: Sequence[Step]) -> None:
        names = [step.name for step in steps]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate step names: {duplicates}")
        self.steps = list(steps)

    def run(self, context: RuleContext) -> list[str]:
        completed: list[str] = []
        for step in self.steps:
            logger.info("Running step %s", step.name)
            try:
                step.run(context)
            except Exception as exc:
                logger.error("Step %s failed: %s", step.name, exc)
                if not context.options.disable_diagnostics:
                    report(
                        "step_failed",
                        {
                            "step": step.name,
                            "error": repr(exc),
                            "completed": list(completed),
                            "options": context.options.model_dump(),
                        },
                    )
                raise
            completed.append(step.name)
        return completed
