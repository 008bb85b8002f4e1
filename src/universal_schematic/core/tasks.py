import logging
from collections.abc import Iterator
from typing import Any

from universal_schematic.models import FollowUpTask

logger = logging.getLogger(__name__)


class TaskQueue:
    """Follow-up work recorded by pipeline steps, run after the tree is committed."""

    def __init__(self) -> None:
        self.tasks: list[FollowUpTask] = []

    def queue(self, task: FollowUpTask) -> None:
        if task in self.tasks:
            logger.debug("Task already queued: %s", task.kind)
            return
        self.tasks.append(task)
        logger.info("Queued %s task for %s", task.kind, task.directory)

    def __iter__(self) -> Iterator[FollowUpTask]:
        return iter(self.tasks)

    def __len__(self) -> int:
        return len(self.tasks)


def node_package_install(directory: str) -> FollowUpTask:
    return FollowUpTask(kind="node-package-install", directory=directory)


def external_schematic(directory: str, package: str, schematic: str, options: dict[str, Any]) -> FollowUpTask:
    return FollowUpTask(
        kind="external-schematic",
        directory=directory,
        package=package,
        schematic=schematic,
        options=options,
    )
