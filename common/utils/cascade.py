"""
Best-effort cascades.

A cascade is an ordered list of named async steps touching different
collections. There is no transaction around them: every step runs even if an
earlier one failed, failures are logged and captured, and the caller decides
what a partial result means.

Example:
    cascade = Cascade("delete user 42")
    cascade.add("groups", remove_from_groups)
    cascade.add("messages", delete_messages)
    result = await cascade.run()
    if not result.ok:
        print(result.failed_steps)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

CascadeStep = Callable[[], Awaitable[Any]]


@dataclass
class CascadeResult:
    """Outcome of a cascade run."""

    name: str
    completed: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def failed_steps(self) -> List[str]:
        return list(self.errors)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "completedSteps": list(self.completed),
            "failedSteps": self.failed_steps,
            "errors": dict(self.errors),
        }


class Cascade:
    """Ordered, independent, best-effort steps."""

    def __init__(self, name: str):
        self.name = name
        self._steps: List[Tuple[str, CascadeStep]] = []

    def add(self, step_name: str, step: CascadeStep) -> "Cascade":
        if any(existing == step_name for existing, _ in self._steps):
            raise ValueError(f"Duplicate cascade step: {step_name}")
        self._steps.append((step_name, step))
        return self

    @property
    def step_names(self) -> List[str]:
        return [step_name for step_name, _ in self._steps]

    async def run(self) -> CascadeResult:
        result = CascadeResult(name=self.name)

        for step_name, step in self._steps:
            try:
                result.completed[step_name] = await step()
            except Exception as e:
                logger.error(f"Cascade '{self.name}' step '{step_name}' failed: {e}")
                result.errors[step_name] = str(e)

        if result.ok:
            logger.info(f"Cascade '{self.name}' completed {len(result.completed)} steps")
        else:
            logger.warning(
                f"Cascade '{self.name}' finished with failures: "
                f"{', '.join(result.failed_steps)}"
            )

        return result
