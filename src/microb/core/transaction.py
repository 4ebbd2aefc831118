"""
Ordered multi-step writes with compensation.

A Transaction is a list of named steps, each an action plus an optional
compensation. run() performs the actions in order; if one raises, the
compensations of the steps that already completed run in reverse order and a
TransactionError is raised carrying the failing step and the cause.

    txn = Transaction()
    txn.add("index", write_index, compensate=restore_index)
    txn.add("content", write_content)
    txn.run()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Step:
    """A single forward action and the action that undoes it."""

    name: str
    action: Callable[[], Any]
    compensate: Callable[[], Any] | None = None


@dataclass(eq=False)
class TransactionError(Exception):
    """A step failed; completed steps have been compensated."""

    step: str
    cause: BaseException
    compensated: list[str] = field(default_factory=list)
    compensation_errors: dict[str, BaseException] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(f"Step '{self.step}' failed: {self.cause}")

    def __str__(self) -> str:
        return f"Step '{self.step}' failed: {self.cause}"

    @property
    def fully_compensated(self) -> bool:
        return not self.compensation_errors


class Transaction:
    """Runs steps in order, compensating completed steps on failure."""

    def __init__(self) -> None:
        self.steps: list[Step] = []
        self.completed: list[Step] = []
        self.results: dict[str, Any] = {}

    def add(
        self,
        name: str,
        action: Callable[[], Any],
        compensate: Callable[[], Any] | None = None,
    ) -> Transaction:
        """Append a step. Returns self so calls can be chained."""
        self.steps.append(Step(name, action, compensate))
        return self

    def run(self) -> dict[str, Any]:
        """Execute all steps.

        Returns:
            Mapping of step name to the value its action returned

        Raises:
            TransactionError: If any action raises
        """
        for step in self.steps:
            try:
                self.results[step.name] = step.action()
            except Exception as e:
                logger.warning("Transaction step '%s' failed: %s", step.name, e)
                raise self._rollback(step.name, e) from e
            self.completed.append(step)
        return self.results

    def _rollback(self, failed: str, cause: Exception) -> TransactionError:
        error = TransactionError(step=failed, cause=cause)
        for step in reversed(self.completed):
            if step.compensate is None:
                continue
            try:
                step.compensate()
                error.compensated.append(step.name)
                logger.info("Compensated step '%s'", step.name)
            except Exception as comp_error:
                logger.error("Compensation for step '%s' failed: %s", step.name, comp_error)
                error.compensation_errors[step.name] = comp_error
        self.completed.clear()
        return error
