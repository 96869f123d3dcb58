from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


StepRole = Literal["basic", "configuration", "variable", "output_schema"]

BASE_STEPS = 2  # basic info + generation configuration


@dataclass(frozen=True)
class StepInfo:
    number: int
    total: int
    role: StepRole
    variable_index: int | None = None

    @property
    def is_last(self) -> bool:
        return self.number == self.total


def total_steps(variable_count: int, has_structured_output: bool) -> int:
    return BASE_STEPS + max(0, variable_count) + (1 if has_structured_output else 0)


def is_last_step(step: int, variable_count: int, has_structured_output: bool) -> bool:
    return step == total_steps(variable_count, has_structured_output)


def describe_step(step: int, variable_count: int, has_structured_output: bool) -> StepInfo:
    """Role of ``step`` (1-based) for the given variable count and schema flag.

    Order: basic info, configuration, one step per variable, then the output
    schema step when structured output is enabled.
    """
    total = total_steps(variable_count, has_structured_output)
    if not 1 <= step <= total:
        raise ValueError(f"Step {step} is outside 1..{total}")
    if step == 1:
        return StepInfo(step, total, "basic")
    if step == 2:
        return StepInfo(step, total, "configuration")
    if step <= BASE_STEPS + variable_count:
        return StepInfo(step, total, "variable", variable_index=step - BASE_STEPS - 1)
    return StepInfo(step, total, "output_schema")
