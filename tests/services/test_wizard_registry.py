from __future__ import annotations

import pytest

from prompt_studio.services.prompt_submission import PromptSubmitter
from prompt_studio.services.wizard_registry import (
    WizardLimitError,
    WizardNotFoundError,
    WizardRegistry,
)


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class _NullWriter:
    def create_prompt(self, payload):
        return {"id": 1, **payload.to_body()}

    def update_prompt(self, prompt_id, payload):
        return {"id": prompt_id, **payload.to_body()}


def _registry(clock: _Clock, *, max_open: int = 3) -> WizardRegistry:
    return WizardRegistry(
        max_open=max_open,
        default_max_tokens=1000,
        default_temperature=0.3,
        idle_ttl_s=60.0,
        clock=clock,
    )


def _open(registry: WizardRegistry):
    return registry.open(project_id=1, submitter=PromptSubmitter(_NullWriter()))


def test_new_wizards_get_configured_defaults() -> None:
    registry = _registry(_Clock())
    wizard_id, wizard = _open(registry)

    assert registry.get(wizard_id) is wizard
    assert wizard.draft.max_tokens == 1000
    assert wizard.draft.temperature == 0.3


def test_cap_applies_while_wizards_are_active() -> None:
    clock = _Clock()
    registry = _registry(clock)
    for _ in range(3):
        _open(registry)

    clock.now += 30
    with pytest.raises(WizardLimitError):
        _open(registry)
    assert len(registry) == 3


def test_abandoned_wizards_are_evicted_before_the_cap_check() -> None:
    clock = _Clock()
    registry = _registry(clock)
    opened = [_open(registry) for _ in range(3)]

    clock.now += 61
    wizard_id, _ = _open(registry)

    assert len(registry) == 1
    assert registry.get(wizard_id) is not None
    for old_id, old_wizard in opened:
        assert old_wizard.status == "cancelled"
        with pytest.raises(WizardNotFoundError):
            registry.get(old_id)


def test_lookup_keeps_a_wizard_alive() -> None:
    clock = _Clock()
    registry = _registry(clock, max_open=2)
    kept_id, _ = _open(registry)
    _open(registry)

    clock.now += 45
    registry.get(kept_id)
    clock.now += 30
    _open(registry)

    assert len(registry) == 2
    assert registry.get(kept_id).status == "open"


def test_closed_wizards_are_released() -> None:
    registry = _registry(_Clock())
    wizard_id, wizard = _open(registry)
    wizard.cancel()

    registry.release_if_closed(wizard_id)

    assert len(registry) == 0
    with pytest.raises(WizardNotFoundError):
        registry.get(wizard_id)
