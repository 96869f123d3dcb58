from __future__ import annotations

from functools import lru_cache
import logging
import threading
import time
import uuid
from typing import Callable

from ..core.config import settings
from ..schemas.prompts import Prompt, PromptDraft
from .prompt_submission import PromptSubmitter
from .prompt_wizard import PromptWizard, WizardError


log = logging.getLogger("studio.services.wizard_registry")


class WizardNotFoundError(KeyError):
    """Raised when a wizard id is unknown (never opened, or already closed)."""


class WizardLimitError(WizardError):
    """Raised when opening one more wizard would exceed WIZARD_MAX_OPEN."""


class WizardRegistry:
    """In-memory map of open wizards, one independent draft each.

    Every lookup refreshes a wizard's last-touched time. Open wizards left
    idle for ``idle_ttl_s`` are evicted before the open cap is checked, so
    abandoned dialogs do not hold slots forever.
    """

    def __init__(
        self,
        *,
        max_open: int,
        default_max_tokens: int,
        default_temperature: float,
        idle_ttl_s: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_open = max_open
        self.default_max_tokens = default_max_tokens
        self.default_temperature = default_temperature
        self.idle_ttl_s = idle_ttl_s
        self._clock = clock
        self._wizards: dict[str, PromptWizard] = {}
        self._touched: dict[str, float] = {}
        self._lock = threading.Lock()

    def open(
        self,
        *,
        project_id: int,
        submitter: PromptSubmitter,
        seed: Prompt | None = None,
        on_completed: Callable[[], None] | None = None,
    ) -> tuple[str, PromptWizard]:
        draft = None
        if seed is None:
            draft = PromptDraft(
                max_tokens=self.default_max_tokens,
                temperature=self.default_temperature,
            )
        wizard = PromptWizard(
            project_id=project_id,
            submitter=submitter,
            seed=seed,
            draft=draft,
            on_completed=on_completed,
        )
        wizard_id = uuid.uuid4().hex
        with self._lock:
            self._evict_idle()
            if len(self._wizards) >= self.max_open:
                raise WizardLimitError(f"Too many open wizards (max {self.max_open})")
            self._wizards[wizard_id] = wizard
            self._touched[wizard_id] = self._clock()
        log.info(
            "Wizard %s opened (mode=%s, project=%s, prompt=%s)",
            wizard_id,
            wizard.mode,
            project_id,
            wizard.prompt_id,
        )
        return wizard_id, wizard

    def get(self, wizard_id: str) -> PromptWizard:
        with self._lock:
            wizard = self._wizards.get(wizard_id)
            if wizard is not None:
                self._touched[wizard_id] = self._clock()
        if wizard is None:
            raise WizardNotFoundError(f"Wizard not found: {wizard_id}")
        return wizard

    def release_if_closed(self, wizard_id: str) -> None:
        with self._lock:
            wizard = self._wizards.get(wizard_id)
            if wizard is not None and wizard.status != "open":
                del self._wizards[wizard_id]
                self._touched.pop(wizard_id, None)
                log.info("Wizard %s released (%s)", wizard_id, wizard.status)

    def _evict_idle(self) -> None:
        # Caller holds self._lock
        cutoff = self._clock() - self.idle_ttl_s
        for wizard_id, touched in list(self._touched.items()):
            wizard = self._wizards[wizard_id]
            if touched > cutoff or wizard.submitting:
                continue
            del self._wizards[wizard_id]
            del self._touched[wizard_id]
            if wizard.status == "open":
                wizard.cancel()
            log.info("Wizard %s evicted after %.0fs idle", wizard_id, self.idle_ttl_s)

    def __len__(self) -> int:
        with self._lock:
            return len(self._wizards)


@lru_cache
def get_wizard_registry() -> WizardRegistry:
    return WizardRegistry(
        max_open=settings.wizard_max_open,
        default_max_tokens=settings.prompt_default_max_tokens,
        default_temperature=settings.prompt_default_temperature,
        idle_ttl_s=settings.wizard_idle_ttl_s,
    )
