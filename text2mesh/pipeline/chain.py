"""Ordered fallback chains over generation tiers."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Sequence, Tuple, TypeVar

from text2mesh.services.errors import GenerationServiceError, RemoteServiceTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

# error_type recorded for tier failures outside the service error taxonomy
UNEXPECTED_ERROR = "unexpected"


class Stage:
    """One tier of a fallback chain.

    Subclasses implement ``attempt``. Remote tiers signal failure by raising
    a GenerationServiceError; any other exception is also treated as a tier
    failure. Terminal tiers must not raise.
    """

    name = "stage"

    async def attempt(self, payload: Any) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class StageOutcome(Generic[T]):
    """Value produced by a chain and which stage produced it."""

    value: T
    stage: str
    failures: Tuple[Tuple[str, str], ...] = ()

    @property
    def demoted(self) -> bool:
        return bool(self.failures)


class FallbackChain:
    """Tries stages in order and stops at the first success.

    Each stage is attempted at most once, under an optional time ceiling.
    When every stage fails the terminal stage runs and its value is returned.
    """

    def __init__(
        self,
        stages: Sequence[Stage],
        terminal: Stage,
        timeout: Optional[float] = None,
        label: str = "chain",
    ):
        self.stages = list(stages)
        self.terminal = terminal
        self.timeout = timeout
        self.label = label

    async def run(self, payload: Any) -> StageOutcome:
        failures: List[Tuple[str, str]] = []

        for stage in self.stages:
            try:
                value = await self._attempt(stage, payload)
            except GenerationServiceError as e:
                failures.append((stage.name, e.error_type))
                logger.warning(
                    f"{self.label}: tier '{stage.name}' failed ({e.error_type}): {e}; demoting"
                )
                continue
            except Exception:
                failures.append((stage.name, UNEXPECTED_ERROR))
                logger.exception(f"{self.label}: tier '{stage.name}' raised unexpectedly; demoting")
                continue
            return StageOutcome(value=value, stage=stage.name, failures=tuple(failures))

        logger.info(f"{self.label}: using terminal tier '{self.terminal.name}'")
        value = await self.terminal.attempt(payload)
        return StageOutcome(value=value, stage=self.terminal.name, failures=tuple(failures))

    async def _attempt(self, stage: Stage, payload: Any) -> Any:
        if self.timeout is None:
            return await stage.attempt(payload)
        try:
            return await asyncio.wait_for(stage.attempt(payload), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise RemoteServiceTimeout(
                f"tier '{stage.name}' exceeded {self.timeout}s ceiling"
            ) from e
