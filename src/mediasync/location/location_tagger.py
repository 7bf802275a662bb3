"""Best-effort location tagging around an external position provider."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..exceptions import LocationError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class LocationFix:
    """Coordinate snapshot reported by the device."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp: int


class LocationProvider(ABC):
    """Platform capability supplying the current position."""

    @abstractmethod
    async def current_position(self) -> LocationFix:
        """Return a fix or raise; may be arbitrarily slow."""


@dataclass(slots=True)
class LocationTagger:
    """Bound the provider call and classify its failures as :class:`LocationError`."""

    provider: LocationProvider
    timeout_seconds: float = 10.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def fix(self) -> LocationFix:
        try:
            return await asyncio.wait_for(
                self.provider.current_position(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise LocationError(
                f"no location fix within {self.timeout_seconds:.1f}s"
            ) from exc
        except LocationError:
            raise
        except Exception as exc:
            raise LocationError(f"location provider failed: {exc}") from exc

    async def try_fix(self) -> LocationFix | None:
        """Return a fix, or ``None`` when the provider failed or timed out."""
        try:
            return await self.fix()
        except LocationError as exc:
            self.log.warning("location.fix.unavailable", extra={"error": str(exc)})
            return None
