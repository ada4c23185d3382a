"""
Funnel registry and route-to-step matcher.

Every route pattern is compiled once when the registry is built. Lookups
walk steps and patterns in declaration order and return the first match;
there is no specificity ranking.
"""

import logging
import re
from typing import Iterable, Mapping, Optional

from .definitions import DEFAULT_ALIASES, DEFAULT_FUNNELS
from .exceptions import InvalidFunnelError, UnknownFunnelError
from .models import FunnelDefinition, FunnelStep
from .routes import compile_route_pattern, normalize_path

logger = logging.getLogger(__name__)


class FunnelRegistry:
    """
    Static table of funnels with route matching and navigation queries.

    Unknown funnel or step ids never raise from the query methods; they
    return None, an empty list or 0. Use require_funnel for a strict lookup.
    """

    def __init__(
        self,
        funnels: Iterable[FunnelDefinition] = DEFAULT_FUNNELS,
        aliases: Optional[Mapping[str, str]] = None,
    ):
        """
        Args:
            funnels: Funnel definitions in declaration order
            aliases: Alternative ids mapping to registered funnel ids

        Raises:
            InvalidFunnelError: On duplicate funnel ids or dangling aliases
        """
        self._funnels: dict[str, FunnelDefinition] = {}
        self._matchers: dict[str, list[tuple[FunnelStep, list[re.Pattern[str]]]]] = {}

        for funnel in funnels:
            if funnel.id in self._funnels:
                raise InvalidFunnelError(funnel.id, "duplicate funnel id")
            self._funnels[funnel.id] = funnel
            self._matchers[funnel.id] = [
                (step, [compile_route_pattern(route) for route in step.routes])
                for step in funnel.steps
            ]

        self._aliases = dict(DEFAULT_ALIASES if aliases is None else aliases)
        for alias, target in self._aliases.items():
            if target not in self._funnels:
                raise InvalidFunnelError(alias, f"alias points at unknown funnel '{target}'")

        logger.debug(f"Registered {len(self._funnels)} funnels")

    def _resolve(self, funnel_id: str) -> Optional[str]:
        if funnel_id in self._funnels:
            return funnel_id
        return self._aliases.get(funnel_id)

    def get_funnel(self, funnel_id: str) -> Optional[FunnelDefinition]:
        """Look up a funnel by id or alias."""
        resolved = self._resolve(funnel_id)
        return self._funnels[resolved] if resolved else None

    def require_funnel(self, funnel_id: str) -> FunnelDefinition:
        """
        Look up a funnel by id or alias.

        Raises:
            UnknownFunnelError: If the id is not registered
        """
        funnel = self.get_funnel(funnel_id)
        if funnel is None:
            raise UnknownFunnelError(funnel_id)
        return funnel

    def list_funnels(self) -> list[FunnelDefinition]:
        return list(self._funnels.values())

    def get_current_funnel_step(self, funnel_id: str, path: str) -> Optional[FunnelStep]:
        """
        Find the step of a funnel that the path belongs to.

        Args:
            funnel_id: Funnel id or alias
            path: Current route, query string and trailing slash allowed

        Returns:
            The first step (in declared order) with a matching pattern, or None
        """
        resolved = self._resolve(funnel_id)
        if resolved is None:
            return None

        normalized = normalize_path(path)
        for step, patterns in self._matchers[resolved]:
            for pattern in patterns:
                if pattern.fullmatch(normalized):
                    return step
        return None

    def get_funnel_progress(self, funnel_id: str, step_id: str) -> int:
        """Completion percentage of a step, rounded half up. 0 when unknown."""
        funnel = self.get_funnel(funnel_id)
        if funnel is None:
            return 0
        index = funnel.step_index(step_id)
        if index == -1:
            return 0
        position = funnel.steps[index].position
        return int(100 * position / funnel.total_steps + 0.5)

    def get_next_step(self, funnel_id: str, step_id: str) -> Optional[FunnelStep]:
        """The step after step_id, or None for the last or an unknown step."""
        funnel = self.get_funnel(funnel_id)
        if funnel is None:
            return None
        index = funnel.step_index(step_id)
        if index == -1 or index == funnel.total_steps - 1:
            return None
        return funnel.steps[index + 1]

    def get_previous_steps(self, funnel_id: str, step_id: str) -> list[FunnelStep]:
        """All steps before step_id, in order."""
        funnel = self.get_funnel(funnel_id)
        if funnel is None:
            return []
        index = funnel.step_index(step_id)
        if index == -1:
            return []
        return list(funnel.steps[:index])

    def match_all(self, path: str) -> list[tuple[FunnelDefinition, FunnelStep]]:
        """First matching step of every funnel, in funnel declaration order."""
        matches = []
        for funnel_id, funnel in self._funnels.items():
            step = self.get_current_funnel_step(funnel_id, path)
            if step is not None:
                matches.append((funnel, step))
        return matches


# Module-level instance getter
_registry: Optional[FunnelRegistry] = None


def get_funnel_registry() -> FunnelRegistry:
    """Get the funnel registry singleton built from the default funnels."""
    global _registry
    if _registry is None:
        _registry = FunnelRegistry()
    return _registry


def reset_funnel_registry() -> None:
    """Reset the registry singleton (for testing)."""
    global _registry
    _registry = None
