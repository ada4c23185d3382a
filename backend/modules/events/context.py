"""
Process-wide analytics state.

The user context and the current flow stage are shared by every emitter.
All writes go through the methods here; readers get immutable snapshots.
"""

import logging
from typing import Any, Optional, Union

from shared.models import FlowStage
from modules.session import UserContext

logger = logging.getLogger(__name__)


class AnalyticsContext:
    """Holder of the mutable analytics state."""

    def __init__(
        self,
        user_context: Optional[UserContext] = None,
        flow_stage: FlowStage = FlowStage.VISIT,
        current_path: str = "/",
        viewport_width: Optional[float] = None,
    ):
        self._user_context = user_context
        self._flow_stage = FlowStage(flow_stage)
        self._current_path = current_path
        self.viewport_width = viewport_width
        self.initialized = False

    @property
    def user_context(self) -> Optional[UserContext]:
        return self._user_context

    @property
    def flow_stage(self) -> FlowStage:
        return self._flow_stage

    @property
    def current_path(self) -> str:
        return self._current_path

    def update_user_context(self, **updates: Any) -> UserContext:
        """
        Replace the user context with a copy carrying the updates.

        The merged values are re-validated, so an update can never introduce
        an email or phone number as the anonymous id.

        Raises:
            pydantic.ValidationError: If the merged context is invalid
        """
        current = self._user_context.model_dump() if self._user_context else {}
        self._user_context = UserContext(**{**current, **updates})
        return self._user_context

    def set_flow_stage(self, stage: Union[FlowStage, str]) -> FlowStage:
        self._flow_stage = FlowStage(stage)
        logger.debug(f"Flow stage set to {self._flow_stage.value}")
        return self._flow_stage

    def set_current_path(self, path: str) -> None:
        self._current_path = path or "/"

    def reset(self, anonymous_id: str) -> UserContext:
        """Return to the signed-out state at the start of the journey."""
        self._flow_stage = FlowStage.VISIT
        return self.update_user_context(
            anonymous_id=anonymous_id,
            user_role="unknown",
            is_authenticated=False,
            profile_completion_bucket=0,
        )

    def snapshot(self) -> dict[str, Any]:
        return {
            "initialized": self.initialized,
            "user_context": self._user_context.model_dump(mode="json") if self._user_context else None,
            "flow_stage": self._flow_stage.value,
            "current_path": self._current_path,
            "viewport_width": self.viewport_width,
        }
