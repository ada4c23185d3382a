"""
Experiment assignment service.

Users are placed in variants deterministically: the same assignment seed
and experiment id always hash to the same bucket. Assignments are kept in
persistent client storage so a user stays in their variant, and the first
assignment and any conversion are reported as steps of the "experiment"
funnel.

Storage failures never reach the caller; assignments then live on the
service for its lifetime.
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from modules.privacy import buckets
from modules.session import IClientStorage, StorageUnavailableError, hash_identifier
from shared.models import UserRole

from .definitions import DEFAULT_EXPERIMENTS
from .models import ExperimentAssignment, ExperimentConfig, StoredAssignments

if TYPE_CHECKING:
    from modules.events import Analytics

logger = logging.getLogger(__name__)

EXPERIMENTS_STORAGE_KEY = "carpool_experiments"
EXPERIMENT_FUNNEL = "experiment"

# Conversion values leave the pipeline bucketed like every other number
CONVERSION_VALUE_BOUNDARIES = (1, 10, 50, 100, 500)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def assign_variant(experiment: ExperimentConfig, user_id: str) -> str:
    """
    Pick a variant for a user.

    Users whose bucket (0-99) is outside the traffic allocation get the
    control. The rest are placed by cumulative variant weight on a finer
    0-99.99 scale.
    """
    h = abs(hash_identifier(f"{user_id}:{experiment.id}"))
    if h % 100 >= experiment.traffic_allocation:
        return experiment.control.id

    position = (h % 10000) / 100
    cumulative = 0.0
    for variant in experiment.variants:
        cumulative += variant.weight
        if position < cumulative:
            return variant.id
    return experiment.variants[-1].id


class ExperimentService:
    """
    Feature flags and A/B assignments.

    Example:
        experiments = ExperimentService(analytics, FileStorage("ids.json"))
        assignment = experiments.get_experiment("cta_copy_test")
        if assignment and assignment.variant_id == "benefit":
            ...
        experiments.track_conversion("cta_copy_test", "ride_search")
    """

    def __init__(
        self,
        analytics: "Analytics",
        storage: Optional[IClientStorage] = None,
        experiments: Iterable[ExperimentConfig] = DEFAULT_EXPERIMENTS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            analytics: Façade used to report assignments and conversions
            storage: Persistent store for assignments. Defaults to the
                     session manager's persistent storage.
            experiments: Experiment table
            clock: Returns the current UTC datetime
        """
        self._analytics = analytics
        self._storage = storage if storage is not None else analytics.session.persistent_storage
        self._experiments = {experiment.id: experiment for experiment in experiments}
        self._clock = clock or _utc_now
        self._fallback: Optional[StoredAssignments] = None

    def list_experiments(self) -> list[ExperimentConfig]:
        return list(self._experiments.values())

    def get_config(self, experiment_id: str) -> Optional[ExperimentConfig]:
        return self._experiments.get(experiment_id)

    # =========================================================================
    # Assignment
    # =========================================================================

    def get_experiment(self, experiment_id: str) -> Optional[ExperimentAssignment]:
        """
        Return the user's assignment, assigning and reporting it on first use.

        Returns:
            None when the experiment is unknown, disabled, outside its date
            window, or targets segments the current user is not in
        """
        experiment = self._experiments.get(experiment_id)
        if experiment is None or not experiment.enabled:
            return None
        if not self._is_running(experiment) or not self._is_targeted(experiment):
            return None

        stored = self._load()
        existing = stored.assignments.get(experiment_id)
        if existing is not None:
            return existing

        variant = experiment.get_variant(assign_variant(experiment, stored.user_id))
        assignment = ExperimentAssignment(
            experiment_id=experiment_id,
            variant_id=variant.id,
            is_control=variant.is_control,
            assigned_at=self._timestamp(),
        )
        stored.assignments[experiment_id] = assignment
        self._save(stored)

        logger.debug(f"Assigned experiment '{experiment_id}' variant '{variant.id}'")
        self._analytics.funnel.step(
            funnel_name=EXPERIMENT_FUNNEL,
            step_name="assigned",
            step_number=1,
            total_steps=2,
            custom_properties=self._assignment_properties(assignment),
        )
        return assignment

    def track_conversion(
        self,
        experiment_id: str,
        conversion_type: str,
        value: Optional[float] = None,
    ) -> Optional[dict[str, Any]]:
        """Report a conversion for the user's variant. No-op when not assigned."""
        assignment = self.get_experiment(experiment_id)
        if assignment is None:
            return None

        properties = self._assignment_properties(assignment)
        properties["conversion_type"] = conversion_type
        if value is not None:
            properties["conversion_value_bucket"] = buckets.bucket_number(value, CONVERSION_VALUE_BOUNDARIES)

        return self._analytics.funnel.step(
            funnel_name=EXPERIMENT_FUNNEL,
            step_name="converted",
            step_number=2,
            total_steps=2,
            custom_properties=properties,
        )

    def is_feature_enabled(self, feature_id: str) -> bool:
        """A flag is on when the user is in any non-control variant."""
        assignment = self.get_experiment(feature_id)
        return assignment is not None and not assignment.is_control

    def get_active(self) -> list[ExperimentAssignment]:
        """Every stored assignment, enabled or not."""
        stored = self._load(create=False)
        return list(stored.assignments.values()) if stored else []

    def force_variant(self, experiment_id: str, variant_id: str) -> Optional[ExperimentAssignment]:
        """
        Pin the user to a variant without reporting an assignment.

        Returns:
            The stored assignment, or None for an unknown experiment or variant
        """
        experiment = self._experiments.get(experiment_id)
        variant = experiment.get_variant(variant_id) if experiment else None
        if variant is None:
            logger.debug(f"Cannot force unknown variant '{variant_id}' of '{experiment_id}'")
            return None

        stored = self._load()
        assignment = ExperimentAssignment(
            experiment_id=experiment_id,
            variant_id=variant.id,
            is_control=variant.is_control,
            assigned_at=self._timestamp(),
        )
        stored.assignments[experiment_id] = assignment
        self._save(stored)
        return assignment

    def clear(self) -> None:
        """Forget every assignment and the assignment seed."""
        self._fallback = None
        try:
            self._storage.remove_item(EXPERIMENTS_STORAGE_KEY)
        except StorageUnavailableError as e:
            logger.debug(f"Could not clear stored experiments: {e.message}")

    # =========================================================================
    # Internals
    # =========================================================================

    def _is_running(self, experiment: ExperimentConfig) -> bool:
        now = self._clock()
        if experiment.start_date and now < _as_utc(experiment.start_date):
            return False
        if experiment.end_date and now > _as_utc(experiment.end_date):
            return False
        return True

    def _is_targeted(self, experiment: ExperimentConfig) -> bool:
        if not experiment.target_segments:
            return True
        user_context = self._analytics.context.user_context
        role = user_context.user_role if user_context else UserRole.UNKNOWN
        return role.value in experiment.target_segments

    def _timestamp(self) -> str:
        return self._clock().astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @staticmethod
    def _assignment_properties(assignment: ExperimentAssignment) -> dict[str, Any]:
        return {
            "experiment_id": assignment.experiment_id,
            "variant_id": assignment.variant_id,
            "is_control": assignment.is_control,
        }

    def _load(self, create: bool = True) -> Optional[StoredAssignments]:
        stored = None
        try:
            raw = self._storage.get_item(EXPERIMENTS_STORAGE_KEY)
        except StorageUnavailableError as e:
            logger.debug(f"Experiment storage unavailable, using in-process assignments: {e.message}")
            raw = None
            stored = self._fallback

        if raw:
            try:
                stored = StoredAssignments.model_validate_json(raw)
            except PydanticValidationError:
                logger.warning("Discarding corrupt stored experiment assignments")

        if stored is None and create:
            stored = StoredAssignments(user_id=self._analytics.session.create_anonymous_id())
            self._save(stored)
        return stored

    def _save(self, stored: StoredAssignments) -> None:
        try:
            self._storage.set_item(EXPERIMENTS_STORAGE_KEY, stored.model_dump_json())
            self._fallback = None
        except StorageUnavailableError as e:
            logger.debug(f"Experiment storage unavailable, keeping assignments in process: {e.message}")
            self._fallback = stored


# Module-level instance getter
_experiments: Optional[ExperimentService] = None


def get_experiment_service() -> ExperimentService:
    """Get the experiment service bound to the process-wide analytics façade."""
    global _experiments
    if _experiments is None:
        from modules.events import get_analytics

        _experiments = ExperimentService(get_analytics())
    return _experiments


def reset_experiment_service() -> None:
    """Reset the experiment service singleton (for testing)."""
    global _experiments
    _experiments = None
