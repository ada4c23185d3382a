"""
Drop-off module.

Form, wizard, empty-state and error-state trackers, and the DropOffTracker
registry that tears active forms down on navigation.

Usage:
    from modules.dropoff import DropOffTracker

    dropoff = DropOffTracker(analytics)
    form = dropoff.start_form_tracking("post_ride")
    form.field_interaction("origin")
"""

from .models import DropOffCategory, FormTrackingState, PermissionAction, TrackingPhase
from .service import MAX_TRACKED_VALIDATION_FIELDS, DropOffTracker
from .trackers import EmptyStateWatcher, ErrorStateTracker, FormTracker, WizardTracker

__all__ = [
    # Implementation
    "DropOffTracker",
    "FormTracker",
    "WizardTracker",
    "EmptyStateWatcher",
    "ErrorStateTracker",
    # Models
    "FormTrackingState",
    "TrackingPhase",
    "DropOffCategory",
    "PermissionAction",
    # Constants
    "MAX_TRACKED_VALIDATION_FIELDS",
]
