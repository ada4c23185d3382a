"""
Core funnel definitions.

The three journeys used for cohort analysis and drop-off reporting:
onboarding, the driver journey and the rider journey.
"""

from shared.models import FlowStage

from .models import FunnelDefinition, FunnelStep


def _step(position: int, id: str, name: str, routes, completion_events, drop_off_reasons, flow_stage):
    return FunnelStep(
        id=id,
        name=name,
        position=position,
        routes=routes,
        completion_events=completion_events,
        drop_off_reasons=drop_off_reasons,
        flow_stage=flow_stage,
    )


# Shared tail of both marketplace journeys
_PROFILE_COMPLETE_ROUTES = ("/profile", "/dashboard")
_MESSAGE_SENT_ROUTES = ("/messages", "/chat/:id")
_HANDOFF_ROUTES = ("/bookings/:id", "/chat/:id")


ONBOARDING_FUNNEL = FunnelDefinition(
    id="onboarding",
    name="User Onboarding",
    description="New user journey from landing to profile completion",
    target_conversion_rate=0.35,
    steps=(
        _step(
            1, "landing", "Landing Page Visit",
            ("/", "/home", "/welcome"),
            ("page_view",),
            ("bounce", "unclear_value_prop", "slow_load"),
            FlowStage.VISIT,
        ),
        _step(
            2, "signup_start", "Signup Started",
            ("/signup", "/auth/signup", "/register"),
            ("signup_form_started",),
            ("form_too_long", "social_auth_failure", "email_issues"),
            FlowStage.SIGNUP_STARTED,
        ),
        _step(
            3, "signup_complete", "Signup Complete",
            ("/verify-email", "/email-verification"),
            ("sign_up_complete",),
            ("verification_email_not_received", "abandoned_verification"),
            FlowStage.SIGNUP_COMPLETE,
        ),
        _step(
            4, "profile_start", "Profile Started",
            ("/profile", "/profile/edit", "/onboarding"),
            ("profile_form_started",),
            ("too_many_fields", "photo_upload_issues", "unclear_requirements"),
            FlowStage.PROFILE_STARTED,
        ),
        _step(
            5, "profile_complete", "Profile Complete",
            _PROFILE_COMPLETE_ROUTES,
            ("profile_completed",),
            ("required_fields_unclear", "verification_pending"),
            FlowStage.PROFILE_COMPLETE,
        ),
    ),
)


DRIVER_FUNNEL = FunnelDefinition(
    id="driver_journey",
    name="Driver Journey",
    description="Driver path from profile to accepting their first booking",
    target_conversion_rate=0.25,
    steps=(
        _step(
            1, "profile_complete", "Profile Complete",
            _PROFILE_COMPLETE_ROUTES,
            ("profile_completed",),
            (),
            FlowStage.PROFILE_COMPLETE,
        ),
        _step(
            2, "ride_create_start", "Started Creating Ride",
            ("/post-ride", "/rides/new", "/create-ride"),
            ("ride_form_started",),
            ("unclear_form", "location_selection_difficult", "pricing_confusion"),
            FlowStage.RIDE_CREATE,
        ),
        _step(
            3, "ride_created", "Ride Posted",
            ("/my-rides", "/rides/:id"),
            ("ride_created",),
            ("form_validation_errors", "map_issues", "time_picker_confusion"),
            FlowStage.RIDE_CREATE,
        ),
        _step(
            4, "booking_received", "Booking Request Received",
            ("/bookings", "/my-rides"),
            ("booking_request_received",),
            ("no_requests", "notification_missed"),
            FlowStage.RIDE_ACCEPT,
        ),
        _step(
            5, "booking_accepted", "Booking Accepted",
            ("/bookings/:id",),
            ("ride_accepted",),
            ("passenger_profile_concerns", "schedule_changed", "communication_issues"),
            FlowStage.RIDE_ACCEPT,
        ),
        _step(
            6, "message_sent", "Message Sent",
            _MESSAGE_SENT_ROUTES,
            ("message_sent",),
            ("chat_not_found", "message_delivery_failure"),
            FlowStage.MESSAGING,
        ),
        _step(
            7, "handoff", "WhatsApp Handoff",
            _HANDOFF_ROUTES,
            ("whatsapp_handoff",),
            ("phone_not_available", "prefer_in_app"),
            FlowStage.HANDOFF,
        ),
    ),
)


RIDER_FUNNEL = FunnelDefinition(
    id="rider_journey",
    name="Rider Journey",
    description="Rider path from profile to requesting their first ride",
    target_conversion_rate=0.40,
    steps=(
        _step(
            1, "profile_complete", "Profile Complete",
            _PROFILE_COMPLETE_ROUTES,
            ("profile_completed",),
            (),
            FlowStage.PROFILE_COMPLETE,
        ),
        _step(
            2, "ride_search", "Searched for Rides",
            ("/search", "/find-ride", "/rides"),
            ("ride_search_performed",),
            ("no_search_filters", "location_detection_failed"),
            FlowStage.RIDE_SEARCH,
        ),
        _step(
            3, "ride_viewed", "Viewed Ride Details",
            ("/rides/:id",),
            ("ride_details_viewed",),
            ("no_results", "results_not_relevant", "poor_timing"),
            FlowStage.RIDE_SEARCH,
        ),
        _step(
            4, "ride_requested", "Ride Requested",
            ("/rides/:id", "/book/:id"),
            ("ride_requested",),
            ("no_seats_available", "driver_profile_concerns", "price_too_high"),
            FlowStage.RIDE_REQUEST,
        ),
        _step(
            5, "booking_confirmed", "Booking Confirmed",
            ("/bookings/:id",),
            ("booking_confirmed",),
            ("driver_declined", "driver_no_response", "rider_cancelled"),
            FlowStage.RIDE_REQUEST,
        ),
        _step(
            6, "message_sent", "Message Sent",
            _MESSAGE_SENT_ROUTES,
            ("message_sent",),
            ("chat_not_found", "message_delivery_failure"),
            FlowStage.MESSAGING,
        ),
        _step(
            7, "handoff", "WhatsApp Handoff",
            _HANDOFF_ROUTES,
            ("whatsapp_handoff",),
            ("phone_not_available", "prefer_in_app"),
            FlowStage.HANDOFF,
        ),
    ),
)


DEFAULT_FUNNELS = (ONBOARDING_FUNNEL, DRIVER_FUNNEL, RIDER_FUNNEL)

DEFAULT_ALIASES = {
    "driver": DRIVER_FUNNEL.id,
    "rider": RIDER_FUNNEL.id,
}
