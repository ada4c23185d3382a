"""
Default experiment table.

Every experiment ships disabled; enable one by registering a copy with
enabled=True.
"""

from .models import ExperimentConfig, VariantConfig


SIGNUP_FLOW_V2 = ExperimentConfig(
    id="signup_flow_v2",
    name="New Signup Flow",
    traffic_allocation=50,
    variants=(
        VariantConfig(id="control", name="Original Flow", weight=50, is_control=True),
        VariantConfig(id="variant_a", name="Simplified Flow", weight=50),
    ),
)

RIDE_CARD_REDESIGN = ExperimentConfig(
    id="ride_card_redesign",
    name="Ride Card Redesign",
    variants=(
        VariantConfig(id="control", name="Original Card", weight=50, is_control=True),
        VariantConfig(id="compact", name="Compact Card", weight=25),
        VariantConfig(id="detailed", name="Detailed Card", weight=25),
    ),
)

CTA_COPY_TEST = ExperimentConfig(
    id="cta_copy_test",
    name="CTA Button Copy Test",
    variants=(
        VariantConfig(id="control", name="Find a Ride", weight=34, is_control=True),
        VariantConfig(id="action", name="Start Searching", weight=33),
        VariantConfig(id="benefit", name="Save on Commute", weight=33),
    ),
)

DEFAULT_EXPERIMENTS = (SIGNUP_FLOW_V2, RIDE_CARD_REDESIGN, CTA_COPY_TEST)
