"""Tests for shared/models.py."""

from shared.models import AnalyticsEnvironment, DeviceType, FlowStage, UserRole


class TestEnums:
    def test_enums_compare_as_strings(self):
        """Enum members serialize as their plain string values."""
        assert UserRole.DRIVER == "driver"
        assert DeviceType.MOBILE == "mobile"
        assert AnalyticsEnvironment("production") is AnalyticsEnvironment.PRODUCTION

    def test_flow_stages_in_journey_order(self):
        """The journey starts at visit and ends at conversion."""
        stages = list(FlowStage)
        assert stages[0] == FlowStage.VISIT
        assert stages[-1] == FlowStage.CONVERSION
        assert len(stages) == 12
