"""Tests for ActiveSet and the feature state machine."""

from datetime import datetime, timezone

from supervision.active_set import apply_feature_state
from supervision.models import ErrorKind, FeatureStatus, RunState

TS = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestAdd:
    """Tests for ActiveSet.add()."""

    def test_add_running(self, registry, active_set, definition):
        """Test a unit enters Running with all features Unknown."""
        registry.register(definition())
        outcome = active_set.add("U", start_running=True)

        assert outcome.ok
        unit = outcome.value
        assert unit.run_state == RunState.RUNNING
        assert unit.features["weld"].status == FeatureStatus.UNKNOWN
        assert unit.features["weld"].last_update is None

    def test_add_stopped(self, registry, active_set, definition):
        """Test a unit can enter Stopped."""
        registry.register(definition())
        assert active_set.add("cps-001", start_running=False).value.run_state == RunState.STOPPED

    def test_add_unknown(self, active_set):
        """Test adding an unregistered unit fails with NOT_FOUND."""
        outcome = active_set.add("ghost")
        assert outcome.error == ErrorKind.NOT_FOUND

    def test_add_twice(self, registry, active_set, definition):
        """Test adding the same unit twice (by name, then id) fails."""
        registry.register(definition())
        active_set.add("U")
        outcome = active_set.add("CPS-001")
        assert outcome.error == ErrorKind.ALREADY_ACTIVE
        assert len(active_set) == 1


class TestRemove:
    """Tests for ActiveSet.remove()."""

    def test_remove(self, registry, active_set, definition):
        """Test removal detaches the unit and drops cached telemetry."""
        registry.register(definition())
        unit = active_set.add("U").value
        unit.latest_data = {"temp": 80}

        assert active_set.remove("u")
        assert "CPS-001" not in active_set
        assert unit.latest_data is None

    def test_remove_unknown(self, active_set):
        """Test removing an unsupervised unit returns a falsy outcome."""
        assert not active_set.remove("ghost")

    def test_remove_keeps_registry(self, registry, active_set, definition):
        """Test the registry entry survives removal."""
        registry.register(definition())
        active_set.add("U")
        active_set.remove("U")
        assert registry.lookup("U") is not None


class TestSetRunState:
    """Tests for ActiveSet.set_run_state()."""

    def test_stop_discards_telemetry_keeps_features(self, registry, active_set, definition):
        """Test stopping clears generic telemetry but not feature history."""
        registry.register(definition())
        unit = active_set.add("U").value
        unit.latest_data = {"temp": 80}
        apply_feature_state(unit, "weld", "falha", TS, None)

        active_set.set_run_state("CPS-001", RunState.STOPPED)

        assert unit.run_state == RunState.STOPPED
        assert unit.latest_data is None
        assert unit.features["weld"].status == FeatureStatus.FAILURE

    def test_start(self, registry, active_set, definition):
        """Test a stopped unit can be started."""
        registry.register(definition())
        active_set.add("U", start_running=False)
        outcome = active_set.set_run_state("CPS-001", RunState.RUNNING)
        assert outcome.value.running

    def test_unknown_unit(self, active_set):
        """Test run-state change on an unknown unit fails."""
        assert active_set.set_run_state("ghost", RunState.RUNNING).error == ErrorKind.NOT_FOUND

    def test_invalid_target(self, registry, active_set, definition):
        """Test an unknown run state fails without changing the unit."""
        registry.register(definition())
        unit = active_set.add("U").value
        outcome = active_set.set_run_state("CPS-001", "paused")
        assert outcome.error == ErrorKind.INVALID_RUN_STATE
        assert unit.run_state == RunState.RUNNING

    def test_target_by_value(self, registry, active_set, definition):
        """Test run states can be given by their string value."""
        registry.register(definition())
        active_set.add("U")
        assert active_set.set_run_state("CPS-001", "stopped").value.run_state == RunState.STOPPED


class TestOwnerOf:
    """Tests for ActiveSet.owner_of()."""

    def test_longest_prefix_wins(self, registry, active_set, definition):
        """Test nested base topics resolve to the most specific unit."""
        registry.register(definition(cps_id="A", name="A", base_topic="plant"))
        registry.register(definition(cps_id="B", name="B", base_topic="plant/line1"))
        active_set.add("A")
        active_set.add("B")

        assert active_set.owner_of("plant/line1/data").id == "B"
        assert active_set.owner_of("plant/line2/data").id == "A"
        assert active_set.owner_of("plant").id == "A"

    def test_segment_aligned(self, registry, active_set, definition):
        """Test a base topic is not matched as a raw string prefix."""
        registry.register(definition(base_topic="cps/u1"))
        active_set.add("U")
        assert active_set.owner_of("cps/u10/data") is None


class TestApplyFeatureState:
    """Tests for the feature status transition rule."""

    def _unit(self, registry, active_set, definition):
        registry.register(definition())
        return active_set.add("U").value

    def test_allowed_status(self, registry, active_set, definition):
        """Test an allowed status transitions the feature."""
        unit = self._unit(registry, active_set, definition)
        assert apply_feature_state(unit, "weld", "FALHA", TS, {"code": 7})

        state = unit.features["weld"]
        assert state.status == FeatureStatus.FAILURE
        assert state.last_update == TS
        assert state.last_details == {"code": 7}

    def test_disallowed_status_keeps_previous(self, registry, active_set, definition):
        """Test a status outside the allow-list is ignored but timestamps update."""
        unit = self._unit(registry, active_set, definition)
        apply_feature_state(unit, "weld", "espera", TS, None)

        later = datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert not apply_feature_state(unit, "weld", "bogus", later, {"x": 1})

        state = unit.features["weld"]
        assert state.status == FeatureStatus.WAITING
        assert state.last_update == later
        assert state.last_details == {"x": 1}

    def test_allowed_but_unmapped_status(self, registry, active_set, definition):
        """Test allow-listed words outside the known vocabulary are ignored."""
        registry.register(definition(features={"weld": ("Welding", "espera|custom")}))
        unit = active_set.add("U").value
        assert not apply_feature_state(unit, "weld", "custom", TS, None)
        assert unit.features["weld"].status == FeatureStatus.UNKNOWN

    def test_status_not_in_allow_list(self, registry, active_set, definition):
        """Test a known status is still rejected when the feature does not allow it."""
        registry.register(definition(features={"weld": ("Welding", "espera")}))
        unit = active_set.add("U").value
        assert not apply_feature_state(unit, "weld", "falha", TS, None)
        assert unit.features["weld"].status == FeatureStatus.UNKNOWN

    def test_free_movement_between_states(self, registry, active_set, definition):
        """Test transitions among non-Unknown states."""
        unit = self._unit(registry, active_set, definition)
        for raw, expected in [
            ("falha", FeatureStatus.FAILURE),
            ("manutencao", FeatureStatus.MAINTENANCE),
            ("espera", FeatureStatus.WAITING),
            ("falha", FeatureStatus.FAILURE),
        ]:
            apply_feature_state(unit, "weld", raw, TS, None)
            assert unit.features["weld"].status == expected

    def test_unknown_feature(self, registry, active_set, definition):
        """Test a key the unit does not have is ignored."""
        unit = self._unit(registry, active_set, definition)
        assert not apply_feature_state(unit, "nope", "falha", TS, None)
