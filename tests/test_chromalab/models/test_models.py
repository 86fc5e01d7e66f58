"""
Tests for the Chromalab record models.
"""

import pytest

from chromalab.models import (
    AUTO_TARGET_DESCRIPTION,
    BRAND_CATALOG,
    AutoPlanOutcome,
    AutoPlanState,
    ColorPlan,
    HairAnalysis,
    OrchestratorEvent,
    OrchestratorEventKind,
    Porosity,
    StylistRecord,
    StylistSession,
    TargetColor,
    Tone,
)


class TestPorosity:
    """Tests for porosity label parsing."""

    def test_parse_canonical_labels(self):
        """Test canonical labels parse case-insensitively."""
        assert Porosity.parse("High") == Porosity.HIGH
        assert Porosity.parse(" low ") == Porosity.LOW
        assert Porosity.parse("MEDIUM") == Porosity.MEDIUM

    def test_parse_unknown_label(self):
        """Test non-canonical labels return None."""
        assert Porosity.parse("Medium-High") is None


class TestAutoPlanState:
    """Tests for AutoPlanState helpers."""

    def test_running_states(self):
        """Test which states count as running."""
        running = {state for state in AutoPlanState if state.is_running}
        assert running == {
            AutoPlanState.PROCESSING,
            AutoPlanState.ANALYZING,
            AutoPlanState.PLANNING,
        }


class TestHairAnalysis:
    """Tests for HairAnalysis."""

    def test_from_dict_and_back(self, sample_analysis_payload):
        """Test camelCase dictionaries map onto every field."""
        analysis = HairAnalysis.from_dict(sample_analysis_payload)

        assert analysis.natural_level == "Level 6"
        assert analysis.stylist_notes == "use bond builder"
        assert analysis.to_dict() == sample_analysis_payload

    def test_porosity_level(self, sample_analysis_payload):
        """Test canonical porosity is exposed, unknown labels are kept."""
        analysis = HairAnalysis.from_dict(sample_analysis_payload)
        assert analysis.porosity_level == Porosity.HIGH

        sample_analysis_payload["porosity"] = "Uneven"
        odd = HairAnalysis.from_dict(sample_analysis_payload)
        assert odd.porosity == "Uneven"
        assert odd.porosity_level is None


class TestColorPlan:
    """Tests for ColorPlan."""

    def test_sections_and_to_dict(self, sample_plan_payload):
        """Test absent sections stay absent in both views."""
        plan = ColorPlan.from_dict(sample_plan_payload)

        assert plan.sections == {
            "preLighten": False,
            "tone": True,
            "fashionOverlay": False,
        }
        assert plan.tone == Tone(shades="9V", ratio="1:1", developer="10vol", time="10min")
        assert plan.steps == ("Apply toner",)
        assert plan.to_dict() == sample_plan_payload


class TestTargetColor:
    """Tests for target color descriptors."""

    def test_catalog_target(self):
        """Test catalog targets describe as brand and shade."""
        target = TargetColor.catalog("Wella Color Touch", "7/7 Medium Blonde Brown")
        assert target.describe() == "Wella Color Touch 7/7 Medium Blonde Brown"

    def test_catalog_rejects_unknown_brand_or_shade(self):
        """Test the catalog is closed."""
        with pytest.raises(ValueError):
            TargetColor.catalog("Unknown Brand", "7N")
        with pytest.raises(ValueError):
            TargetColor.catalog("Goldwell Topchic", "99Z Imaginary")

    def test_hex_target(self):
        """Test hex targets are normalized to upper case."""
        target = TargetColor.hex("#a1b2c3")
        assert target.describe() == "#A1B2C3"

    @pytest.mark.parametrize("value", ["a1b2c3", "#abc", "#GGGGGG", ""])
    def test_hex_rejects_bad_values(self, value):
        """Test malformed hex strings are rejected."""
        with pytest.raises(ValueError):
            TargetColor.hex(value)

    def test_auto_target(self):
        """Test the auto target uses the default description."""
        assert TargetColor.auto().describe() == AUTO_TARGET_DESCRIPTION
        assert TargetColor.auto().describe("custom") == "custom"

    def test_default_catalog(self):
        """Test the default catalog target is the first shade of the first brand."""
        brand = next(iter(BRAND_CATALOG))
        target = TargetColor.default_catalog()
        assert target.brand == brand
        assert target.shade == BRAND_CATALOG[brand][0]

    def test_from_dict_revalidates(self):
        """Test from_dict re-runs catalog validation."""
        target = TargetColor.hex("#112233")
        assert TargetColor.from_dict(target.to_dict()) == target
        with pytest.raises(ValueError):
            TargetColor.from_dict({"kind": "catalog", "brand": "Nope", "shade": "1"})


class TestStylistSession:
    """Tests for StylistSession."""

    def test_anonymous(self):
        """Test the anonymous session."""
        session = StylistSession.anonymous()
        assert not session.is_authenticated
        assert not session.is_verified
        assert session.user_id is None

    def test_verified(self, verified_session):
        """Test a verified stylist session."""
        assert verified_session.is_authenticated
        assert verified_session.is_verified
        assert verified_session.user_id == "stylist-1"

    def test_record_with_license(self):
        """Test with_license returns an updated copy."""
        record = StylistRecord(uid="u1", email="a@b.test", display_name=None)
        updated = record.with_license("licenses/u1/x.jpg", is_verified=False)

        assert record.license_ref is None
        assert updated.license_ref == "licenses/u1/x.jpg"
        assert StylistRecord.from_dict(updated.to_dict()) == updated


class TestEvents:
    """Tests for orchestrator events and outcomes."""

    def test_event_to_dict(self):
        """Test event serialization."""
        event = OrchestratorEvent(
            kind=OrchestratorEventKind.PIPELINE_FAILED,
            state=AutoPlanState.ERROR,
            run_id=3,
            error="Analysis failed.",
            error_code="ANALYSIS_FAILED",
        )
        data = event.to_dict()
        assert data["kind"] == "pipeline_failed"
        assert data["state"] == "error"
        assert data["run_id"] == 3
        assert data["error_code"] == "ANALYSIS_FAILED"

    def test_outcome_succeeded(self):
        """Test succeeded requires DONE and not superseded."""
        assert AutoPlanOutcome(run_id=1, state=AutoPlanState.DONE).succeeded
        assert not AutoPlanOutcome(run_id=1, state=AutoPlanState.DONE, superseded=True).succeeded
        assert not AutoPlanOutcome(run_id=1, state=AutoPlanState.ERROR).succeeded
