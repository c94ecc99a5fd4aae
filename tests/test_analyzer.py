"""
Tests for the analyzer session (orchestration of the three flows)
"""
import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from conftest import DISEASED_ROSE, HEALTHY_TOMATO
from plantdoc.errors import AnalysisInProgressError, InferenceError
from plantdoc.models import (
    DiseaseDetectionResponse,
    SpeciesIdentificationResponse,
    TreatmentRequest,
    TreatmentResponse,
)
from plantdoc.services.analyzer import FAILED, IDLE, LOADING, SUCCESS, AnalyzerSession


def stub_session(replies):
    """AnalyzerSession whose flows return canned, validated responses"""
    identify = AsyncMock(return_value=SpeciesIdentificationResponse.model_validate(replies["species"]))
    detect = AsyncMock(return_value=DiseaseDetectionResponse.model_validate(replies["disease"]))
    recommend = AsyncMock(return_value=TreatmentResponse.model_validate(replies["treatment"]))
    return AnalyzerSession(identify=identify, detect=detect, recommend=recommend)


class TestHealthyPlant:
    """Healthy tomato: species + "Healthy" cards, no treatment call"""

    def test_no_treatment_call(self, image_data_uri):
        session = stub_session(HEALTHY_TOMATO)
        result = asyncio.run(session.analyze(image_data_uri))

        assert result.status == SUCCESS
        assert result.species.species == "Tomato"
        assert result.species.confidence == 0.92
        assert result.disease.disease_detected is False
        assert result.treatment is None
        session.recommend.assert_not_called()

    def test_cards(self, image_data_uri):
        session = stub_session(HEALTHY_TOMATO)
        asyncio.run(session.analyze(image_data_uri))

        cards = session.result_cards()
        assert [c.kind for c in cards] == ["species", "health"]
        assert cards[0].heading == "Tomato"
        assert cards[0].subtitle == "Confidence: 92%"
        assert cards[1].heading == "Healthy"
        assert cards[1].tone == "healthy"


class TestDiseasedPlant:
    """Diseased rose: treatment requested with detected disease + identified species"""

    def test_treatment_request_fields(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        result = asyncio.run(session.analyze(image_data_uri))

        assert result.status == SUCCESS
        session.recommend.assert_awaited_once()
        request = session.recommend.call_args.args[0]
        assert isinstance(request, TreatmentRequest)
        assert request.disease_name == "Black Spot"
        assert request.plant_species == "Rosa chinensis"
        assert result.treatment.dosage == DISEASED_ROSE["treatment"]["dosage"]

    def test_cards(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        asyncio.run(session.analyze(image_data_uri))

        cards = session.result_cards()
        assert [c.kind for c in cards] == ["species", "health", "treatment"]
        assert cards[1].heading == "Black Spot"
        assert cards[1].tone == "destructive"
        assert cards[2].label == "Dosage:"

    def test_both_flows_get_same_image(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        asyncio.run(session.analyze(image_data_uri))
        assert session.identify.call_args.args[0].photo_data_uri == image_data_uri
        assert session.detect.call_args.args[0].photo_data_uri == image_data_uri

    def test_unnamed_disease_still_gets_treatment(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        session.detect.return_value = DiseaseDetectionResponse(disease_detected=True)

        result = asyncio.run(session.analyze(image_data_uri))

        assert result.status == SUCCESS
        session.recommend.assert_awaited_once()
        request = session.recommend.call_args.args[0]
        assert request.disease_name == ""
        assert request.plant_species == "Rosa chinensis"
        assert result.treatment is not None


class TestFanOut:
    def test_identify_and_detect_run_concurrently(self, image_data_uri):
        running = {"count": 0, "peak": 0}

        async def tracked(response):
            running["count"] += 1
            running["peak"] = max(running["peak"], running["count"])
            await asyncio.sleep(0.01)
            running["count"] -= 1
            return response

        species = SpeciesIdentificationResponse.model_validate(HEALTHY_TOMATO["species"])
        disease = DiseaseDetectionResponse.model_validate(HEALTHY_TOMATO["disease"])
        session = AnalyzerSession(
            identify=lambda request: tracked(species),
            detect=lambda request: tracked(disease),
            recommend=AsyncMock(),
        )
        asyncio.run(session.analyze(image_data_uri))
        assert running["peak"] == 2


class TestFailures:
    def test_transport_error_in_fan_out(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        session.detect.side_effect = InferenceError("detectPlantDiseaseFlow: model call failed")

        result = asyncio.run(session.analyze(image_data_uri))

        assert result.status == FAILED
        assert not session.loading
        assert result.species is None and result.disease is None and result.treatment is None
        assert "model call failed" in result.error
        assert [n.title for n in result.notices] == ["Analysis Failed"]
        session.recommend.assert_not_called()

    def test_raw_exception_is_also_terminal(self, image_data_uri):
        session = stub_session(HEALTHY_TOMATO)
        session.identify.side_effect = httpx.ConnectError("boom")
        result = asyncio.run(session.analyze(image_data_uri))
        assert result.status == FAILED
        assert result.error == "boom"

    def test_treatment_failure_keeps_no_partial_results(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        session.recommend.side_effect = InferenceError("recommendTreatmentFlow: model call timed out")

        result = asyncio.run(session.analyze(image_data_uri))

        assert result.status == FAILED
        assert result.species is None
        assert session.result_cards() == []

    def test_failure_clears_previous_results(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        asyncio.run(session.analyze(image_data_uri))
        assert session.treatment is not None

        session.identify.side_effect = InferenceError("down")
        result = asyncio.run(session.analyze(image_data_uri))
        assert result.status == FAILED
        assert session.treatment is None


class TestPreconditions:
    def test_no_image(self):
        session = stub_session(HEALTHY_TOMATO)
        result = asyncio.run(session.analyze())

        assert result.status == IDLE
        assert [n.title for n in result.notices] == ["No image selected"]
        session.identify.assert_not_called()
        session.detect.assert_not_called()

    def test_uses_candidate_image(self, image_data_uri):
        session = stub_session(HEALTHY_TOMATO)
        session.set_candidate_image(image_data_uri)
        result = asyncio.run(session.analyze())
        assert result.status == SUCCESS

    def test_rejects_while_loading(self, image_data_uri):
        session = stub_session(HEALTHY_TOMATO)
        session.status = LOADING
        with pytest.raises(AnalysisInProgressError):
            asyncio.run(session.analyze(image_data_uri))

    def test_rejected_call_keeps_candidate_image(self, image_data_uri):
        session = stub_session(HEALTHY_TOMATO)
        session.set_candidate_image(image_data_uri)
        session.status = LOADING

        with pytest.raises(AnalysisInProgressError):
            asyncio.run(session.analyze("data:image/gif;base64,R0lGODlhAQABAAAAACw="))

        assert session.image_data_uri == image_data_uri
        assert session.status == LOADING

    def test_malformed_image_fails_without_flow_calls(self):
        session = stub_session(HEALTHY_TOMATO)
        result = asyncio.run(session.analyze("not-a-data-uri"))

        assert result.status == FAILED
        assert result.error
        assert [n.title for n in result.notices] == ["Analysis Failed"]
        session.identify.assert_not_called()
        session.detect.assert_not_called()
        session.recommend.assert_not_called()


class TestStateTransitions:
    def test_healthy_after_diseased_clears_treatment(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        asyncio.run(session.analyze(image_data_uri))
        assert session.treatment is not None

        session.detect.return_value = DiseaseDetectionResponse.model_validate(HEALTHY_TOMATO["disease"])
        asyncio.run(session.analyze(image_data_uri))
        assert session.status == SUCCESS
        assert session.treatment is None
        assert session.recommend.await_count == 1

    def test_new_candidate_clears_results(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        asyncio.run(session.analyze(image_data_uri))
        session.set_candidate_image(image_data_uri)
        assert session.species is None and session.disease is None and session.treatment is None

    def test_idempotent_with_deterministic_stub(self, image_data_uri):
        session = stub_session(DISEASED_ROSE)
        first = asyncio.run(session.analyze(image_data_uri))
        second = asyncio.run(session.analyze(image_data_uri))
        assert first.model_dump(exclude={"notices"}) == second.model_dump(exclude={"notices"})

    def test_snapshot_drains_notices(self):
        session = stub_session(HEALTHY_TOMATO)
        asyncio.run(session.analyze())
        assert session.snapshot().notices == []
