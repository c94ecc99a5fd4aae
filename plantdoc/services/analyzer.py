"""
Analyzer session: sequences the three AI flows for one candidate image
and keeps the state the results panel is rendered from.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from plantdoc.errors import AnalysisInProgressError, PlantDocError
from plantdoc.models import (
    AnalysisResult,
    DiseaseDetectionRequest,
    DiseaseDetectionResponse,
    Notice,
    ResultCard,
    SpeciesIdentificationRequest,
    SpeciesIdentificationResponse,
    TreatmentRequest,
    TreatmentResponse,
)
from plantdoc.services.flows import (
    detect_plant_disease,
    identify_plant_species,
    recommend_treatment,
)

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"
SUCCESS = "success"
FAILED = "failed"

Flow = Callable[..., Awaitable]


class AnalyzerSession:
    """State for one browser session: Idle -> Loading -> {Success | Failed}"""

    def __init__(
        self,
        identify: Flow = identify_plant_species,
        detect: Flow = detect_plant_disease,
        recommend: Flow = recommend_treatment,
    ):
        self.identify = identify
        self.detect = detect
        self.recommend = recommend

        self.status = IDLE
        self.image_data_uri: Optional[str] = None
        self.species: Optional[SpeciesIdentificationResponse] = None
        self.disease: Optional[DiseaseDetectionResponse] = None
        self.treatment: Optional[TreatmentResponse] = None
        self.error: Optional[str] = None
        self.notices: List[Notice] = []

    @property
    def loading(self) -> bool:
        return self.status == LOADING

    # ------------------------------------------------------------------ #
    # Candidate image
    # ------------------------------------------------------------------ #

    def clear_results(self):
        self.species = None
        self.disease = None
        self.treatment = None

    def set_candidate_image(self, data_uri: str):
        self.clear_results()
        self.image_data_uri = data_uri

    def clear_candidate_image(self):
        self.image_data_uri = None

    # ------------------------------------------------------------------ #
    # Notices
    # ------------------------------------------------------------------ #

    def notify(self, title: str, description: str = "", variant: str = "default"):
        self.notices.append(Notice(variant=variant, title=title, description=description))

    def notify_error(self, error: PlantDocError):
        self.notify(error.title, error.notice, variant="destructive")

    def drain_notices(self) -> List[Notice]:
        notices, self.notices = self.notices, []
        return notices

    # ------------------------------------------------------------------ #
    # Analysis
    # ------------------------------------------------------------------ #

    async def analyze(self, image_data_uri: Optional[str] = None) -> AnalysisResult:
        """Run species identification and disease detection concurrently,
        then treatment recommendation when a disease was detected.

        Failures in any flow are terminal for this attempt: no partial
        results are kept and a single notice is pushed.
        """
        # A rejected call must leave the in-flight attempt's image untouched
        if self.loading:
            raise AnalysisInProgressError()

        if image_data_uri:
            self.image_data_uri = image_data_uri
        image = self.image_data_uri

        if not image:
            self.notify(
                "No image selected",
                "Please upload an image of a plant to analyze.",
                variant="destructive",
            )
            return self.snapshot()

        self.status = LOADING
        self.error = None
        self.clear_results()

        try:
            species, disease = await asyncio.gather(
                self.identify(SpeciesIdentificationRequest(photo_data_uri=image)),
                self.detect(DiseaseDetectionRequest(photo_data_uri=image)),
            )

            treatment = None
            if disease.disease_detected:
                logger.info(f"Disease detected ({disease.disease_name}) - requesting treatment")
                treatment = await self.recommend(
                    TreatmentRequest(
                        disease_name=disease.disease_name,
                        plant_species=species.species,
                    )
                )
        except Exception as e:
            logger.error(f"Analysis failed: {e}", exc_info=True)
            self.error = str(e) or "An unknown error occurred."
            self.status = FAILED
            self.notify(
                "Analysis Failed",
                "There was a problem analyzing your image. Please try again.",
                variant="destructive",
            )
            return self.snapshot()

        self.species = species
        self.disease = disease
        self.treatment = treatment
        self.status = SUCCESS
        logger.info(
            f"✓ Analysis complete: species={species.species}, "
            f"disease={disease.disease_name if disease.disease_detected else 'none'}"
        )
        return self.snapshot()

    # ------------------------------------------------------------------ #
    # Presentation
    # ------------------------------------------------------------------ #

    def snapshot(self, drain: bool = True) -> AnalysisResult:
        return AnalysisResult(
            status=self.status,
            has_image=bool(self.image_data_uri),
            species=self.species,
            disease=self.disease,
            treatment=self.treatment,
            error=self.error,
            notices=self.drain_notices() if drain else list(self.notices),
        )

    def result_cards(self) -> List[ResultCard]:
        cards = []
        if self.species:
            cards.append(ResultCard(
                kind="species",
                title="Plant Species",
                heading=self.species.species,
                subtitle=f"Confidence: {self.species.confidence * 100:.0f}%",
                body=self.species.description,
            ))
        if self.disease:
            if self.disease.disease_detected:
                cards.append(ResultCard(
                    kind="health",
                    title="Health Status",
                    heading=self.disease.disease_name,
                    tone="destructive",
                    label="Symptoms:",
                    body=self.disease.symptoms_description,
                ))
            else:
                cards.append(ResultCard(
                    kind="health",
                    title="Health Status",
                    heading="Healthy",
                    tone="healthy",
                    body="No disease detected. Your plant appears to be in good health!",
                ))
        if self.treatment and self.disease and self.disease.disease_detected:
            cards.append(ResultCard(
                kind="treatment",
                title="Recommended Treatment",
                heading=self.treatment.treatment,
                label="Dosage:",
                body=self.treatment.dosage,
            ))
        return cards
