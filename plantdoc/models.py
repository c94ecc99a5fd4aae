import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from plantdoc.utils.data_uri import is_data_uri

PHOTO_DATA_URI_DESCRIPTION = (
    "A photo of a plant, as a data URI that must include a MIME type and use Base64 "
    "encoding. Expected format: 'data:<mimetype>;base64,<encoded_data>'."
)


class FlowModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PhotoRequest(FlowModel):
    photo_data_uri: str = Field(..., alias="photoDataUri", description=PHOTO_DATA_URI_DESCRIPTION)

    @field_validator("photo_data_uri")
    @classmethod
    def _check_data_uri(cls, value: str) -> str:
        if not is_data_uri(value):
            raise ValueError("photoDataUri must be a base64 data URI (data:<mimetype>;base64,<data>)")
        return value


class SpeciesIdentificationRequest(PhotoRequest):
    pass


class SpeciesIdentificationResponse(FlowModel):
    species: str = Field(..., description="The identified species of the plant.")
    confidence: float = Field(..., ge=0, le=1, description="The confidence level of the identification (0-1).")
    description: str = Field(..., description="A brief description of the plant species.")


class DiseaseDetectionRequest(PhotoRequest):
    pass


class DiseaseDetectionResponse(FlowModel):
    disease_detected: bool = Field(..., alias="diseaseDetected", description="Whether a disease is detected or not.")
    disease_name: str = Field("", alias="diseaseName", description="The name of the detected disease, if any.")
    symptoms_description: str = Field(
        "",
        alias="symptomsDescription",
        description="A description of the probable symptoms of the detected disease.",
    )


class TreatmentRequest(FlowModel):
    disease_name: str = Field(..., alias="diseaseName", description="The name of the plant disease.")
    plant_species: str = Field(..., alias="plantSpecies", description="The species of the affected plant.")


class TreatmentResponse(FlowModel):
    treatment: str = Field(..., description="The recommended treatment for the disease.")
    dosage: str = Field(..., description="The recommended dosage and application of the treatment.")


# ============================================================================#
# Analyzer state
# ============================================================================#

class Notice(BaseModel):
    variant: Literal["default", "destructive"] = "default"
    title: str
    description: str = ""


class AnalyzeRequest(FlowModel):
    photo_data_uri: Optional[str] = Field(None, alias="photoDataUri")


class AnalysisResult(FlowModel):
    status: Literal["idle", "loading", "success", "failed"]
    has_image: bool = Field(False, alias="hasImage")
    species: Optional[SpeciesIdentificationResponse] = None
    disease: Optional[DiseaseDetectionResponse] = None
    treatment: Optional[TreatmentResponse] = None
    error: Optional[str] = None
    notices: List[Notice] = []


class ResultCard(BaseModel):
    """One card of the results panel"""

    kind: Literal["species", "health", "treatment"]
    title: str
    heading: str
    tone: Literal["default", "healthy", "destructive"] = "default"
    subtitle: Optional[str] = None
    label: Optional[str] = None
    body: str = ""


# ============================================================================#
# History (static sample data)
# ============================================================================#

class ImagePlaceholder(FlowModel):
    id: str
    description: str
    image_url: str = Field(..., alias="imageUrl")
    image_hint: str = Field("", alias="imageHint")


class HistoryLog(FlowModel):
    id: str
    plant_name: str = Field(..., alias="plantName")
    disease: str
    status: Literal["Healthy", "Diseased"]
    date: datetime.date
    image: ImagePlaceholder
