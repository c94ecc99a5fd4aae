import re
import json
import time
import asyncio
import logging
from typing import Any, Dict, Optional, Type, Union

import httpx
import openai
from pydantic import BaseModel, ValidationError

from plantdoc.config import PLANTDOC_MODEL, FLOW_TIMEOUT
from plantdoc.errors import InferenceError, InputValidationError
from plantdoc.models import (
    SpeciesIdentificationRequest,
    SpeciesIdentificationResponse,
    DiseaseDetectionRequest,
    DiseaseDetectionResponse,
    TreatmentRequest,
    TreatmentResponse,
)
from plantdoc.services import services
from plantdoc.services.prompts import (
    IDENTIFY_SPECIES_PROMPT,
    DETECT_DISEASE_PROMPT,
    RECOMMEND_TREATMENT_PROMPT,
    JSON_INSTRUCTIONS,
)

logger = logging.getLogger(__name__)


def extract_json(raw_text: str) -> Any:
    """Parse a JSON object out of model text.

    Tolerates markdown code fences, prose around the object, trailing commas
    and comments.
    """
    json_str = raw_text.strip()

    # Extract JSON from markdown code block
    if "```" in json_str:
        match = re.search(r'```(?:json)?\s*([\s\S]*?)```', json_str)
        if match:
            json_str = match.group(1)

    # Find JSON object
    start_idx = json_str.find("{")
    end_idx = json_str.rfind("}")
    if start_idx != -1 and end_idx != -1:
        json_str = json_str[start_idx:end_idx + 1]

    json_str = json_str.strip()
    json_str = re.sub(r',\s*}', '}', json_str)  # trailing comma before }
    json_str = re.sub(r',\s*]', ']', json_str)  # trailing comma before ]
    json_str = re.sub(r'^\s*//.*$', '', json_str, flags=re.MULTILINE)  # line comments
    json_str = re.sub(r'/\*[\s\S]*?\*/', '', json_str)  # block comments

    return json.loads(json_str)


def describe_fields(model: Type[BaseModel]) -> str:
    """Render the output model's properties as a bullet list for the prompt"""
    schema = model.model_json_schema(by_alias=True)
    lines = []
    for name, prop in schema.get("properties", {}).items():
        kind = prop.get("type", "string")
        bounds = ""
        if "minimum" in prop or "maximum" in prop:
            bounds = f" between {prop.get('minimum')} and {prop.get('maximum')}"
        lines.append(f'- "{name}" ({kind}{bounds}): {prop.get("description", "")}')
    return "\n".join(lines)


class AIFlow:
    """One schema-validated call to the hosted model.

    validate input -> render prompt -> call model -> validate output.
    Stateless; the client is looked up per call so it can be swapped at runtime.
    """

    def __init__(
        self,
        name: str,
        prompt_template: str,
        input_model: Type[BaseModel],
        output_model: Type[BaseModel],
        media_field: Optional[str] = None,
        model: str = PLANTDOC_MODEL,
        timeout: float = FLOW_TIMEOUT,
        client=None,
    ):
        self.name = name
        self.prompt_template = prompt_template
        self.input_model = input_model
        self.output_model = output_model
        self.media_field = media_field
        self.model = model
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        return self._client or services.openai_client

    def validate_input(self, payload: Union[BaseModel, Dict[str, Any]]) -> BaseModel:
        if isinstance(payload, self.input_model):
            return payload
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(by_alias=True)
        try:
            return self.input_model.model_validate(payload)
        except ValidationError as e:
            raise InputValidationError(f"{self.name}: invalid input: {e}") from e

    def render_prompt(self, request: BaseModel) -> str:
        values = request.model_dump(exclude={self.media_field} if self.media_field else None)
        prompt = self.prompt_template.format(**values)
        return prompt + JSON_INSTRUCTIONS.format(fields=describe_fields(self.output_model))

    def build_messages(self, request: BaseModel) -> list:
        content = [{"type": "text", "text": self.render_prompt(request)}]
        if self.media_field:
            content.append({
                "type": "image_url",
                "image_url": {"url": getattr(request, self.media_field)},
            })
        return [{"role": "user", "content": content}]

    def parse_output(self, raw_text: Optional[str]) -> BaseModel:
        if not raw_text or not raw_text.strip():
            raise InferenceError(f"{self.name}: model returned no output")
        try:
            data = extract_json(raw_text)
        except json.JSONDecodeError as e:
            raise InferenceError(f"{self.name}: model output is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InferenceError(f"{self.name}: model output is not a JSON object")
        try:
            return self.output_model.model_validate(data)
        except ValidationError as e:
            raise InferenceError(f"{self.name}: model output failed validation: {e}") from e

    async def run(self, payload: Union[BaseModel, Dict[str, Any]]) -> BaseModel:
        request = self.validate_input(payload)

        client = self.client
        if client is None:
            logger.error("Model client not configured (OPENAI_API_KEY missing)")
            raise InferenceError(f"{self.name}: AI service not configured")

        logger.info(f"Running {self.name} with {self.model}")
        start_time = time.time()
        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=self.build_messages(request),
                    response_format={"type": "json_object"},
                    temperature=0.1,
                    max_tokens=1000,
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"{self.name} timed out after {self.timeout}s")
            raise InferenceError(f"{self.name}: model call timed out") from e
        except (openai.OpenAIError, httpx.HTTPError) as e:
            logger.error(f"{self.name} model call failed: {e}")
            raise InferenceError(f"{self.name}: model call failed: {e}") from e

        raw_text = response.choices[0].message.content if response.choices else None
        result = self.parse_output(raw_text)
        logger.info(f"✓ {self.name} completed in {time.time() - start_time:.2f}s")
        return result

    async def __call__(self, payload):
        return await self.run(payload)


# ============================================================================#
# Flow instances
# ============================================================================#

identify_species_flow = AIFlow(
    name="identifyPlantSpeciesFlow",
    prompt_template=IDENTIFY_SPECIES_PROMPT,
    input_model=SpeciesIdentificationRequest,
    output_model=SpeciesIdentificationResponse,
    media_field="photo_data_uri",
)

detect_disease_flow = AIFlow(
    name="detectPlantDiseaseFlow",
    prompt_template=DETECT_DISEASE_PROMPT,
    input_model=DiseaseDetectionRequest,
    output_model=DiseaseDetectionResponse,
    media_field="photo_data_uri",
)

recommend_treatment_flow = AIFlow(
    name="recommendTreatmentFlow",
    prompt_template=RECOMMEND_TREATMENT_PROMPT,
    input_model=TreatmentRequest,
    output_model=TreatmentResponse,
)


async def identify_plant_species(request) -> SpeciesIdentificationResponse:
    return await identify_species_flow.run(request)


async def detect_plant_disease(request) -> DiseaseDetectionResponse:
    return await detect_disease_flow.run(request)


async def recommend_treatment(request) -> TreatmentResponse:
    return await recommend_treatment_flow.run(request)
