"""
Shared fixtures: tiny images, a scripted model client, clean app state
"""
import io
import os
import sys
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from plantdoc.utils.data_uri import encode_data_uri  # noqa: E402


def make_png(size=(8, 8), color=(34, 139, 34)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def completion(content):
    """Minimal stand-in for a chat.completions.create() response"""
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


class ScriptedModelClient:
    """Answers each flow according to the role its prompt asks the model to play.

    ``replies`` maps "species" / "disease" / "treatment" to a dict (sent back
    as JSON), a raw string, or an exception to raise.
    """

    ROLES = {
        "botanist": "species",
        "plant pathology": "disease",
        "agronomist": "treatment",
    }

    def __init__(self, replies):
        self.replies = replies
        self.calls = []
        self.chat = MagicMock()
        self.chat.completions.create = AsyncMock(side_effect=self._create)

    def calls_for(self, flow):
        return [c for c in self.calls if c["flow"] == flow]

    async def _create(self, **kwargs):
        text = kwargs["messages"][0]["content"][0]["text"]
        flow = next(name for role, name in self.ROLES.items() if role in text)
        self.calls.append({"flow": flow, **kwargs})
        reply = self.replies[flow]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return completion(reply)


HEALTHY_TOMATO = {
    "species": {"species": "Tomato", "confidence": 0.92, "description": "Solanum lycopersicum, a flowering plant in the nightshade family."},
    "disease": {"diseaseDetected": False, "diseaseName": "", "symptomsDescription": ""},
    "treatment": {"treatment": "unused", "dosage": "unused"},
}

DISEASED_ROSE = {
    "species": {"species": "Rosa chinensis", "confidence": 0.88, "description": "A garden rose."},
    "disease": {
        "diseaseDetected": True,
        "diseaseName": "Black Spot",
        "symptomsDescription": "Circular black spots with fringed margins on upper leaf surfaces.",
    },
    "treatment": {
        "treatment": "Remove infected leaves and apply a fungicide containing chlorothalonil.",
        "dosage": "2 ml per litre of water, every 7-10 days.",
    },
}


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def image_data_uri(png_bytes):
    return encode_data_uri(png_bytes, "image/png")


@pytest.fixture(autouse=True)
def clean_app_state():
    from plantdoc.services.sessions import session_store
    from plantdoc.utils.rate_limiter import limiter

    limiter.enabled = False
    session_store.clear()
    yield
    session_store.clear()
    limiter.enabled = True
