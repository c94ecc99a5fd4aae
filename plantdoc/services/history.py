"""
Diagnosis history. Static sample data only; nothing is recorded.
"""
import datetime
from typing import List

from plantdoc.models import HistoryLog, ImagePlaceholder

PLACEHOLDER_IMAGES = {
    "history-1": ImagePlaceholder(
        id="history-1",
        description="A tomato plant with early blight",
        image_url="https://picsum.photos/seed/tomato/600/450",
        image_hint="tomato plant",
    ),
    "history-2": ImagePlaceholder(
        id="history-2",
        description="A rose bush with black spot",
        image_url="https://picsum.photos/seed/rose/600/450",
        image_hint="rose bush",
    ),
    "history-3": ImagePlaceholder(
        id="history-3",
        description="A healthy echeveria succulent",
        image_url="https://picsum.photos/seed/echeveria/600/450",
        image_hint="succulent plant",
    ),
}

MOCK_HISTORY: List[HistoryLog] = [
    HistoryLog(
        id="1",
        plant_name="Tomato Plant",
        disease="Early Blight",
        status="Diseased",
        date=datetime.date(2023, 11, 15),
        image=PLACEHOLDER_IMAGES["history-1"],
    ),
    HistoryLog(
        id="2",
        plant_name="Rose Bush",
        disease="Black Spot",
        status="Diseased",
        date=datetime.date(2023, 11, 12),
        image=PLACEHOLDER_IMAGES["history-2"],
    ),
    HistoryLog(
        id="3",
        plant_name="Echeveria",
        disease="None",
        status="Healthy",
        date=datetime.date(2023, 11, 10),
        image=PLACEHOLDER_IMAGES["history-3"],
    ),
]


def get_history() -> List[HistoryLog]:
    return list(MOCK_HISTORY)


def format_history_date(value: datetime.date) -> str:
    """November 15, 2023"""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def describe_condition(log: HistoryLog) -> str:
    return log.disease if log.status == "Diseased" else "No disease detected"
