"""QuickChart URL builder."""

import json
from typing import Optional, Sequence
from urllib.parse import quote

QUICKCHART_BASE_URL = "https://quickchart.io/chart"
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 400

_PALETTE = [
    "#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF",
    "#FF9F40", "#C9CBCF", "#8BC34A", "#E91E63", "#3F51B5",
]


def build_quickchart_url(
    labels: Sequence[str],
    data: Sequence[float],
    dataset_label: str,
    chart_type: str = "bar",
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    colors: Optional[Sequence[str]] = None,
) -> str:
    dataset: dict = {"label": dataset_label, "data": list(data)}
    if chart_type in ("pie", "doughnut"):
        dataset["backgroundColor"] = list(colors or _PALETTE)[: len(data)]

    config = {
        "type": chart_type,
        "data": {"labels": list(labels), "datasets": [dataset]},
        "options": {"responsive": False, "animation": False},
    }
    encoded = quote(json.dumps(config, ensure_ascii=False, separators=(",", ":")), safe="")
    return f"{QUICKCHART_BASE_URL}?width={width}&height={height}&chart={encoded}"
