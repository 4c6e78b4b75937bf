"""Chart base class."""

import json
from abc import ABC, abstractmethod
from typing import Any

import plotly.graph_objects as go
from plotly.utils import PlotlyJSONEncoder


class Visualization(ABC):
    """Turns metric rows into a Plotly figure serialized for API clients."""

    viz_type: str = ""

    @abstractmethod
    def build_figure(self, data: Any, **options) -> go.Figure:
        ...

    def render_json(self, data: Any, **options) -> str:
        return json.dumps(self.build_figure(data, **options), cls=PlotlyJSONEncoder)
