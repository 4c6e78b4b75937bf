"""Analytics endpoints."""

from flask import jsonify, request

from app.blueprints.api import bp
from app.errors import NotFoundError


@bp.route("/metrics")
def list_metrics():
    from analytics.registry import AnalyticsRegistry

    AnalyticsRegistry.discover()
    return jsonify(AnalyticsRegistry.describe())


@bp.route("/metrics/<metric_id>")
def compute_metric(metric_id: str):
    """Compute a metric; non-empty query parameters become its filters."""
    from analytics.registry import AnalyticsRegistry

    AnalyticsRegistry.discover()
    metric_class = AnalyticsRegistry.get(metric_id)
    if metric_class is None:
        raise NotFoundError("Metric", metric_id)

    filters = {key: value for key, value in request.args.items() if value}
    return jsonify(metric_class().compute(**filters).to_dict())
