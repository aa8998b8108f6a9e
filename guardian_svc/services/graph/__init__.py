"""
Graph package for reading trend visualization.

Usage:
    from services.graph import TrendChartService

    service = TrendChartService()
    html = service.generate_html(ReadingKind.GLUCOSE, readings, medication_events, "Jane Doe")
"""

from services.graph.trend_chart import TrendChartService

__all__ = [
    'TrendChartService',
]
