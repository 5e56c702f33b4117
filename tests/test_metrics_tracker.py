"""
Unit tests for MetricsTracker class and metrics export.
"""
import os
import sys
import pytest
import json

# Add parent directory to path to import news_list
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from news_list import MetricsTracker, export_metrics_to_json, FETCH_ARTICLES, FETCH_RESOURCE


class TestMetricsTracker:
    """Test metrics tracking functionality."""

    def test_initialization(self):
        """Test MetricsTracker initialization."""
        tracker = MetricsTracker()
        assert tracker.start_time > 0
        assert len(tracker.counters) == 0
        assert len(tracker.fetch_metrics) == 0

    def test_record_fetch(self):
        """Test recording fetches per kind."""
        tracker = MetricsTracker()
        tracker.record_fetch(FETCH_ARTICLES, 150.5, True)
        tracker.record_fetch(FETCH_RESOURCE, 20.0, False)

        assert tracker.fetch_metrics[FETCH_ARTICLES]["requests"] == 1
        assert tracker.fetch_metrics[FETCH_ARTICLES]["errors"] == 0
        assert 150.5 in tracker.fetch_metrics[FETCH_ARTICLES]["response_time_ms"]
        assert tracker.fetch_metrics[FETCH_RESOURCE]["errors"] == 1

    def test_article_counters(self):
        """Test located, discarded and rendered counters."""
        tracker = MetricsTracker()
        tracker.record_articles_located(5)
        tracker.record_article_discarded()
        tracker.record_article_discarded()
        tracker.record_articles_rendered(3)

        data = tracker.to_dict()
        assert data["articles_located"] == 5
        assert data["articles_discarded"] == 2
        assert data["articles_rendered"] == 3

    def test_to_dict_response_times(self):
        """Test response time aggregation."""
        tracker = MetricsTracker()
        tracker.record_fetch(FETCH_ARTICLES, 100.0)
        tracker.record_fetch(FETCH_ARTICLES, 200.0)

        data = tracker.to_dict()
        assert data["fetches"][FETCH_ARTICLES] == {
            "requests": 2,
            "errors": 0,
            "average_ms": 150.0,
            "max_ms": 200.0
        }
        assert data["execution_time_seconds"] >= 0

    def test_to_dict_empty(self):
        """Test an unused tracker exports zeros."""
        data = MetricsTracker().to_dict()
        assert data["articles_rendered"] == 0
        assert data["fetches"] == {}


class TestExportMetricsToJson:
    """Test metrics export."""

    def test_export_creates_directories(self, tmp_path):
        """Test exporting into a missing directory."""
        file_path = str(tmp_path / "_data" / "metrics.json")
        report = {"blocks": {"home": MetricsTracker().to_dict()}}

        assert export_metrics_to_json(report, file_path) is True
        with open(file_path, 'r', encoding='utf-8') as f:
            assert json.load(f)["blocks"]["home"]["articles_rendered"] == 0

    def test_export_failure(self, tmp_path):
        """Test an unwritable path is reported, not raised."""
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding='utf-8')
        file_path = str(blocker / "metrics.json")

        assert export_metrics_to_json({}, file_path) is False
