"""
Tests for the endpoint diagnostic script.
"""
import os
import sys
import pytest
import requests
from unittest.mock import Mock, patch

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from check_news_endpoint import check_news_endpoint


class TestCheckNewsEndpoint:
    """Test the endpoint report."""

    @patch('check_news_endpoint.requests.get')
    def test_usable_articles(self, mock_get, capsys):
        """Test an endpoint with usable articles."""
        response = Mock()
        response.ok = True
        response.status_code = 200
        response.headers = {'Content-Type': 'application/json'}
        response.json.return_value = {"data": {"items": [{"title": "A", "slug": "a"}, {"headline": "B"}]}}
        mock_get.return_value = response

        assert check_news_endpoint("https://x/y") is True
        output = capsys.readouterr().out
        assert "Items located: 2" in output
        assert "Usable articles: 1" in output
        assert "Discarded items: 1" in output

    @patch('check_news_endpoint.requests.get')
    def test_error_status(self, mock_get):
        """Test a non-OK status is reported as a failure."""
        response = Mock()
        response.ok = False
        response.status_code = 500
        response.headers = {}
        response.text = "Internal Server Error"
        mock_get.return_value = response

        assert check_news_endpoint("https://x/y") is False

    @patch('check_news_endpoint.requests.get')
    def test_invalid_json(self, mock_get):
        """Test a non-JSON body is reported as a failure."""
        response = Mock()
        response.ok = True
        response.status_code = 200
        response.headers = {'Content-Type': 'text/html'}
        response.text = "<html></html>"
        response.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = response

        assert check_news_endpoint("https://x/y") is False

    @patch('check_news_endpoint.requests.get')
    def test_timeout(self, mock_get):
        """Test a timeout is reported as a failure."""
        mock_get.side_effect = requests.exceptions.Timeout()

        assert check_news_endpoint("https://x/y") is False
