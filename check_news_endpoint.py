#!/usr/bin/env python3
"""
Check what a news endpoint returns for a news list block.
Makes a single request and reports where the article collection was found
and how many of its items survive normalization.

Usage:
    python check_news_endpoint.py https://www.example.com/api/news
"""

import sys
import time
from datetime import datetime

import requests

from news_list import extract_articles, normalize_article

DEFAULT_TIMEOUT_SECONDS = 15

def check_news_endpoint(url: str, timeout: int = DEFAULT_TIMEOUT_SECONDS) -> bool:
    """Fetch an endpoint once and print a report. Returns True when articles were found."""

    print("=" * 70)
    print("News Endpoint Check")
    print("=" * 70)
    print(f"URL: {url}")
    print(f"Check Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")

    try:
        start_time = time.time()
        response = requests.get(url, timeout=timeout)
        response_time = (time.time() - start_time) * 1000

        print(f"Status Code: {response.status_code}")
        print(f"Response Time: {response_time:.0f}ms")
        print(f"Content-Type: {response.headers.get('Content-Type', 'N/A')}\n")

        if not response.ok:
            print(f"[ERROR] Unexpected status code: {response.status_code}")
            print(f"  Response: {response.text[:500]}")
            return False

        try:
            payload = response.json()
        except ValueError:
            print("[ERROR] Response is not valid JSON")
            print(f"  Response: {response.text[:500]}")
            return False

    except requests.exceptions.Timeout:
        print("[ERROR] Request timed out")
        return False
    except requests.exceptions.RequestException as e:
        print(f"[ERROR] Request failed: {e}")
        return False

    items = extract_articles(payload)
    articles = [article for article in (normalize_article(item) for item in items) if article]

    print("-" * 70)
    print(f"Items located: {len(items)}")
    print(f"Usable articles: {len(articles)}")
    print(f"Discarded items: {len(items) - len(articles)}")
    for article in articles[:5]:
        print(f"  - {article['title']} ({article['slug']})")
    print("-" * 70)

    if articles:
        print("[SUCCESS] Endpoint returns usable articles.")
        return True
    print("[WARNING] No usable articles found. Items need a title/headline and a slug/path.")
    return False

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(0 if check_news_endpoint(sys.argv[1]) else 1)
