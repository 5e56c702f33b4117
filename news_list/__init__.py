#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Render news list blocks from remote article endpoints.
Resolves block configuration from several overlapping sources, fetches the
article payload, finds the article collection inside whatever envelope the
backend returns and renders the articles as HTML cards.

Features:
- Case and format insensitive config keys (camelCase, lowercase, kebab-case)
- Remote resource config fallback when a block has no endpoint
- Breadth-first article lookup inside arbitrary JSON payloads
- Field fallback chains for heterogeneous article records
- Per-block metrics and concurrent rendering of independent blocks
"""

import os
import sys
import re
import html
import json
import time
import traceback
import logging
import math
from collections import defaultdict, deque
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import requests
import yaml
from dateutil import parser as date_parser

# Fix encoding for Windows console
if sys.platform == 'win32':
    sys.stdout.reconfigure(encoding='utf-8')

# ============================================================================
# LOGGING SETUP
# ============================================================================

def setup_logging():
    """Configure logging with appropriate format and level."""
    logging.basicConfig(
        level=logging.INFO,
        format='[%(levelname)s] %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    return logging.getLogger(__name__)

logger = setup_logging()

# ============================================================================
# CONSTANTS
# ============================================================================

# File paths
CONFIG_FILE = "_data/news_list_config.yml"
DEFAULT_OUTPUT_DIR = "_includes/news"
DEFAULT_METRICS_JSON_PATH = "_data/news_list_metrics.json"

# Application defaults (used if config file is missing)
DEFAULT_BASE_URL = "http://localhost/"
DEFAULT_TIMEOUT_SECONDS = 15
DEFAULT_MAX_WORKERS = 4
DEFAULT_METRICS_EXPORT_TO_JSON = True
ENV_VAR_BASE_URL = "NEWS_LIST_BASE_URL"

# Block defaults
DEFAULT_LIMIT = 6
DEFAULT_VARIANT = 'standard'
SUPPORTED_VARIANTS = ('standard', 'compact', 'featured')
DEFAULT_SHOW_IMAGE = True
DEFAULT_SHOW_EXCERPT = True
DEFAULT_EXCERPT_LENGTH = 120
DEFAULT_DETAIL_BASE_PATH = '/noticias'
DEFAULT_CTA_LABEL = 'Ler mais'
DEFAULT_LOCALE = 'pt-BR'

TRUE_VALUES = ('true', '1', 'yes', 'sim')
FALSE_VALUES = ('false', '0', 'no', 'nao')

# Accepted spellings per logical option
KEYS_QUERY_URL = ('queryurl', 'query-url', 'queryUrl')
KEYS_ENDPOINT = ('endpoint',)
KEYS_PERSISTED_QUERY = ('persistedquery', 'persisted-query', 'persistedQuery')
KEYS_LIMIT = ('limit',)
KEYS_VARIANT = ('variant',)
KEYS_RESOURCE = ('aueResource', 'aue-resource', 'aueresource', 'resource')
KEYS_SHOW_IMAGE = ('showimage', 'show-image', 'showImage')
KEYS_SHOW_EXCERPT = ('showexcerpt', 'show-excerpt', 'showExcerpt')
KEYS_EXCERPT_LENGTH = ('excerptlength', 'excerpt-length', 'excerptLength')
KEYS_DETAIL_BASE_PATH = ('detailbasepath', 'detail-base-path', 'detailBasePath')
KEYS_CTA_LABEL = ('ctalabel', 'cta-label', 'ctaLabel')
KEYS_LOCALE = ('locale',)

# Render states
STATE_OK = "ok"
STATE_CONFIG_INSUFFICIENT = "config_insufficient"
STATE_TRANSPORT_FAILURE = "transport_failure"
STATE_EMPTY_RESULT = "empty_result"

# Fetch kinds tracked by metrics
FETCH_RESOURCE = "resource"
FETCH_ARTICLES = "articles"

# Metrics tracking
METRICS_SEPARATOR = "=" * 60

# Block messages
MSG_BLOCK_CONFIG_INSUFFICIENT = "Configure `queryUrl` (ou `endpoint`) para carregar noticias."
MSG_BLOCK_TRANSPORT_FAILURE = "Nao foi possivel carregar noticias agora."
MSG_BLOCK_EMPTY_RESULT = "Nenhuma noticia encontrada."

# Log messages
MSG_INFO_LOADED_CONFIG = "Loaded configuration from {path}"
MSG_WARNING_CONFIG_NOT_FOUND = "Config file {path} not found, using defaults"
MSG_WARNING_CONFIG_ERROR = "Error loading config file: {error}, using defaults"
MSG_ERROR_HTTP = "HTTP error in request"
MSG_ERROR_STATUS_CODE = "Status code"
MSG_ERROR_REQUEST = "Request error"
MSG_ERROR_INVALID_JSON = "Response is not valid JSON"
MSG_DEBUG_FETCHING = "Fetching {url}"
MSG_DEBUG_NO_RESOURCE = "No usable resource path, skipping resource config"
MSG_DEBUG_RESOURCE_NOT_OBJECT = "Resource config at {url} is not a JSON object, ignoring it"
MSG_DEBUG_RESOURCE_LOADED = "Loaded {count} field(s) from resource config {url}"
MSG_INFO_NO_ENDPOINT = "No endpoint configured for block {name}, trying resource config"
MSG_WARNING_CONFIG_INSUFFICIENT = "Block {name}: no queryUrl or endpoint configured"
MSG_WARNING_TRANSPORT_FAILURE = "Block {name}: could not load articles from {url}"
MSG_INFO_EMPTY_RESULT = "Block {name}: no usable articles in response"
MSG_OK_RENDERED = "Block {name}: rendered {count} article(s) ({variant})"
MSG_ERROR_RENDER_FAILED = "Block {name}: rendering failed"
MSG_OK_SAVED = "Saved block {name} to {path}"
MSG_ERROR_SAVE_FAILED = "Failed to save block output"
MSG_ERROR_NO_BLOCKS = "No blocks configured. Please check news_list_config.yml"
MSG_INFO_STARTING = "Starting news list rendering"
MSG_INFO_BASE_URL = "Base URL: {url}"
MSG_INFO_BLOCKS_TO_RENDER = "Blocks to render: {count}"
MSG_OK_RENDER_COMPLETE = "[OK] News list rendering complete!"
MSG_WARNING_RENDER_ERRORS = "News list rendering complete with {count} block(s) not rendered"
MSG_INFO_METRICS_EXPORTED = "Metrics exported to {path}"
MSG_WARNING_EXPORT_FAILED = "Failed to export metrics to JSON: {error}"
MSG_INFO_INTERRUPTED = "Interrupted by user"
MSG_FATAL_ERROR = "FATAL ERROR"
MSG_ERROR_UNEXPECTED_MAIN = "Unexpected error in main"
MSG_ERROR_TRACEBACK = "Traceback"

# ============================================================================
# CONFIGURATION LOADING
# ============================================================================

def load_config() -> Dict:
    """Load configuration from YAML file with fallback to defaults."""
    try:
        if os.path.exists(CONFIG_FILE):
            with open(CONFIG_FILE, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
            logger.info(MSG_INFO_LOADED_CONFIG.format(path=CONFIG_FILE))
            return config
        else:
            logger.warning(MSG_WARNING_CONFIG_NOT_FOUND.format(path=CONFIG_FILE))
            return {}
    except Exception as e:
        logger.warning(MSG_WARNING_CONFIG_ERROR.format(error=e))
        return {}

def get_config_value(config: Dict, path: str, default):
    """Safely get nested config value using dot notation (e.g., 'http.timeout_seconds')."""
    keys = path.split('.')
    value = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
            if value is None:
                return default
        else:
            return default
    return value if value is not None else default

def get_base_url(config: Dict) -> str:
    """Origin used to resolve relative endpoints and resource paths."""
    return os.environ.get(ENV_VAR_BASE_URL) or get_config_value(config, 'site.base_url', DEFAULT_BASE_URL)

# ============================================================================
# BLOCK CONFIG NORMALIZATION
# ============================================================================

def key_variants(key: str) -> Tuple[str, str, str]:
    """Return the original, lowercase and kebab-case spellings of a key."""
    kebab = re.sub(r'[A-Z]', lambda match: f"-{match.group(0).lower()}", key)
    return key, key.lower(), kebab

def canonical_key(key: str) -> str:
    """Spelling-independent form of a key: 'showImage', 'show-image' and 'showimage' all match."""
    return key.lower().replace('-', '')

def is_empty_value(value: Any) -> bool:
    """
    Values that are never registered in a block config.
    Explicit False and 0 are kept so authors can switch options off.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list, tuple)):
        return not value
    return False

def merge_config_sources(*sources: Optional[Dict]) -> Dict:
    """
    Merge raw config sources into one lookup, later sources taking precedence.
    Every value is registered under all spellings of its key, replacing any
    spelling already registered for the same option, and empty values never
    override anything.
    """
    merged = {}
    for source in sources:
        for key, value in (source or {}).items():
            if is_empty_value(value):
                continue
            key = str(key)
            canonical = canonical_key(key)
            for existing in [name for name in merged if canonical_key(name) == canonical]:
                merged[existing] = value
            for variant in key_variants(key):
                merged[variant] = value
    return merged

def resolve_config_value(config: Dict, *keys: str):
    """Return the value of the first candidate key present in config, or None."""
    for key in keys:
        if key in config:
            return config[key]
    return None

# ============================================================================
# HTTP
# ============================================================================

def fetch_json(url: str, config: Dict, log_level: int = logging.ERROR) -> Tuple[Optional[Any], float, bool]:
    """
    GET a URL and decode its JSON body.
    Returns (data, response_time_ms, success). Never raises for transport,
    HTTP status or decoding problems; those are logged at log_level.
    """
    timeout = get_config_value(config, 'http.timeout_seconds', DEFAULT_TIMEOUT_SECONDS)
    start_time = time.time()
    logger.debug(MSG_DEBUG_FETCHING.format(url=url))

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
        return data, (time.time() - start_time) * 1000, True
    except requests.exceptions.HTTPError as http_err:
        status_code = http_err.response.status_code if http_err.response is not None else None
        logger.log(log_level, f"{MSG_ERROR_HTTP}: {http_err}")
        if status_code:
            logger.log(log_level, f"{MSG_ERROR_STATUS_CODE}: {status_code}")
    except requests.exceptions.RequestException as req_err:
        logger.log(log_level, f"{MSG_ERROR_REQUEST}: {req_err}")
    except ValueError as json_err:
        logger.log(log_level, f"{MSG_ERROR_INVALID_JSON}: {json_err}")
    return None, (time.time() - start_time) * 1000, False

# ============================================================================
# ENDPOINT RESOLUTION
# ============================================================================

def parse_positive_int(value: Any, fallback: int) -> int:
    """Parse a base-10 integer prefix; fall back when missing or not positive."""
    if isinstance(value, bool):
        return fallback
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return fallback
        parsed = int(value)
    elif isinstance(value, str):
        match = re.match(r'\s*([+-]?\d+)', value)
        if not match:
            return fallback
        parsed = int(match.group(1))
    else:
        return fallback
    return parsed if parsed > 0 else fallback

def set_query_params(url: str, params: Dict[str, str]) -> str:
    """Set query parameters on a URL, replacing any existing ones with the same name."""
    parts = urlsplit(url)
    query = [(name, value) for name, value in parse_qsl(parts.query, keep_blank_values=True)
             if name not in params]
    query.extend(params.items())
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))

def get_origin(base_url: str) -> str:
    """Reduce a base URL to its origin ('https://host/'); relative values are kept as given."""
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        return base_url
    return urlunsplit((parts.scheme, parts.netloc, '/', '', ''))

def build_request_url(config: Dict, base_url: str) -> Optional[str]:
    """
    Derive the article request URL from a block config.

    A configured queryUrl is used verbatim. Otherwise the endpoint is resolved
    against base_url and gets persistedQuery (when configured) and limit
    parameters. Returns None when neither is configured.
    """
    query_url = resolve_config_value(config, *KEYS_QUERY_URL)
    if query_url:
        return str(query_url)

    endpoint = resolve_config_value(config, *KEYS_ENDPOINT)
    if not endpoint:
        return None

    params = {}
    persisted_query = resolve_config_value(config, *KEYS_PERSISTED_QUERY)
    if persisted_query:
        params['persistedQuery'] = str(persisted_query)
    params['limit'] = str(parse_positive_int(resolve_config_value(config, *KEYS_LIMIT), DEFAULT_LIMIT))

    return set_query_params(urljoin(get_origin(base_url), str(endpoint)), params)

# ============================================================================
# RESOURCE CONFIG
# ============================================================================

def parse_resource_path(resource: Any) -> str:
    """
    Turn a resource reference into an absolute path.
    'urn:<scheme>:/content/page' becomes '/content/page', absolute paths are
    kept and anything else yields ''.
    """
    if not resource or not isinstance(resource, str):
        return ''
    if resource.startswith('urn:'):
        idx = resource.find(':/')
        if idx >= 0:
            return resource[idx + 1:]
    return resource if resource.startswith('/') else ''

def stringify_scalar(value: Any) -> str:
    """Render a JSON scalar the way it reads in markup attributes."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

def read_resource_config(block_config: Dict, config: Dict, metrics: Optional['MetricsTracker'] = None) -> Dict:
    """
    Fetch '{resource}.json' for a block and return its scalar fields as config.
    Every failure degrades to an empty dict.
    """
    resource_path = parse_resource_path(resolve_config_value(block_config, *KEYS_RESOURCE))
    if not resource_path:
        logger.debug(MSG_DEBUG_NO_RESOURCE)
        return {}

    url = urljoin(get_base_url(config), f"{resource_path}.json")
    data, response_time_ms, success = fetch_json(url, config, log_level=logging.DEBUG)
    if metrics:
        metrics.record_fetch(FETCH_RESOURCE, response_time_ms, success)
    if not success:
        return {}
    if not isinstance(data, dict):
        logger.debug(MSG_DEBUG_RESOURCE_NOT_OBJECT.format(url=url))
        return {}

    resource_config = {}
    field_count = 0
    for key, value in data.items():
        if isinstance(value, (str, int, float, bool)):
            resource_config[key] = stringify_scalar(value)
            resource_config[key.lower()] = stringify_scalar(value)
            field_count += 1
    logger.debug(MSG_DEBUG_RESOURCE_LOADED.format(count=field_count, url=url))
    return resource_config

# ============================================================================
# ARTICLE EXTRACTION
# ============================================================================

def extract_articles(payload: Any) -> List[Dict]:
    """
    Find the article list inside an arbitrarily shaped JSON payload.

    Breadth-first search for the first object whose 'items' field is a list
    starting with an object, so shallower collections win over deeper ones
    and siblings are checked in document order. Returns [] when none exists.
    """
    if not isinstance(payload, (dict, list)):
        return []

    queue = deque([payload])
    while queue:
        current = queue.popleft()
        if isinstance(current, dict):
            items = current.get('items')
            if isinstance(items, list) and items and isinstance(items[0], dict):
                return items
            children = current.values()
        else:
            children = current

        for value in children:
            if isinstance(value, (dict, list)):
                queue.append(value)

    return []

def _text(value: Any) -> str:
    """Return scalar values as text; containers and None are not text."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ''

def _first_text(*values: Any) -> str:
    for value in values:
        text = _text(value)
        if text:
            return text
    return ''

def _field(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None

def normalize_article(item: Any) -> Optional[Dict]:
    """
    Map a raw article record onto the fixed article shape.
    Returns None when the item has no title or no slug.
    """
    if not isinstance(item, dict):
        return None

    title = _first_text(item.get('title'), item.get('headline'))
    slug = _first_text(item.get('slug'), item.get('path'))
    if not title or not slug:
        return None

    raw_excerpt = item.get('excerpt')
    excerpt = _first_text(
        raw_excerpt if isinstance(raw_excerpt, str) else _field(raw_excerpt, 'plaintext'),
        item.get('description'),
        item.get('summary'),
    )
    image = _first_text(
        _field(item.get('image'), '_path'),
        item.get('image'),
        _field(item.get('heroImage'), '_path'),
        item.get('heroImage'),
        _field(item.get('thumbnail'), '_path'),
        item.get('thumbnail'),
    )
    image_alt = _first_text(item.get('imageAlt')) or title
    publish_date = _first_text(item.get('publishDate'), item.get('date'), item.get('publishedAt'))

    return {
        "title": title,
        "slug": slug,
        "excerpt": excerpt,
        "image": image,
        "imageAlt": image_alt,
        "publishDate": publish_date,
    }

def collect_articles(payload: Any, limit: int, metrics: Optional['MetricsTracker'] = None) -> List[Dict]:
    """Locate, normalize and truncate the articles of a payload, keeping their order."""
    articles = []
    raw_items = extract_articles(payload)
    for item in raw_items:
        article = normalize_article(item)
        if article:
            articles.append(article)
        elif metrics:
            metrics.record_article_discarded()
    if metrics:
        metrics.record_articles_located(len(raw_items))
    return articles[:limit]

# ============================================================================
# RENDER OPTIONS
# ============================================================================

class RenderOptions(NamedTuple):
    """Display options of one block render."""
    show_image: bool
    show_excerpt: bool
    excerpt_length: int
    detail_base_path: str
    cta_label: str
    locale: str
    limit: int

def parse_boolean(value: Any, fallback: bool = True) -> bool:
    """Parse yes/no style flags (English and Portuguese); unknown values use fallback."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        return fallback

    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    return fallback

def _string_option(config: Dict, keys: Tuple[str, ...], default: str) -> str:
    value = resolve_config_value(config, *keys)
    if isinstance(value, str) and value.strip():
        return value
    return default

def build_render_options(config: Dict) -> RenderOptions:
    """Resolve the display options of a block from its merged config."""
    return RenderOptions(
        show_image=parse_boolean(resolve_config_value(config, *KEYS_SHOW_IMAGE), DEFAULT_SHOW_IMAGE),
        show_excerpt=parse_boolean(resolve_config_value(config, *KEYS_SHOW_EXCERPT), DEFAULT_SHOW_EXCERPT),
        excerpt_length=parse_positive_int(resolve_config_value(config, *KEYS_EXCERPT_LENGTH), DEFAULT_EXCERPT_LENGTH),
        detail_base_path=_string_option(config, KEYS_DETAIL_BASE_PATH, DEFAULT_DETAIL_BASE_PATH),
        cta_label=_string_option(config, KEYS_CTA_LABEL, DEFAULT_CTA_LABEL),
        locale=_string_option(config, KEYS_LOCALE, DEFAULT_LOCALE),
        limit=parse_positive_int(resolve_config_value(config, *KEYS_LIMIT), DEFAULT_LIMIT),
    )

def get_variant(block: Dict, config: Dict) -> str:
    """Pick the block variant: block class first, then config, then the default."""
    classes = block.get('classes') or []
    class_variant = next((variant for variant in SUPPORTED_VARIANTS if variant in classes), '')
    variant_value = resolve_config_value(config, *KEYS_VARIANT)
    config_variant = variant_value.strip().lower() if isinstance(variant_value, str) else ''
    variant = class_variant or config_variant or DEFAULT_VARIANT
    return variant if variant in SUPPORTED_VARIANTS else DEFAULT_VARIANT

# ============================================================================
# CARD RENDERING
# ============================================================================

# Short month names per language, used for card dates
MONTH_ABBREVIATIONS = {
    'pt': ['jan.', 'fev.', 'mar.', 'abr.', 'mai.', 'jun.', 'jul.', 'ago.', 'set.', 'out.', 'nov.', 'dez.'],
    'es': ['ene', 'feb', 'mar', 'abr', 'may', 'jun', 'jul', 'ago', 'sept', 'oct', 'nov', 'dic'],
    'en': ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec'],
}

def get_card_link(base_path: Any, slug: str) -> str:
    """Join the detail page base path and an article slug."""
    if isinstance(base_path, str) and base_path.strip():
        normalized_base = re.sub(r'/$', '', base_path.strip())
    else:
        normalized_base = DEFAULT_DETAIL_BASE_PATH
    normalized_slug = re.sub(r'^/', '', str(slug))
    return f"{normalized_base}/{normalized_slug}"

def format_date(date_value: str, locale: str = DEFAULT_LOCALE) -> str:
    """Format a publish date as day, short month and year; '' when unparseable."""
    if not date_value:
        return ''
    try:
        date = date_parser.parse(date_value)
    except (ValueError, OverflowError, TypeError):
        return ''

    language = (locale or DEFAULT_LOCALE).split('-')[0].lower()
    months = MONTH_ABBREVIATIONS.get(language)
    if not months:
        return date.strftime('%Y-%m-%d')
    month = months[date.month - 1]
    if language == 'en':
        return f"{month} {date.day:02d}, {date.year}"
    if language == 'es':
        return f"{date.day:02d} {month} {date.year}"
    return f"{date.day:02d} de {month} de {date.year}"

def trim_excerpt(text: str, max_length: int) -> str:
    """Cut an excerpt to max_length characters, marking the cut with '...'."""
    if not text:
        return ''
    if len(text) <= max_length:
        return text
    return f"{text[:max_length].strip()}..."

def render_article_card(article: Dict, options: RenderOptions) -> str:
    """Render one normalized article as a list item."""
    link = html.escape(get_card_link(options.detail_base_path, article['slug']))
    parts = ['<li class="news-list-card">', '<article class="news-list-card-inner">']

    if options.show_image and article['image']:
        parts.append(
            f'<a class="news-list-card-image" href="{link}">'
            f'<picture><img src="{html.escape(article["image"])}" alt="{html.escape(article["imageAlt"])}" loading="lazy"></picture>'
            '</a>'
        )

    parts.append('<div class="news-list-card-content">')
    date = format_date(article['publishDate'], options.locale)
    if date:
        parts.append(f'<p class="news-list-card-date">{html.escape(date)}</p>')
    parts.append(f'<h3 class="news-list-card-title"><a href="{link}">{html.escape(article["title"])}</a></h3>')
    if options.show_excerpt and article['excerpt']:
        excerpt = trim_excerpt(article['excerpt'], options.excerpt_length)
        parts.append(f'<p class="news-list-card-excerpt">{html.escape(excerpt)}</p>')
    parts.append(f'<a class="news-list-card-link" href="{link}">{html.escape(options.cta_label)}</a>')
    parts.append('</div>')

    parts.append('</article>')
    parts.append('</li>')
    return ''.join(parts)

def render_article_list(articles: List[Dict], options: RenderOptions) -> str:
    cards = ''.join(render_article_card(article, options) for article in articles)
    return f'<ul class="news-list-items">{cards}</ul>'

def render_empty_state(message: str = MSG_BLOCK_EMPTY_RESULT) -> str:
    return html.escape(message)

# ============================================================================
# METRICS TRACKING
# ============================================================================

class MetricsTracker:
    """Track metrics of a single block render."""

    def __init__(self):
        self.start_time = time.time()
        self.counters = defaultdict(int)
        self.fetch_metrics = defaultdict(lambda: {
            'requests': 0,
            'errors': 0,
            'response_time_ms': []
        })

    def record_fetch(self, kind: str, response_time_ms: float, success: bool = True):
        """Record a fetch of the given kind with its response time."""
        self.fetch_metrics[kind]['requests'] += 1
        self.fetch_metrics[kind]['response_time_ms'].append(response_time_ms)
        if not success:
            self.fetch_metrics[kind]['errors'] += 1

    def record_articles_located(self, count: int):
        self.counters['articles_located'] += count

    def record_article_discarded(self):
        self.counters['articles_discarded'] += 1

    def record_articles_rendered(self, count: int):
        self.counters['articles_rendered'] = count

    def get_total_time(self) -> float:
        """Get total render time in seconds."""
        return time.time() - self.start_time

    def to_dict(self) -> Dict:
        """Convert metrics to dictionary for JSON export."""
        result = {
            'execution_time_seconds': round(self.get_total_time(), 2),
            'articles_located': self.counters['articles_located'],
            'articles_discarded': self.counters['articles_discarded'],
            'articles_rendered': self.counters['articles_rendered'],
            'fetches': {}
        }

        for kind, metrics in self.fetch_metrics.items():
            response_times = metrics['response_time_ms']
            result['fetches'][kind] = {
                'requests': metrics['requests'],
                'errors': metrics['errors'],
                'average_ms': round(sum(response_times) / len(response_times), 2) if response_times else 0,
                'max_ms': round(max(response_times), 2) if response_times else 0,
            }

        return result

def export_metrics_to_json(report: Dict, file_path: str) -> bool:
    """Export the metrics report of a run to a JSON file."""
    try:
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
        logger.info(MSG_INFO_METRICS_EXPORTED.format(path=file_path))
        return True
    except Exception as e:
        logger.warning(MSG_WARNING_EXPORT_FAILED.format(error=e))
        return False

# ============================================================================
# BLOCK RENDERING
# ============================================================================

def _block_result(state: str, variant: str, metrics: MetricsTracker, message: str = '',
                  request_url: Optional[str] = None, articles: Optional[List[Dict]] = None,
                  content: str = '') -> Dict:
    return {
        "state": state,
        "variant": variant,
        "message": message,
        "request_url": request_url,
        "articles": articles or [],
        "html": content or render_empty_state(message),
        "metrics": metrics.to_dict(),
    }

def render_block(block: Dict, config: Optional[Dict] = None, name: str = "news-list") -> Dict:
    """
    Render one news list block.

    The block dict carries the authored 'config', the markup 'dataset' and the
    block 'classes'. Returns the render result; every failure is mapped to a
    result state with a message instead of being raised.
    """
    config = config or {}
    metrics = MetricsTracker()
    base_url = get_base_url(config)

    block_config = merge_config_sources(block.get('config'), block.get('dataset'))
    if not build_request_url(block_config, base_url):
        logger.info(MSG_INFO_NO_ENDPOINT.format(name=name))
        block_config = merge_config_sources(block_config, read_resource_config(block_config, config, metrics))

    variant = get_variant(block, block_config)
    request_url = build_request_url(block_config, base_url)
    if not request_url:
        logger.warning(MSG_WARNING_CONFIG_INSUFFICIENT.format(name=name))
        return _block_result(STATE_CONFIG_INSUFFICIENT, variant, metrics, MSG_BLOCK_CONFIG_INSUFFICIENT)

    options = build_render_options(block_config)

    payload, response_time_ms, success = fetch_json(request_url, config)
    metrics.record_fetch(FETCH_ARTICLES, response_time_ms, success)
    if not success:
        logger.warning(MSG_WARNING_TRANSPORT_FAILURE.format(name=name, url=request_url))
        return _block_result(STATE_TRANSPORT_FAILURE, variant, metrics, MSG_BLOCK_TRANSPORT_FAILURE,
                             request_url=request_url)

    articles = collect_articles(payload, options.limit, metrics)
    if not articles:
        logger.info(MSG_INFO_EMPTY_RESULT.format(name=name))
        return _block_result(STATE_EMPTY_RESULT, variant, metrics, MSG_BLOCK_EMPTY_RESULT,
                             request_url=request_url)

    metrics.record_articles_rendered(len(articles))
    logger.info(MSG_OK_RENDERED.format(name=name, count=len(articles), variant=variant))
    return _block_result(STATE_OK, variant, metrics, request_url=request_url, articles=articles,
                         content=render_article_list(articles, options))

def render_blocks(blocks: Dict[str, Dict], config: Optional[Dict] = None) -> Dict[str, Dict]:
    """
    Render independent blocks concurrently.
    Returns results keyed by block name; blocks whose render crashed are left out.
    """
    config = config or {}
    max_workers = get_config_value(config, 'rendering.max_workers', DEFAULT_MAX_WORKERS)
    results = {}
    if not blocks:
        return results

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(blocks)))) as executor:
        future_to_name = {
            executor.submit(render_block, block or {}, config, name): name
            for name, block in blocks.items()
        }
        for future in as_completed(future_to_name):
            name = future_to_name[future]
            try:
                results[name] = future.result()
            except Exception as e:
                logger.error(f"{MSG_ERROR_RENDER_FAILED.format(name=name)}: {e}")
                logger.error(f"{MSG_ERROR_TRACEBACK}: {traceback.format_exc()}")

    return {name: results[name] for name in blocks if name in results}

# ============================================================================
# FILE OUTPUT
# ============================================================================

def write_block_html(name: str, result: Dict, output_dir: str) -> bool:
    """Write the rendered block wrapper to '{output_dir}/{name}.html'."""
    try:
        file_path = os.path.join(output_dir, f"{name}.html")
        os.makedirs(output_dir, exist_ok=True)

        content = (
            f'<div class="news-list news-list-{result["variant"]}" data-state="{result["state"]}">'
            f'{result["html"]}</div>\n'
        )
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)

        logger.info(MSG_OK_SAVED.format(name=name, path=file_path))
        return True
    except Exception as e:
        logger.error(f"{MSG_ERROR_SAVE_FAILED} for {name}: {e}")
        logger.error(f"{MSG_ERROR_TRACEBACK}: {traceback.format_exc()}")
        return False

# ============================================================================
# MAIN EXECUTION
# ============================================================================

def main():
    """Render every configured block and write its HTML."""
    config = load_config()
    logger.info(MSG_INFO_STARTING)
    logger.info(MSG_INFO_BASE_URL.format(url=get_base_url(config)))

    blocks = get_config_value(config, 'blocks', {})
    if not blocks:
        logger.error(MSG_ERROR_NO_BLOCKS)
        return

    logger.info(MSG_INFO_BLOCKS_TO_RENDER.format(count=len(blocks)) + "\n")
    results = render_blocks(blocks, config)

    output_dir = get_config_value(config, 'rendering.output_dir', DEFAULT_OUTPUT_DIR)
    error_count = len(blocks) - len(results)
    for name, result in results.items():
        if not write_block_html(name, result, output_dir):
            error_count += 1

    logger.info(f"\n{METRICS_SEPARATOR}")
    if error_count == 0:
        logger.info(MSG_OK_RENDER_COMPLETE)
    else:
        logger.warning(MSG_WARNING_RENDER_ERRORS.format(count=error_count))
    for name, result in results.items():
        logger.info(f"   {name}: {result['state']} ({len(result['articles'])} article(s))")
    logger.info(f"{METRICS_SEPARATOR}")

    if get_config_value(config, 'metrics.export_to_json', DEFAULT_METRICS_EXPORT_TO_JSON):
        json_path = get_config_value(config, 'metrics.json_output_path', DEFAULT_METRICS_JSON_PATH)
        report = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'blocks': {name: result['metrics'] for name, result in results.items()},
        }
        export_metrics_to_json(report, json_path)

def run_cli():
    """Entry point wrapper that handles CLI execution and exit codes."""
    try:
        main()
        sys.exit(0)
    except KeyboardInterrupt:
        logger.info(f"\n{MSG_INFO_INTERRUPTED}")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"\n{MSG_FATAL_ERROR}: {MSG_ERROR_UNEXPECTED_MAIN}: {e}")
        logger.critical(traceback.format_exc())
        sys.exit(1)


if __name__ == "__main__":
    run_cli()
