"""
Configuration Manager for Site Content Harvester

Handles YAML/JSON configuration files and environment variable integration,
and parses the site/selector table into immutable source specifications.
"""

import os
import copy
import json
import yaml
from typing import Dict, Any, Optional, List
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from pathlib import Path

from harvester.core.base import (
    ConfigurationError,
    RECORD_FIELDS,
    SelectorChain,
    SiteSpec,
    SourceSpec,
)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


def _from_dict(cls, data: Optional[Dict[str, Any]]):
    """Build a config dataclass from a mapping, ignoring unknown keys"""
    data = data or {}
    kwargs = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        nested = f.default_factory if f.default_factory is not MISSING else None
        if nested is not None and is_dataclass(nested) and isinstance(value, dict):
            value = _from_dict(nested, value)
        kwargs[f.name] = value
    return cls(**kwargs)


@dataclass
class RequestConfig:
    """Static retrieval settings"""
    timeout: float = 30.0
    max_attempts: int = 3
    retry_delay: float = 1.0
    politeness_delay: float = 1.0
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RequestConfig":
        return _from_dict(cls, data)


@dataclass
class RenderConfig:
    """Dynamic rendering settings"""
    headless: bool = True
    timeout: float = 30.0
    wait_until: str = "networkidle"
    viewport_width: int = 1200
    viewport_height: int = 800
    max_attempts: int = 2

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RenderConfig":
        return _from_dict(cls, data)


@dataclass
class CleanupRules:
    """Toggles for the content cleaner"""
    remove_empty_paragraphs: bool = True
    remove_excessive_whitespace: bool = True
    remove_navigation_elements: bool = True


@dataclass
class ProcessingConfig:
    """Content processing thresholds"""
    min_content_length: int = 50
    max_content_length: int = 50000
    convert_to_markdown: bool = True
    include_context: bool = False
    cleanup_rules: CleanupRules = field(default_factory=CleanupRules)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ProcessingConfig":
        return _from_dict(cls, data)


@dataclass
class FallbackSelectors:
    """Generic selector chains used when site selectors find nothing"""
    title: List[str] = field(default_factory=lambda: [
        "h1", ".post-title", ".entry-title", ".article-title", "title"
    ])
    content: List[str] = field(default_factory=lambda: [
        "[data-testid='post-content']",
        ".prose",
        ".markdown",
        ".blog-content",
        ".article-content",
        ".post-content",
        ".entry-content",
        "article",
        ".content",
        "main",
        ".post-body",
        "p",
    ])
    author: List[str] = field(default_factory=lambda: [
        ".author", ".post-author", ".by-author", '[rel="author"]', '[class*="author"]'
    ])
    date: List[str] = field(default_factory=lambda: [
        "time", ".date", ".post-date", ".published"
    ])

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FallbackSelectors":
        return _from_dict(cls, data)

    def chain(self, field_name: str) -> SelectorChain:
        return SelectorChain.from_config(getattr(self, field_name, None))


@dataclass
class LoggingConfig:
    """Logging system configuration"""
    level: str = "INFO"
    file: str = "./logs/harvester.log"
    max_size: str = "10MB"
    backup_count: int = 5


@dataclass
class OutputConfig:
    """Output file settings"""
    dir: str = "./data"
    filename: str = "scraped_content.json"
    pretty_print: bool = True


_LINK_SELECTOR_KEYS = ("link_selectors", "post_links", "guide_links")


class ConfigManager:
    """
    Centralized configuration manager with support for YAML/JSON files
    and environment variable integration.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self._config_data: Dict[str, Any] = {}
        self.request_config: Optional[RequestConfig] = None
        self.render_config: Optional[RenderConfig] = None
        self.processing_config: Optional[ProcessingConfig] = None
        self.fallback_selectors: Optional[FallbackSelectors] = None
        self.logging_config: Optional[LoggingConfig] = None
        self.output_config: Optional[OutputConfig] = None
        self.sites: Dict[str, SiteSpec] = {}

    def load_config(self, config_path: Optional[str] = None, create_default: bool = False) -> Dict[str, Any]:
        """Load configuration from file with environment variable override"""
        if config_path:
            self.config_path = config_path

        config_file = Path(self.config_path) if self.config_path else None

        if config_file is None or not config_file.exists():
            self._config_data = self._get_default_config()
            if config_file is not None and create_default:
                self._create_default_config_file()
        else:
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    if config_file.suffix.lower() == '.json':
                        loaded = json.load(f)
                    else:
                        loaded = yaml.safe_load(f) or {}
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {config_file}: {e}")
            if not isinstance(loaded, dict):
                raise ConfigurationError(f"Configuration root must be a mapping: {config_file}")
            self._config_data = self._merge_defaults(loaded)

        self._apply_env_overrides()
        self._parse_config()

        return self._config_data

    @property
    def data(self) -> Dict[str, Any]:
        return self._config_data

    def refresh(self) -> None:
        """Re-parse the configuration dictionary after in-place changes"""
        self._parse_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration dictionary"""
        return {
            'request': {
                'timeout': 30.0,
                'max_attempts': 3,
                'retry_delay': 1.0,
                'politeness_delay': 1.0,
                'user_agent': DEFAULT_USER_AGENT
            },
            'render': {
                'headless': True,
                'timeout': 30.0,
                'wait_until': 'networkidle',
                'viewport_width': 1200,
                'viewport_height': 800,
                'max_attempts': 2
            },
            'processing': {
                'min_content_length': 50,
                'max_content_length': 50000,
                'convert_to_markdown': True,
                'include_context': False,
                'cleanup_rules': {
                    'remove_empty_paragraphs': True,
                    'remove_excessive_whitespace': True,
                    'remove_navigation_elements': True
                }
            },
            'fallback_selectors': {
                'title': FallbackSelectors().title,
                'content': FallbackSelectors().content,
                'author': FallbackSelectors().author,
                'date': FallbackSelectors().date
            },
            'output': {
                'dir': './data',
                'filename': 'scraped_content.json',
                'pretty_print': True
            },
            'logging': {
                'level': 'INFO',
                'file': './logs/harvester.log',
                'max_size': '10MB',
                'backup_count': 5
            },
            'sites': _default_sites()
        }

    def _merge_defaults(self, loaded: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay a loaded file on the defaults; a file that defines sites replaces the table"""
        merged = self._get_default_config()
        for section, value in loaded.items():
            if section != 'sites' and isinstance(value, dict) and isinstance(merged.get(section), dict):
                merged[section].update(value)
            else:
                merged[section] = value
        return merged

    def _create_default_config_file(self) -> None:
        """Create default configuration file"""
        config_dir = Path(self.config_path).parent
        config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump(self._config_data, f, default_flow_style=False, indent=2, sort_keys=False)

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides"""
        if os.getenv('HARVESTER_LOG_LEVEL'):
            self._config_data.setdefault('logging', {})['level'] = os.getenv('HARVESTER_LOG_LEVEL')

        if os.getenv('HARVESTER_OUTPUT_DIR'):
            self._config_data.setdefault('output', {})['dir'] = os.getenv('HARVESTER_OUTPUT_DIR')

        numeric_overrides = [
            ('HARVESTER_MAX_ATTEMPTS', 'max_attempts', int),
            ('HARVESTER_TIMEOUT', 'timeout', float),
            ('HARVESTER_POLITENESS_DELAY', 'politeness_delay', float),
        ]
        for env_name, key, cast in numeric_overrides:
            raw = os.getenv(env_name)
            if not raw:
                continue
            try:
                self._config_data.setdefault('request', {})[key] = cast(raw)
            except ValueError:
                pass

    def _parse_config(self) -> None:
        """Parse configuration into dataclass objects"""
        self.request_config = RequestConfig.from_dict(self._config_data.get('request'))
        self.render_config = RenderConfig.from_dict(self._config_data.get('render'))
        self.processing_config = ProcessingConfig.from_dict(self._config_data.get('processing'))
        self.fallback_selectors = FallbackSelectors.from_dict(self._config_data.get('fallback_selectors'))
        self.output_config = _from_dict(OutputConfig, self._config_data.get('output'))
        self.logging_config = _from_dict(LoggingConfig, self._config_data.get('logging'))
        self.sites = parse_sites(self._config_data.get('sites') or {})

    def validate_config(self) -> bool:
        """Validate thresholds and retry settings"""
        if self.request_config is None or self.processing_config is None:
            raise ConfigurationError("Configuration not loaded")

        processing = self.processing_config
        if processing.min_content_length < 0:
            raise ConfigurationError("min_content_length must be non-negative")
        if processing.max_content_length <= processing.min_content_length:
            raise ConfigurationError("max_content_length must be greater than min_content_length")

        request = self.request_config
        if request.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if request.timeout <= 0:
            raise ConfigurationError("timeout must be greater than 0")
        if request.retry_delay < 0 or request.politeness_delay < 0:
            raise ConfigurationError("delays must be non-negative")

        return True

    def get_site(self, name: str) -> SiteSpec:
        if name not in self.sites:
            raise ConfigurationError(f"Unknown site: {name}")
        return self.sites[name]

    def get_sites(self, names: Optional[List[str]] = None) -> List[SiteSpec]:
        """Configured sites, optionally restricted to the given names"""
        if not names:
            return list(self.sites.values())
        return [self.get_site(name) for name in names]


def parse_sites(sites_data: Dict[str, Any]) -> Dict[str, SiteSpec]:
    """Parse the raw site table into SiteSpec objects"""
    sites = {}
    for site_name, site_data in sites_data.items():
        if not isinstance(site_data, dict):
            raise ConfigurationError(f"Site {site_name} must be a mapping")
        base_url = (site_data.get('base_url') or '').rstrip('/')
        if not base_url:
            raise ConfigurationError(f"Site {site_name} has no base_url")
        sources = tuple(
            parse_source(source_data, base_url, site_name)
            for source_data in site_data.get('sources') or []
        )
        sites[site_name] = SiteSpec(name=site_name, base_url=base_url, sources=sources)
    return sites


def parse_source(source_data: Dict[str, Any], base_url: str, site_name: str = "") -> SourceSpec:
    """Parse one source entry; optional selectors fall through to defaults"""
    if not source_data.get('url'):
        raise ConfigurationError(f"Source {source_data.get('name', '?')} of {site_name} has no url")

    selectors = source_data.get('selectors') or {}
    link_value = None
    for key in _LINK_SELECTOR_KEYS:
        if selectors.get(key):
            link_value = selectors[key]
            break

    return SourceSpec(
        name=source_data.get('name') or source_data['url'],
        url=source_data['url'],
        base_url=(source_data.get('base_url') or base_url).rstrip('/'),
        content_type=source_data.get('content_type') or 'other',
        default_author=source_data.get('default_author') or '',
        listing_type=source_data.get('type') or 'blog_listing',
        requires_render=bool(source_data.get('requires_render', False)),
        link_selectors=SelectorChain.from_config(link_value),
        field_selectors={
            name: SelectorChain.from_config(selectors.get(name))
            for name in RECORD_FIELDS
            if selectors.get(name)
        },
    )


def _default_sites() -> Dict[str, Any]:
    """Built-in site table"""
    sites = {
        'interviewing.io': {
            'base_url': 'https://interviewing.io',
            'sources': [
                {
                    'name': 'blog',
                    'url': 'https://interviewing.io/blog',
                    'type': 'blog_listing',
                    'requires_render': False,
                    'selectors': {
                        'post_links': 'a[href*="/blog/"], a[href^="/blog/"], h2 a, h3 a, .post-title a',
                        'title': 'h1, h2, h3, .post-title, .entry-title, .title',
                        'content': [
                            "[data-testid='post-content']",
                            '.prose',
                            '.markdown',
                            '.blog-content',
                            '.article-content',
                            '.post-content',
                            '.entry-content',
                            'article',
                            '.content',
                            'main',
                            '.post-body',
                            'p'
                        ],
                        'author': '.author, .post-author, [class*="author"], .byline',
                        'date': '.date, .post-date, time, .published'
                    },
                    'content_type': 'blog',
                    'default_author': 'interviewing.io'
                },
                {
                    'name': 'company_guides',
                    'url': 'https://interviewing.io/topics#companies',
                    'type': 'guide_listing',
                    'requires_render': True,
                    'selectors': {
                        'guide_links': 'a[href*="/topics/"], a[href*="/companies/"]',
                        'title': 'h1, .guide-title',
                        'content': ['.guide-content', '.topic-content', 'main', '.content', 'article', 'p'],
                        'author': '.author, [class*="author"]'
                    },
                    'content_type': 'other'
                },
                {
                    'name': 'interview_guides',
                    'url': 'https://interviewing.io/learn#interview-guides',
                    'type': 'guide_listing',
                    'requires_render': True,
                    'selectors': {
                        'guide_links': 'a[href*="/learn/"], a[href*="/guides/"]',
                        'title': 'h1, .guide-title',
                        'content': ['.guide-content', '.learn-content', 'main', '.content', 'article', 'p'],
                        'author': '.author, [class*="author"]'
                    },
                    'content_type': 'other'
                }
            ]
        },
        'nilmamano.com': {
            'base_url': 'https://nilmamano.com',
            'sources': [
                {
                    'name': 'dsa_blog',
                    'url': 'https://nilmamano.com/blog/category/dsa',
                    'type': 'blog_listing',
                    'requires_render': False,
                    'selectors': {
                        'post_links': 'a[href*="/blog/"]',
                        'title': 'h1, .post-title, .entry-title',
                        'content': ['.post-content', '.entry-content', 'article', '.content', 'main', 'p'],
                        'author': '.author, .post-author',
                        'date': '.date, .post-date, time'
                    },
                    'content_type': 'blog',
                    'default_author': 'Nil Mamano'
                }
            ]
        }
    }
    return copy.deepcopy(sites)
