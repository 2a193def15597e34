"""
Shared fixtures for harvester tests
"""

import pytest

from harvester.core.base import SelectorChain, SiteSpec, SourceSpec
from harvester.core.logging import setup_logging


@pytest.fixture(scope="session", autouse=True)
def configure_logging(tmp_path_factory):
    """Set up logging once for the test session"""
    log_file = tmp_path_factory.mktemp("logs") / "test_harvester.log"
    setup_logging(level="DEBUG", log_file=str(log_file))


@pytest.fixture
def blog_source():
    """A static blog source with site-specific selectors"""
    return SourceSpec(
        name="blog",
        url="https://example.com/blog",
        base_url="https://example.com",
        content_type="blog",
        default_author="Example Team",
        link_selectors=SelectorChain.from_config('a[href^="/blog/"]'),
        field_selectors={
            'title': SelectorChain.from_config("h1.post-title"),
            'content': SelectorChain.from_config([".post-content", "p"]),
            'author': SelectorChain.from_config(".byline"),
        },
    )


@pytest.fixture
def example_site(blog_source):
    return SiteSpec(name="example.com", base_url="https://example.com", sources=(blog_source,))
