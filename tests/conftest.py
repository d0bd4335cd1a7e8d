"""Shared fakes and fixtures: no browser, network or external binaries."""

import os
from typing import Dict, List, Optional, Tuple

import pytest

from site_migrator.assets.downloader import ImageDownloader
from site_migrator.assets.tools import ImageConverter, MetadataEmbedder
from site_migrator.errors import AssetError, AssetErrorKind, FetchError, FetchErrorKind
from site_migrator.fetcher.renderer import RenderedPage
from site_migrator.models import RawDocument


ARTICLE_URL = "https://www.example.com/blog/2025/march/03/best-trucks.html"
ARTICLE_ID = "www.example.com_blog_2025_march_03_best-trucks.html"

IMAGE_BYTES = b"\xff\xd8\xff\xe0" + b"0" * 256


class FakeRenderer:
    """Serves canned markup; ``failures`` lists error kinds raised before success."""

    def __init__(self, pages: Dict[str, str], failures: Optional[Dict[str, List[FetchErrorKind]]] = None):
        self.pages = pages
        self.failures = {url: list(kinds) for url, kinds in (failures or {}).items()}
        self.calls: List[str] = []
        self.started = False
        self.stopped = False
        self.resets = 0

    async def start(self):
        self.started = True

    async def stop(self):
        self.stopped = True

    async def reset_context(self):
        self.resets += 1

    async def render(self, url: str) -> RenderedPage:
        self.calls.append(url)
        pending = self.failures.get(url)
        if pending:
            kind = pending.pop(0)
            raise FetchError(kind, f"{kind.value} for {url}", {'url': url})
        if url not in self.pages:
            raise FetchError(FetchErrorKind.NAVIGATION_FAILED, f"HTTP 404 for {url}", {'url': url})
        return RenderedPage(html=self.pages[url], final_url=url, status=200)


class FakeSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeDownloader(ImageDownloader):
    """Returns ``(bytes, content type)`` from a dict; unknown URLs fail."""

    def __init__(self, responses: Dict[str, Tuple[bytes, str]]):
        super().__init__()
        self.responses = responses
        self.requested: List[str] = []

    def create_session(self):
        return FakeSession()

    async def download(self, session, url):
        self.requested.append(url)
        if url not in self.responses:
            raise AssetError(AssetErrorKind.DOWNLOAD_FAILED, f"HTTP 404 for {url}", {'url': url})
        return self.responses[url]


class FakeConverter(ImageConverter):
    """Pretends to convert by rewriting the bytes under a ``.jpg`` name."""

    name = "fake converter"

    def __init__(self):
        super().__init__()
        self.converted: List[str] = []

    async def _probe(self) -> bool:
        return True

    async def convert(self, path: str) -> str:
        target = os.path.splitext(path)[0] + '.jpg'
        with open(path, 'rb') as src, open(target, 'wb') as dst:
            dst.write(src.read())
        os.remove(path)
        self.converted.append(path)
        return target


class FailingConverter(FakeConverter):
    async def convert(self, path: str) -> str:
        raise AssetError(AssetErrorKind.CONVERSION_FAILED, f"Conversion of {path} failed", {'path': path})


class FakeEmbedder(MetadataEmbedder):
    name = "fake embedder"

    def __init__(self):
        super().__init__()
        self.embedded: List[Tuple[str, str]] = []

    async def _probe(self) -> bool:
        return True

    async def embed(self, path: str, text: str) -> bool:
        self.embedded.append((os.path.basename(path), text))
        return True


class RecordingSink:
    """Log sink that keeps every ``(level, stage, message)`` call."""

    def __init__(self):
        self.events: List[Tuple[str, str, str]] = []

    def __call__(self, level: str, stage: str, message: str) -> None:
        self.events.append((level, stage, message))

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [m for lvl, _, m in self.events if level is None or lvl == level]


ARTICLE_HTML = """
<html>
<head><title>Best Trucks of 2025 | Example Motors</title>
<meta property="article:published_time" content="2025-03-03T09:30:00+00:00">
</head>
<body>
<header class="site-header"><img src="/logo.png" alt="Example Motors"></header>
<nav><a href="/">Home</a></nav>
<article class="blog-post">
  <h1>Best Trucks of 2025</h1>
  <div class="post-date">March 3, 2025</div>
  <p class="lead" style="margin-top: 0; color: #333">Posted on March 3 by the team. Here are the trucks we liked.</p>
  <p>&#8226; Ford F-150</p>
  <p>&#8226; Ram 1500</p>
  <p>&#8226; Toyota Tundra</p>
  <img src="/img/hero.png" alt="Red truck" class="wp-image-12">
  <img src="https://cdn.example.com/avatars/jane.jpg" alt="Jane">
  <p>Read the <a href="https://www.example.com/inventory/trucks.html">inventory</a>
     or the <a href="https://reviews.example.org/trucks">reviews</a>.</p>
  <script>track();</script>
</article>
<footer><p>Copyright</p></footer>
</body>
</html>
"""

PAGE_HTML = """
<html>
<head><title>About Us</title></head>
<body>
<main class="page-content">
  <h1>About Us</h1>
  <p>We are a family dealership. Contact us for services and products.</p>
</main>
</body>
</html>
"""


@pytest.fixture
def article_doc() -> RawDocument:
    return RawDocument(
        source_id=ARTICLE_ID,
        html=ARTICLE_HTML,
        fetched_at="2025-03-04T00:00:00+00:00",
        url=ARTICLE_URL,
    )


@pytest.fixture
def page_doc() -> RawDocument:
    return RawDocument(
        source_id="www.example.com_about-us.html",
        html=PAGE_HTML,
        fetched_at="2025-03-04T00:00:00+00:00",
        url="https://www.example.com/about-us",
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
