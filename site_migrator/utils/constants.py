"""
Shared constants for the site migrator.

Contains common configuration values used across multiple stages.
"""

# Default user agent string for all HTTP requests
# Used by both the page renderer and the image downloader
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0.0.0 Safari/537.36"
)

# Default page load timeout in milliseconds (for Playwright)
DEFAULT_PAGE_TIMEOUT = 60000

# Attempts per URL before it is recorded as failed
DEFAULT_MAX_RETRIES = 2

# Settle time after navigation in seconds
DEFAULT_WAIT_TIME = 3.0

# Delay between page fetches in seconds
DEFAULT_CRAWL_DELAY = 1.0

# Base delay for exponential backoff in seconds
DEFAULT_BACKOFF = 1.0

# Image download timeout in seconds
DEFAULT_TIMEOUT = 30

# Default concurrent image downloads
DEFAULT_CONCURRENCY = 5

# Attempts per image download
DEFAULT_DOWNLOAD_RETRIES = 2

# Uniform vertical spacing applied to content blocks
DEFAULT_SPACING = "20pt"

# Excerpt length for the export file
EXCERPT_LENGTH = 150

ALLOWED_IMAGE_FORMATS = (
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico", ".bmp", ".avif",
)

# Output layout inside the run directory
RAW_DIR = "raw"
CLEAN_DIR = "clean"
IMAGE_DIR = "images"
EXPORT_DIR = "export"
IMAGE_MAPPING_FILE = "image-mapping.json"
EXPORT_FILE = "wordpress-import.csv"

# Content containers tried in order when picking the document region
DEFAULT_CONTENT_SELECTORS = (
    ".blog-post-detail",
    ".entry-content",
    "article",
    ".main",
    "main",
    "#page-body",
    ".post-content",
    ".main-content",
    "#content",
    ".content",
)

TITLE_SELECTORS = (
    "h1",
    ".title",
    ".post-title",
    ".article-title",
    ".page-title",
    "title",
)

DATE_SELECTORS = (
    'meta[property="article:published_time"]',
    'meta[itemprop="datePublished"]',
    "time[datetime]",
    ".post-date",
    ".entry-date",
    ".published",
    ".publish-date",
    ".article-date",
    ".date-posted",
    ".dateDiv",
    ".date",
    "time",
)

# Keyword phrases for the post/page heuristic
POST_INDICATORS = (
    "posted on",
    "published on",
    "by author",
    "read more",
    "comments",
    "share this",
    "tags:",
    "category:",
    "article",
    "blog post",
)

PAGE_INDICATORS = (
    "about us",
    "contact us",
    "privacy policy",
    "terms",
    "services",
    "products",
    "home page",
    "main page",
)

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
