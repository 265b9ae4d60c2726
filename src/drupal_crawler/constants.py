# src/drupal_crawler/constants.py
"""Centralized constants for the Drupal crawler.

Selector lists, URL markers and limits shared by the crawl loop, the message
classifier and the form engine. User-configurable settings live in config.py.
"""

# =============================================================================
# Crawl Loop Constants
# =============================================================================

# Referrer recorded for the seed task
ROOT_REFERRER = "ROOT"

# URLs containing any of these are never fetched (they mutate the shared session)
SESSION_DENYLIST = ("/logout", "/masquerade")

# Discovered links containing this marker are never enqueued
LOGOUT_MARKER = "/logout"

# URL substrings that make a page eligible for form submission
FORM_PAGE_MARKERS = ("/edit", "/add")

# Form actions containing this marker are destructive and never submitted
DESTRUCTIVE_ACTION_MARKER = "delete"

# Seconds a worker sleeps when the queue is momentarily empty
POLL_INTERVAL_SECONDS = 0.05

# How often the coordinator re-checks whether the crawl is draining
DRAIN_CHECK_SECONDS = 0.25

# Upper bound on a whole crawl run (seconds)
MAX_RUN_SECONDS = 24 * 60 * 60

# Thread count limits
MIN_THREADS = 1
MAX_THREADS = 64

# Per-request timeout for the static backend (seconds)
DEFAULT_REQUEST_TIMEOUT = 1000

# User agent sent by the static backend
DEFAULT_USER_AGENT = "Mozilla/5.0"

# Output file name pattern, one file per worker
RESULT_FILE_TEMPLATE = "crawl_results_thread-{worker_id}.csv"

# CSV header, in column order
RESULT_COLUMNS = (
    "URL",
    "Status Code",
    "Referrer",
    "Form Submission",
    "IssueTypes",
    "IssueSnippets",
)

# Status code recorded when a page could not be fetched
FETCH_FAILED_STATUS = -1

# Status code reported by the browser backend (it cannot observe the real one)
BROWSER_STATUS_CODE = 200


# =============================================================================
# Message Classification Constants
# =============================================================================

MESSAGE_SELECTORS = (
    "#messages",
    ".messages",
    ".messages--status",
    ".messages--warning",
    ".messages--error",
    ".messages__wrapper",
    ".messages__content",
    ".messages-list__wrapper",
    ".messages-list__item",
    "details.error-with-backtrace",
    "pre.backtrace",
    ".alert",
    ".alert-warning",
    ".alert-danger",
    ".alert-error",
    "[role=alert]",
    "[aria-live=assertive]",
    ".form-item--error-message",
    ".error-message",
    "div.error",
    "span.error",
    ".field-validation-error",
    ".form-error",
    ".validation-error",
)

# Element itself plus this many ancestors are inspected for severity markers
SEVERITY_ANCESTOR_DEPTH = 4

# Compound class markers matched as substrings
ERROR_CLASS_MARKERS = ("messages--error", "alert-danger", "alert-error")
WARNING_CLASS_MARKERS = ("messages--warning", "alert-warning")
STATUS_CLASS_MARKERS = ("messages--status", "alert-info")
ALERT_CLASS_MARKER = "alert"

# Snippet length in output rows (ellipsis included)
MAX_SNIPPET_LENGTH = 200

# Snippet length used when logging form validation messages
MAX_LOG_SNIPPET_LENGTH = 300


# =============================================================================
# Form Engine Constants
# =============================================================================

# Submit controls, tried in order, first match wins
SUBMIT_SELECTORS = (
    "input[type=submit][value='Save']",
    "input#edit-submit",
    "input[data-drupal-selector='edit-submit']",
    "button[type=submit]",
    "input[type=submit]",
    ".button--primary",
    ".form-submit",
)

# Labels marking required fields (scanned for media widgets)
REQUIRED_LABEL_SELECTOR = (
    ".form-required, .fieldset__label.form-required, "
    "span.form-required, label.form-required"
)

MEDIA_KEYWORDS = ("media", "image", "video", "slide", "gallery")
MEDIA_EXEMPT_KEYWORDS = ("url", "embed")

# Select option values that never count as a real choice
PLACEHOLDER_OPTION_VALUES = frozenset({"", "_none", "-"})

# Input types that are never filled or submitted as data
NON_DATA_INPUT_TYPES = frozenset({"submit", "button", "image", "file", "reset"})

# Scripted submission retry policy
MAX_SUBMIT_ATTEMPTS = 3
RETRY_BACKOFF_SECONDS = 0.5
SUBMIT_SETTLE_SECONDS = 2.0
CLICK_TIMEOUT_MS = 2000

# Overlays hidden before clicking the submit control
OVERLAY_SELECTORS = ".ui-widget-overlay, .modal-backdrop, .overlay"

# Generic value when no rule in the fill table matches
GENERIC_FILL_VALUE = "test_value"
