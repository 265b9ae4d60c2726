"""
Browser configuration for the Playwright-based fetch backend.

This module provides a validated Pydantic configuration model for the
browser settings and pre-configured instances for common use cases.
"""
from typing import List, Literal

from pydantic import BaseModel, Field


class BrowserConfig(BaseModel):
    """
    Configuration for the Playwright-based BrowserFetcher.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use for crawling"
    )

    timeout: int = Field(
        default=60000,
        description="Navigation timeout in milliseconds",
        ge=1000,
        le=1000000
    )

    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default="load",
        description="When to consider navigation complete"
    )

    launch_args: List[str] = Field(
        default_factory=list,
        description="Additional browser launch arguments (e.g., '--disable-http2')"
    )

    ignore_https_errors: bool = Field(
        default=True,
        description="Accept self-signed certificates on development sites"
    )

    class Config:
        """Pydantic model configuration."""
        frozen = True


# --- Pre-configured Instances for Common Use Cases ---

DEFAULT_BROWSER_CONFIG = BrowserConfig()
"""
Headless Chromium, waiting for the load event.

Best for unattended crawls.
"""

HEADED_CONFIG = BrowserConfig(
    headless=False,
    wait_until="load",
    timeout=120000,
)
"""
Visible browser with a longer timeout.

Best for watching form submissions while debugging a crawl.
"""
