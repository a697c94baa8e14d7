"""Parser service for extracting listings from category pages."""
from __future__ import annotations

import asyncio
import logging
import re
from typing import List, NamedTuple, Optional, Protocol

import aiohttp
from bs4 import BeautifulSoup, Tag

from config import settings
from models import ListingRecord

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = "Unknown"
NON_DIGITS = re.compile(r"\D")

LISTING_SELECTOR = "div.hz-Listing-listview-content"
TITLE_SELECTOR = "h3.hz-Listing-title"
PRICE_SELECTOR = "p.hz-Listing-price"
LINK_SELECTOR = "a.hz-Listing-coverLink"
DESCRIPTION_SELECTOR = "p.hz-Listing-description"
FEATURED_CLASS = "hz-Listing--featured"


class PageResult(NamedTuple):
    listings: List[ListingRecord]
    category: str


class PageFetcher(Protocol):
    """Anything that can turn a category URL into listings and a label."""

    async def fetch_listings(self, url: str) -> PageResult:
        ...


def parse_price(text: str) -> int:
    """Keep only the digits of a price string; 0 when nothing is left."""
    digits = NON_DIGITS.sub("", text or "")
    return int(digits) if digits else 0


class Parser:
    """Category page parser backed by aiohttp and BeautifulSoup."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        site_root: str | None = None,
    ) -> None:
        self.headers = settings.HEADERS
        self.site_root = (site_root or settings.SITE_ROOT).rstrip("/")
        self.session = session
        self._owns_session = session is None
        self.last_error: Optional[Exception] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=settings.REQUEST_TIMEOUT)
            self.session = aiohttp.ClientSession(headers=self.headers, timeout=timeout)
        return self.session

    async def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None

    async def get_page_content(self, url: str) -> Optional[str]:
        """Fetch HTML content from an URL."""
        self.last_error = None
        session = await self._get_session()

        try:
            async with session.get(url, headers=self.headers) as response:
                response.raise_for_status()
                return await response.text()
        except asyncio.TimeoutError as exc:
            self.last_error = exc
            logger.warning("Timeout fetching page %s", url)
            return None
        except aiohttp.ClientResponseError as exc:
            self.last_error = exc
            logger.error("HTTP error fetching page %s (status %s)", url, exc.status)
            return None
        except aiohttp.ClientError as exc:
            self.last_error = exc
            logger.error("Error fetching page %s: %s", url, exc)
            logger.debug("Request failure details", exc_info=True)
            return None

    def parse_page(self, html: str) -> PageResult:
        """Parse the category heading and every listing block."""
        soup = BeautifulSoup(html, "html.parser")

        heading = soup.find("h1")
        category = heading.get_text().strip() if heading else ""

        listings = [self._parse_block(block) for block in soup.select(LISTING_SELECTOR)]
        logger.info("Parsed %s listings", len(listings))
        return PageResult(listings, category or UNKNOWN_CATEGORY)

    async def fetch_listings(self, url: str) -> PageResult:
        """Fetch and parse a category page, never raising."""
        try:
            html = await self.get_page_content(url)
            if not html:
                return PageResult([], UNKNOWN_CATEGORY)
            return self.parse_page(html)
        except Exception as exc:
            self.last_error = exc
            logger.exception("Error reading page %s", url)
            return PageResult([], UNKNOWN_CATEGORY)

    def _parse_block(self, block: Tag) -> ListingRecord:
        title = _text(block.select_one(TITLE_SELECTOR))
        price = parse_price(_text(block.select_one(PRICE_SELECTOR)))
        description = _text(block.select_one(DESCRIPTION_SELECTOR), strip=False).lower()

        link_tag = block.select_one(LINK_SELECTOR)
        href = (link_tag.get("href") or "").strip() if link_tag else ""

        return ListingRecord(
            title=title,
            price=price,
            link=self._absolute_link(href),
            is_featured=_is_featured(block),
            description=description,
        )

    def _absolute_link(self, href: str) -> str:
        if not href:
            return ""
        if href.startswith(("http://", "https://")):
            return href
        if href.startswith("//"):
            return f"https:{href}"
        if not href.startswith("/"):
            href = f"/{href}"
        return f"{self.site_root}{href}"


def _text(tag: Tag | None, strip: bool = True) -> str:
    if tag is None:
        return ""
    text = tag.get_text()
    return text.strip() if strip else text


def _is_featured(block: Tag) -> bool:
    # the marker sits on the block or on the enclosing listing element
    if FEATURED_CLASS in (block.get("class") or []):
        return True
    return block.find_parent(class_=FEATURED_CLASS) is not None
