"""
Headless-browser fetch for sources that only produce listing markup after running scripts.

Both renderers follow the Fetcher contract: `await renderer.fetch(url) -> html`, raising RenderError.
Bot-check interstitials are detected by page title and bypassed best-effort with one submit click;
when that does not work the interstitial HTML is returned and the source yields no listings.
"""

import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from scrapfly import ScrapeConfig, ScrapflyClient, ScrapflyError

import config
from scrapers.base import RenderError, random_user_agent
from scrapers.content import page_title

logger = logging.getLogger(__name__)

BOT_CHECK_TITLES = ("Überprüfung", "Bot Check")
SUBMIT_SELECTOR = 'button[type="submit"], input[type="submit"]'


def is_bot_check(title: str | None) -> bool:
    return bool(title) and any(marker in title for marker in BOT_CHECK_TITLES)


class PlaywrightRenderer:
    """Render with a local headless Chromium."""

    def __init__(self, timeout: float = 30.0, bypass_timeout: float = 5.0):
        self.timeout = timeout
        self.bypass_timeout = bypass_timeout

    async def _try_bypass(self, page) -> None:
        try:
            button = await page.query_selector(SUBMIT_SELECTOR)
            if button is None:
                logger.info("Bot check page has no submit button")
                return
            async with page.expect_navigation(wait_until="domcontentloaded", timeout=self.bypass_timeout * 1000):
                await button.click()
        except PlaywrightError as e:
            logger.info("Bot check bypass attempt failed: %s", e)

    async def fetch(self, url: str, **_kwargs) -> str:
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True, args=["--no-sandbox", "--disable-setuid-sandbox"])
                try:
                    page = await browser.new_page(
                        viewport={"width": 1280, "height": 800},
                        user_agent=random_user_agent(),
                    )
                    await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout * 1000)
                    if is_bot_check(await page.title()):
                        logger.info("Bot check detected at %s, attempting to bypass", url)
                        await self._try_bypass(page)
                    return await page.content()
                finally:
                    await browser.close()
        except PlaywrightError as e:
            raise RenderError(f"Headless render failed for {url}: {e}", url) from e


class ScrapflyRenderer:
    """Render with Scrapfly (ASP, JS, DE proxy)."""

    def __init__(self, api_key: str, client: ScrapflyClient | None = None):
        self.client = client or ScrapflyClient(key=api_key)

    async def _scrape(self, url: str, **config_overrides) -> str:
        scrape_config = ScrapeConfig(
            url=url,
            asp=True,
            render_js=True,
            country="de",
            **config_overrides,
        )
        try:
            response = await self.client.async_scrape(scrape_config)
        except ScrapflyError as e:
            raise RenderError(f"Scrapfly render failed for {url}: {e}", url) from e
        content = (response.scrape_result or {}).get("content")
        if not content:
            raise RenderError(f"Scrapfly returned no content for {url}", url)
        return content

    async def fetch(self, url: str, **_kwargs) -> str:
        html = await self._scrape(url)
        if not is_bot_check(page_title(html)):
            return html
        logger.info("Bot check detected at %s, re-rendering with a submit click", url)
        scenario = [
            {"click": {"selector": SUBMIT_SELECTOR, "ignore_if_not_visible": True}},
            {"wait_for_navigation": {"timeout": 5000}},
        ]
        try:
            return await self._scrape(url, js_scenario=scenario)
        except RenderError as e:
            logger.info("Bot check bypass attempt failed: %s", e)
            return html


def make_renderer():
    """Scrapfly when SCRAPFLY_API_KEY is set, otherwise local Playwright."""
    api_key = config.get_scrapfly_api_key()
    if api_key:
        return ScrapflyRenderer(api_key)
    return PlaywrightRenderer(timeout=config.get_render_timeout())
