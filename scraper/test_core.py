"""
Tests for the multi-listing scrape loop.
"""
import asyncio
import logging

from scraper.core import scrape_urls


class Unreachable(Exception):
    pass


def test_unreachable_listing_is_skipped(fake_page, fake_element, instant_sleep, caplog):
    bad = "https://www.cars.com/vehicledetail/bad/"
    urls = ["https://www.cars.com/vehicledetail/one/", bad, "https://www.cars.com/vehicledetail/two/"]
    page = fake_page(url="about:blank")
    page.add("h1.listing-title", fake_element("2021 Tesla Model 3 Long Range"))
    context = page.context
    opened = []

    async def new_page():
        opened.append(page)
        return page

    async def goto(url, wait_until=None, timeout=None):
        page.visited.append(url)
        if url == bad:
            raise Unreachable("net::ERR_CONNECTION_RESET")
        page.url = url

    context.new_page = new_page
    page.goto = goto
    logger = logging.getLogger("scraper.test")

    with caplog.at_level(logging.ERROR, logger="scraper.test"):
        records = asyncio.run(scrape_urls(context, urls, logger=logger, sleep=instant_sleep))

    assert [r.url for r in records] == [urls[0], urls[2]]
    assert page.visited.count(bad) == 2
    assert len(opened) == 1
    assert bad in caplog.text


def test_crashed_page_is_replaced_before_retry(fake_page, fake_element, instant_sleep):
    url = "https://www.cars.com/vehicledetail/one/"
    crashed = fake_page(url="about:blank")
    fresh = fake_page(url="about:blank", context=crashed.context)
    fresh.add("h1.listing-title", fake_element("2019 Honda Civic EX"))
    pages = iter([crashed, fresh])

    async def new_page():
        return next(pages)

    async def goto(target, wait_until=None, timeout=None):
        crashed.closed = True
        raise Unreachable("Target crashed")

    crashed.context.new_page = new_page
    crashed.goto = goto

    records = asyncio.run(scrape_urls(crashed.context, [url], sleep=instant_sleep))

    assert [r.make for r in records] == ["Honda"]
    assert fresh.visited == [url]
