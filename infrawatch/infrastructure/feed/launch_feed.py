"""HTTP adapter for the LaunchFeed port (regions RSS feed)."""

import logging
import re
from xml.etree import ElementTree

import httpx

from infrawatch.domain.inventory.model.region import RegionLaunch
from infrawatch.domain.inventory.port.launch_feed import LaunchFeed

logger = logging.getLogger(__name__)

# Descriptions embed the region code as <code class="code">xx-yyyy-n</code>,
# sometimes still entity-escaped after XML parsing
_REGION_CODE = re.compile(
    r'(?:<|&lt;)code class="code"(?:>|&gt;)([a-z0-9-]+)(?:<|&lt;)/code(?:>|&gt;)'
)


def _text(item: ElementTree.Element, tag: str) -> str | None:
    value = item.findtext(tag)
    return value.strip() if value and value.strip() else None


def parse_launch_feed(xml_text: str) -> dict[str, RegionLaunch]:
    """Extract {region code: RegionLaunch} from the regions RSS document.

    Items without a recognisable region code are skipped. A later item for
    the same region replaces an earlier one.

    Raises:
        ElementTree.ParseError: If xml_text is not well-formed XML.
    """
    tree = ElementTree.fromstring(xml_text)
    launches: dict[str, RegionLaunch] = {}
    for item in tree.iter("item"):
        match = _REGION_CODE.search(item.findtext("description") or "")
        if not match:
            continue
        launches[match.group(1)] = RegionLaunch(
            launch_date=_text(item, "pubDate"),
            blog_url=_text(item, "link"),
        )
    return launches


class HttpLaunchFeed(LaunchFeed):
    """Fetches region launch dates and announcement links over HTTP.

    Enrichment only: every failure is logged and yields an empty mapping.
    """

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self._client = client
        self._url = url

    async def fetch_launch_data(self) -> dict[str, RegionLaunch]:
        logger.info(f"Fetching region launch data from {self._url}")
        try:
            response = await self._client.get(self._url)
            response.raise_for_status()
            launches = parse_launch_feed(response.text)
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch region launch feed: {e}")
            return {}
        except ElementTree.ParseError as e:
            logger.warning(f"Failed to parse region launch feed: {e}")
            return {}

        logger.info(f"Found launch data for {len(launches)} regions")
        return launches
