#!/usr/bin/env python3
"""
AWS Status Feed Manifest Generator

This script builds subscription lists for the RSS feeds of the AWS status page by:
- Loading the known region names from the published IP range document
- Scraping the status page for every service feed link and its service name
- Grouping the feeds by region and by service
- Writing one "/feed subscribe <url>" line per feed, in blocks per group,
  to _region_feed.txt and _service_feed.txt next to this script

The source URLs can be overridden with a config.json next to this script.
Set DEBUG=true (or "Debug": true in config.json) for verbose diagnostics.

Requirements:
  uv sync
"""

import os
import sys
import json
import time
import logging
import requests
from typing import Dict, List, Optional, Set
from urllib.parse import urljoin
from bs4 import BeautifulSoup

# Import configuration
from feed_config import (
    DEFAULT_RSS_URL, DEFAULT_REGIONS_JSON, CONFIG_FILENAME,
    REGION_FEED_FILENAME, SERVICE_FEED_FILENAME, EXTRA_REGIONS,
    FEED_SUFFIX, NAME_CELL_CLASSES, SUBSCRIBE_COMMAND, HEADERS,
    HTTP_TIMEOUT, LOG_LEVEL, DEBUG
)
from feed_classifier import collect_by_region, collect_by_service

# Set up logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class FeedSourceError(Exception):
    """Raised when the status page or the region document cannot be loaded."""


def setup_logging(debug: bool):
    """Switch the root logger between DEBUG and the configured LOG_LEVEL."""
    level = logging.DEBUG if debug else getattr(logging, LOG_LEVEL, logging.INFO)
    logging.getLogger().setLevel(level)


def get_exec_dir() -> str:
    """Directory holding config.json and the generated feed files."""
    home = os.getenv("FEEDS_HOME")
    if home:
        return home
    return os.path.dirname(os.path.abspath(sys.argv[0]))


def load_user_config(base_dir: Optional[str] = None) -> Dict:
    """
    Load the user configuration, falling back to the defaults.

    Keys read from config.json: RssURL, RegionsJSON and Debug. A missing or
    broken file is not an error; the defaults are used instead.
    """
    config = {
        'rss_url': DEFAULT_RSS_URL,
        'regions_json': DEFAULT_REGIONS_JSON,
        'debug': DEBUG,
    }

    path = os.path.join(base_dir or get_exec_dir(), CONFIG_FILENAME)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        logger.warning(f"Could not read config {path}, using defaults: {e}")
        return config
    except ValueError as e:
        logger.warning(f"Invalid config {path}, using defaults: {e}")
        return config

    if not isinstance(data, dict):
        logger.warning(f"Config {path} is not a JSON object, using defaults")
        return config

    if data.get('RssURL'):
        config['rss_url'] = data['RssURL']
    if data.get('RegionsJSON'):
        config['regions_json'] = data['RegionsJSON']
    if 'Debug' in data:
        if isinstance(data['Debug'], bool):
            config['debug'] = data['Debug']
        else:
            logger.warning(f"Ignoring non-boolean Debug value in {path}: {data['Debug']!r}")

    return config


def _is_name_cell(td) -> bool:
    classes = tuple(td.get('class') or [])
    for run in NAME_CELL_CLASSES:
        for i in range(len(classes) - len(run) + 1):
            if classes[i:i + len(run)] == run:
                return True
    return False


def get_rss_urls(rss_url: str) -> Dict[str, str]:
    """
    Scrape the status page for feed links.

    Returns a mapping of absolute feed URL to the service name shown in the
    same table row.
    """
    url_map: Dict[str, str] = {}
    try:
        response = requests.get(rss_url, headers=HEADERS, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FeedSourceError(f"Failed to fetch status page {rss_url}: {e}") from e

    soup = BeautifulSoup(response.content, 'html.parser')

    name = ""
    for td in soup.select('tr > td'):
        if _is_name_cell(td):
            name = td.get_text(" ", strip=True)
            logger.debug(f"name: {name}")
            continue

        link = td.find('a')
        href = link.get('href') if link is not None else None
        if not href:
            continue
        href = href.strip()
        if not href.endswith(FEED_SUFFIX):
            logger.debug(f"Skipping non-feed link: {href}")
            continue

        feed_url = urljoin(rss_url, href)
        url_map[feed_url] = name
        logger.debug(f"feed: {feed_url} -> {name}")

    return url_map


def get_regions(regions_json: str) -> Set[str]:
    """Load the region names of the IP range document, plus EXTRA_REGIONS."""
    try:
        response = requests.get(regions_json, headers=HEADERS, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        raise FeedSourceError(f"Failed to fetch regions {regions_json}: {e}") from e
    except ValueError as e:
        raise FeedSourceError(f"Invalid region document {regions_json}: {e}") from e

    prefixes = data.get('prefixes') if isinstance(data, dict) else None
    if not isinstance(prefixes, list):
        raise FeedSourceError(f"Region document {regions_json} has no prefixes list")

    region_set = {
        entry['region'] for entry in prefixes
        if isinstance(entry, dict) and entry.get('region')
    }
    region_set.update(EXTRA_REGIONS)

    logger.debug(f"regions: {sorted(region_set)}")
    return region_set


def _header_text(key: str, names: Optional[Dict[str, str]]) -> str:
    if names and key in names:
        # ex.) "AWS VPCE PrivateLink (Singapore)" -> "AWS VPCE PrivateLink"
        return names[key].split('(', 1)[0].strip()
    return key.strip()


def format_feed_blocks(output: Dict[str, List[str]], names: Optional[Dict[str, str]] = None) -> List[str]:
    """
    Render one text block per group, ordered by key.

    Each block is a "# <name>" header, one subscribe line per URL in sorted
    order and a closing "# " line.
    """
    blocks = []
    for key in sorted(output):
        lines = [f"# {_header_text(key, names)}"]
        lines.extend(f"{SUBSCRIBE_COMMAND} {url}" for url in sorted(output[key]))
        lines.append("# ")
        blocks.append("\n".join(lines) + "\n")
    return blocks


def write_slack_feed(filename: str, output: Dict[str, List[str]],
                     names: Optional[Dict[str, str]] = None,
                     base_dir: Optional[str] = None) -> str:
    """Write the feed blocks to filename in base_dir and return the path."""
    path = os.path.join(base_dir or get_exec_dir(), filename)
    with open(path, 'w', encoding='utf-8', newline='\n') as f:
        for block in format_feed_blocks(output, names):
            f.write(block)
    return path


def main():
    """
    Main function to generate the feed manifests.

    Process:
    1. Load config.json (optional)
    2. Load the region names
    3. Scrape the status page for feed URLs
    4. Group by region and by service
    5. Write both manifests
    """
    logger.info("------- start status feeds -------")
    start_time = time.perf_counter()
    base_dir = get_exec_dir()

    # 1) Configuration
    step_time = time.perf_counter()
    logger.info("Step 1: Loading configuration...")
    config = load_user_config(base_dir)
    setup_logging(config['debug'])
    logger.debug(f"config: {config}")
    logger.info(f"-> load_user_config(): {time.perf_counter() - step_time:.3f} sec")

    # 2) Regions
    step_time = time.perf_counter()
    logger.info(f"Step 2: Loading regions from {config['regions_json']}...")
    try:
        region_set = get_regions(config['regions_json'])
    except FeedSourceError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.info(f"-> region count: {len(region_set)}")
    logger.info(f"-> get_regions(): {time.perf_counter() - step_time:.3f} sec")

    # 3) Feed URLs
    step_time = time.perf_counter()
    logger.info(f"Step 3: Scraping feed URLs from {config['rss_url']}...")
    try:
        url_map = get_rss_urls(config['rss_url'])
    except FeedSourceError as e:
        logger.error(str(e))
        sys.exit(1)
    logger.info(f"-> url count: {len(url_map)}")
    logger.info(f"-> get_rss_urls(): {time.perf_counter() - step_time:.3f} sec")

    # 4) Grouping
    step_time = time.perf_counter()
    logger.info("Step 4: Grouping feeds by region and service...")
    region_output = collect_by_region(url_map, region_set)
    logger.info(f"-> collect_by_region(): {time.perf_counter() - step_time:.3f} sec")

    step_time = time.perf_counter()
    service_output, service_names = collect_by_service(url_map, region_set)
    logger.info(f"-> collect_by_service(): {time.perf_counter() - step_time:.3f} sec")

    # 5) Output
    logger.info("Step 5: Writing feed manifests...")
    for filename, output, names in (
        (REGION_FEED_FILENAME, region_output, None),
        (SERVICE_FEED_FILENAME, service_output, service_names),
    ):
        step_time = time.perf_counter()
        try:
            path = write_slack_feed(filename, output, names, base_dir)
        except OSError as e:
            logger.error(f"Failed to write {filename}: {e}")
            sys.exit(1)
        logger.info(f"{len(output)} groups written to {path}")
        logger.info(f"-> write {filename}: {time.perf_counter() - step_time:.3f} sec")

    logger.info("==========================")
    logger.info(f"-> total: {time.perf_counter() - start_time:.3f} sec")
    logger.info("------- end status feeds -------")


if __name__ == "__main__":
    main()
