"""
Grouping of status page feed URLs by region and by service.

Both groupings rely only on plain substring matching between the feed URL and
the known region names, e.g. "ec2-us-east-1.rss" belongs to region "us-east-1"
and to service "ec2-".
"""

import logging
import posixpath
from typing import Dict, Iterable, List, Set, Tuple
from urllib.parse import urlparse

from feed_config import GLOBAL_REGION

logger = logging.getLogger(__name__)


def url_stem(url: str) -> str:
    """Return the last path segment of a URL without its extension."""
    base = posixpath.basename(urlparse(url).path)
    stem, dot, _ = base.rpartition('.')
    return stem if dot else base


def _regions(region_set: Iterable[str]) -> List[str]:
    return sorted(r for r in region_set if r and r != GLOBAL_REGION)


def _match_regions(url_map: Dict[str, str], region_set: Iterable[str]) -> Tuple[Dict[str, List[str]], Set[str]]:
    results: Dict[str, List[str]] = {}
    used: Set[str] = set()

    for region in _regions(region_set):
        for url in sorted(url_map):
            if region not in url:
                continue
            results.setdefault(region, []).append(url)
            used.add(url)

    return results, used


def collect_by_region(url_map: Dict[str, str], region_set: Iterable[str]) -> Dict[str, List[str]]:
    """
    Group feed URLs by the regions whose name they contain.

    A URL containing several region names is listed under each of them.
    URLs matching no region are listed under GLOBAL_REGION. Regions without
    any URL are left out.
    """
    results, used = _match_regions(url_map, region_set)
    logger.debug(f"Region matched URLs: {sorted(used)}")

    unmatched = [url for url in sorted(url_map) if url not in used]
    if unmatched:
        results[GLOBAL_REGION] = unmatched

    logger.debug(f"Region groups: {results}")
    return results


def _match_services(url_map: Dict[str, str], region_set: Iterable[str]) -> Tuple[Dict[str, List[str]], Set[str]]:
    results: Dict[str, List[str]] = {}
    used: Set[str] = set()
    regions = _regions(region_set)

    for url in sorted(url_map):
        stem = url_stem(url)
        if not stem:
            logger.debug(f"Skipping URL without file name: {url}")
            continue

        for region in regions:
            service = stem.replace(region, "")
            if service == stem:
                continue
            bucket = results.setdefault(service, [])
            if url not in bucket:
                bucket.append(url)
            used.add(url)

    return results, used


def collect_by_service(url_map: Dict[str, str], region_set: Iterable[str]) -> Tuple[Dict[str, List[str]], Dict[str, str]]:
    """
    Group feed URLs by service.

    The service key is the URL's file stem with every region name removed, so
    "ec2-us-east-1.rss" and "ec2-eu-west-1.rss" share the key "ec2-". Feeds
    without a region in their stem form a group of their own, keyed by the
    unmodified stem.

    Returns the groups and a mapping from each key to the display name of the
    smallest URL in its group.
    """
    results, used = _match_services(url_map, region_set)
    logger.debug(f"Service matched URLs: {sorted(used)}")

    for url in sorted(url_map):
        if url in used:
            continue
        stem = url_stem(url)
        if not stem:
            continue
        bucket = results.setdefault(stem, [])
        if url not in bucket:
            bucket.append(url)

    names = {service: url_map[min(urls)] for service, urls in results.items()}

    logger.debug(f"Service names: {names}")
    logger.debug(f"Service groups: {results}")
    return results, names
