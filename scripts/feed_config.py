"""
Configuration for the AWS status page feed manifests.

This file contains the default sources, output file names and scraping rules.
The two source URLs can be overridden per install by a config.json placed next
to the script, for example:

    {
        "RssURL": "https://status.aws.amazon.com/",
        "RegionsJSON": "https://ip-ranges.amazonaws.com/ip-ranges.json",
        "Debug": false
    }
"""

import os
from typing import List, Tuple

# Default sources
DEFAULT_RSS_URL = "https://status.aws.amazon.com/"
DEFAULT_REGIONS_JSON = "https://ip-ranges.amazonaws.com/ip-ranges.json"

# Optional override document, looked up in the program directory
CONFIG_FILENAME = "config.json"

# Output manifests, written to the program directory
REGION_FEED_FILENAME = "_region_feed.txt"
SERVICE_FEED_FILENAME = "_service_feed.txt"

# Key for feeds that belong to no specific region
GLOBAL_REGION = "GLOBAL"

# Regions the IP range document does not list.
# "us-standard" is the legacy name of the S3 region in us-east-1.
EXTRA_REGIONS: List[str] = [
    "us-standard",
]

# Only links ending with this suffix are treated as feeds
FEED_SUFFIX = ".rss"

# Class runs marking the table cells that hold a service name.
# A cell matches when its class list contains one of them in this order,
# other classes around the run are allowed.
NAME_CELL_CLASSES: List[Tuple[str, ...]] = [
    ("bb", "top", "pad8"),
    ("bb", "pad8", "top"),
]

# Command prefix understood by the chat feed app
SUBSCRIBE_COMMAND = "/feed subscribe"

HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; Status-Feeds/1.0)",
}

HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", "30"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
