"""Synchronizer defaults (source page, file types, keywords, identities, weights).

Centralizes static defaults so the pipeline modules have no embedded magic
strings. These are baseline constants used to construct a policy; callers can
inject their own SyncPolicy to override any of them.
"""

from __future__ import annotations

from pathlib import Path

# Source / output
BASE_URL = "https://khoindvn.io.vn/"
OUTPUT_PATH = Path("data") / "statuses.json"
USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

# File types (matched on the URL path, query ignored)
APP_EXTENSIONS = (".ipa",)
PROFILE_EXTENSIONS = (".mobileconfig",)
CERT_EXTENSIONS = (".cer", ".crt", ".pem", ".p12", ".pfx", ".der", ".p7b")
ARCHIVE_EXTENSIONS = (".zip", ".rar", ".7z")

# Keywords (matched on anchor text and URL path, case-insensitive)
PROFILE_KEYWORDS = ("dns", "profile")
CERT_KEYWORDS = ("cert", "certificate")
APP_TEXT_TOKENS = ("ipa",)

# Known application identities, most specific first. Every keyword of an
# identity must be present for it to match.
IDENTITIES = (
    {"key": "ksign-bmw", "name": "KSign BMW", "keywords": ("ksign", "bmw")},
    {"key": "ksign", "name": "KSign", "keywords": ("ksign",)},
    {"key": "esign-vnj", "name": "eSign VNJ", "keywords": ("esign", "vnj")},
    {"key": "esign", "name": "eSign", "keywords": ("esign",)},
)

# Selection scoring
SCORE_DIRECT_FILE = 100
SCORE_IDENTITY_MATCH = 30
SCORE_DOWNLOAD_KEYWORD = 10
SCORE_RAW_HOST = 8
SCORE_OFF_CATEGORY_PENALTY = -40

DOWNLOAD_KEYWORDS = ("download", "install", "release")
RAW_HOSTS = {
    "raw.githubusercontent.com",
    "objects.githubusercontent.com",
}
RAW_PATH_MARKERS = ("/raw/", "/releases/download/")
OFF_CATEGORY_PATH_MARKERS = ("doc", "wiki", "guide", "cert", "dns", "profile")

# Identifier prefixes for entries without an identity
PREFIX_APPLICATION = "app"
PREFIX_CERTIFICATE = "cert"
PREFIX_DNS_PROFILE = "dns"
UNASSIGNED_GROUP_PREFIX = "unassigned"

# Display names for certificate-section entries
CERTIFICATE_NAME = "Certificate"
DNS_PROFILE_NAME = "DNS Profile"

# Description templates; {host} is the source page host
TOOL_DESCRIPTION = "Automatically discovered on {host}"
CERTIFICATE_DESCRIPTION = "Link from {host}"

# Network
FETCH_TIMEOUT = 20.0
VERIFY_TIMEOUT = 10.0
VERIFY_CONCURRENCY = 4
PROBE_DELAY = 0.15
