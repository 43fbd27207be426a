"""Shared document keys to avoid magic strings across catalog modules."""

from __future__ import annotations

# Top-level document sections
K_TOOLS = "tools"
K_CERTIFICATES = "certificates"

# Catalog entry keys
K_ID = "id"
K_NAME = "name"
K_URL = "url"
K_STATUS = "status"
K_DESCRIPTION = "description"
