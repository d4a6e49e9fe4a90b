"""Namespace name handling."""

from __future__ import annotations

import re


INVALID_NAME_CHARS = re.compile(r"[^a-z0-9.\-]+")

NAMESPACE_MANIFEST_TEMPLATE = """\
---
apiVersion: v1
kind: Namespace
metadata:
  name: {name}
"""


def sanitize(name: str) -> str:
    """Lower-case a name and collapse each run of invalid characters into `-`."""
    return INVALID_NAME_CHARS.sub("-", name.lower())


def namespace_manifest(name: str) -> str:
    return NAMESPACE_MANIFEST_TEMPLATE.format(name=name)
