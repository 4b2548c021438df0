"""Shared helper utilities for detectors and the tier-1 extractor."""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path
from typing import Dict, Optional

from .logging import get_logger

_logger = get_logger("utils")

# Ordered keyword -> purpose rules; the first match wins.
_PURPOSE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("login", "signin", "sign-in", "auth"), "User authentication"),
    (("signup", "sign-up", "register"), "User registration"),
    (("dashboard",), "Dashboard overview"),
    (("schedule", "calendar", "appointment"), "Scheduling and appointments"),
    (("inventory", "stock"), "Inventory management"),
    (("report", "analytics"), "Reporting and analytics"),
    (("setting", "preference"), "Application settings"),
    (("profile", "account"), "User profile management"),
    (("checkout", "cart"), "Checkout and purchasing"),
    (("admin",), "Administration"),
)


def stable_id(value: str) -> str:
    """Return a deterministic 16-character identifier derived from ``value``."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]


def humanize(value: str) -> str:
    """Turn a path segment or identifier into a Title Case label."""
    cleaned = value.replace(":", "").replace("*", "")
    cleaned = re.sub(r"[-_]+", " ", cleaned)
    cleaned = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", cleaned)
    words = [word for word in cleaned.split(" ") if word]
    return " ".join(word[0].upper() + word[1:] for word in words)


def infer_screen_purpose(name: str, path: str) -> str:
    """Infer a short purpose description from a screen's name and path."""
    lower_name = name.lower()
    lower_path = path.lower()
    if "detail" in lower_name or "profile" in lower_name:
        for keyword in ("patient", "user", "customer", "product", "order"):
            if keyword in lower_name:
                return f"{keyword.capitalize()} details management"
    if "list" in lower_name:
        for keyword in ("patient", "user", "customer", "product", "order"):
            if keyword in lower_name:
                return f"{keyword.capitalize()} list view"
    for keywords, purpose in _PURPOSE_RULES:
        if any(keyword in lower_name or keyword in lower_path for keyword in keywords):
            return purpose
    return f"{name} screen"


def read_text(root: Path, relative: str) -> Optional[str]:
    """Read a repository file, returning None when it cannot be read."""
    path = root / relative
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError as exc:
        _logger.debug("Skipping unreadable file %s: %s", relative, exc)
        return None


def load_package_json(root: Path) -> Dict[str, object]:
    """Return the parsed package.json contents or an empty dict."""
    package_json = root / "package.json"
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, UnicodeError, json.JSONDecodeError):
        return {}
    if isinstance(data, dict):
        return data
    return {}


__all__ = [
    "humanize",
    "infer_screen_purpose",
    "load_package_json",
    "read_text",
    "stable_id",
]
