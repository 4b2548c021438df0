"""Tests for shared helpers and logging setup."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

import pytest

from surfacemap.logging import configure_logging, get_logger
from surfacemap.utils import humanize, infer_screen_purpose, load_package_json, read_text, stable_id


def test_stable_id_is_deterministic_and_short() -> None:
    assert stable_id("app/page.tsx") == stable_id("app/page.tsx")
    assert stable_id("app/page.tsx") != stable_id("app/dashboard/page.tsx")
    assert len(stable_id("anything")) == 16
    assert stable_id("app/page.tsx") == hashlib.sha256(b"app/page.tsx").hexdigest()[:16]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("dashboard", "Dashboard"),
        ("user-settings", "User Settings"),
        ("order_history", "Order History"),
        ("OrderDetail", "Order Detail"),
        (":id", "Id"),
        ("slug*", "Slug"),
    ],
)
def test_humanize(value: str, expected: str) -> None:
    assert humanize(value) == expected


@pytest.mark.parametrize(
    ("name", "path", "purpose"),
    [
        ("PatientDetail", "src/pages/PatientDetail.tsx", "Patient details management"),
        ("OrderList", "src/pages/OrderList.tsx", "Order list view"),
        ("Login", "app/login/page.tsx", "User authentication"),
        ("Home", "app/page.tsx", "Home screen"),
    ],
)
def test_infer_screen_purpose(name: str, path: str, purpose: str) -> None:
    assert infer_screen_purpose(name, path) == purpose


def test_read_text_returns_none_for_unreadable_paths(tmp_path: Path) -> None:
    (tmp_path / "folder").mkdir()
    (tmp_path / "file.txt").write_text("hello", encoding="utf-8")

    assert read_text(tmp_path, "file.txt") == "hello"
    assert read_text(tmp_path, "missing.txt") is None
    assert read_text(tmp_path, "folder") is None


def test_load_package_json_tolerates_bad_content(tmp_path: Path) -> None:
    assert load_package_json(tmp_path) == {}
    (tmp_path / "package.json").write_text("[1, 2]", encoding="utf-8")
    assert load_package_json(tmp_path) == {}
    (tmp_path / "package.json").write_text("{broken", encoding="utf-8")
    assert load_package_json(tmp_path) == {}
    (tmp_path / "package.json").write_text('{"name": "demo"}', encoding="utf-8")
    assert load_package_json(tmp_path) == {"name": "demo"}


def test_get_logger_is_namespaced() -> None:
    assert get_logger().name == "surfacemap"
    assert get_logger("detectors.api").name == "surfacemap.detectors.api"


def test_configure_logging_installs_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "surfacemap.log"
    logger = logging.getLogger("surfacemap")
    try:
        configured = configure_logging(verbose=True, log_file=log_file)
        configure_logging(verbose=True, log_file=log_file)

        assert configured is logger
        assert configured.level == logging.DEBUG
        assert len(configured.handlers) == 2
        get_logger("tests").debug("written to file")
        for handler in configured.handlers:
            handler.flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
