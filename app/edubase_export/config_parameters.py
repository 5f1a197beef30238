"""Default parameters for the exporter.

Values can be overridden from a YAML file, either passed explicitly or named
by the EDUBASE_EXPORT_CONFIG environment variable:

    browser:
      headless: false
    walker:
      delay_seconds: 2.5
"""
import copy
import os
from pathlib import Path

import yaml

CONFIG_ENV_VAR = "EDUBASE_EXPORT_CONFIG"

params = {
    "viewer": {
        "base_url": "https://app.edubase.ch",
        "login_path": "/#promo?popup=login",
        "book_path": "/#doc/{book_id}/{page}",
        "svg_selector": ".lu-page-svg-container svg",
        "page_selector": ".lu-page-svg-container",
        "background_selector": ".lu-page-background-image",
        "footer_next_selector": '[data-action="footer-next-page"]',
        "next_page_selector": "[data-action='next-page']",
        "pagination_selector": "#pagination > div > span",
        "library_item_selector": "#libraryItems > li:not(:first-child)",
        "library_title_selector": ".lu-library-item-title",
        "account_selector": "i.svg-icon-user.users-profile-icon",
    },
    "browser": {
        "headless": True,
        "width": 1920,
        "height": 1080,
        "timeout_seconds": 300,
        "chromium_path": "/usr/bin/chromium",
        "chromedriver_path": "/usr/bin/chromedriver",
    },
    "pdf_export": {
        "url": "",
        "page_count": 416,
        "start_page": 1,
        "out_dir": "pages",
        "print_options": {
            "scale": 0.5,
            "landscape": False,
            "printBackground": True,
            "displayHeaderFooter": False,
            "transferMode": "ReturnAsBase64",
            "paperWidth": 8.3,
            "paperHeight": 11.7,
        },
    },
    "walker": {
        "max_pages": 416,
        "delay_seconds": 1.5,
        "retry_delay_seconds": 1.0,
        "max_content_retries": 30,
        "out_dir": "svg_pages",
        "page_height": 2721,
        "page_width": 1928,
    },
    "import": {
        "screenshot_dir": "screenshots",
        "page_delay_seconds": 0.5,
        "login_retries": 3,
        "manual_login_timeout_seconds": 300,
    },
    "logging": {
        "log_dir": "logs",
        "log_file": "extraction.log",
        "level": "INFO",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Return a copy of ``base`` with ``override`` merged in, section by section."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_params(path=None) -> dict:
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return copy.deepcopy(params)
    with open(Path(path), "r", encoding="utf-8") as f:
        overrides = yaml.safe_load(f) or {}
    if not isinstance(overrides, dict):
        raise ValueError(f"config file {path} must contain a mapping")
    return deep_merge(params, overrides)
