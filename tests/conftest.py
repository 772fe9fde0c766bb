"""Pytest configuration and fixtures."""

import pytest
import structlog

from xpath_to_json.extractor import XPathExtractor
from xpath_to_json.loader import parse_configuration, parse_document


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by CLI runs."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def calendar_html():
    """Calendar page with three day cells."""
    return """
<!DOCTYPE html>
<html>
<head><title>Ex-Dividend Calendar</title></head>
<body>
    <table class="calendar">
        <tr>
            <td><span class="day">15</span></td>
            <td><span class="day">16</span></td>
            <td><span class="day">20</span></td>
        </tr>
    </table>
</body>
</html>
"""


@pytest.fixture
def catalog_html():
    """Product listing used by most executor tests."""
    return """
<!DOCTYPE html>
<html lang="en">
<head><title>Shop</title></head>
<body>
    <h1 class="title">  Weekly Deals </h1>
    <div id="products">
        <div class="product" data-sku="A1">
            <a class="name" href="/p/a1">Alpha</a>
            <span class="price">10.00</span>
            <ul><li>red</li><li>blue</li></ul>
        </div>
        <div class="product" data-sku="B2">
            <a class="name">Beta</a>
            <span class="price">20.00</span>
            <ul><li>green</li></ul>
        </div>
    </div>
    <p class="note">Prices <b>include</b> tax</p>
    <a href="/about">About</a>
    <table id="prices">
        <tr><td>Jan</td><td>1</td></tr>
        <tr><td>Feb</td><td>2</td></tr>
    </table>
</body>
</html>
"""


@pytest.fixture
def catalog(catalog_html):
    """Parsed catalog document."""
    return parse_document(catalog_html)


@pytest.fixture
def extractor():
    return XPathExtractor()


@pytest.fixture
def run(extractor, catalog):
    """Run a list of rule dicts against the catalog document."""

    def _run(rules, document=None, **config):
        configuration = parse_configuration({"name": "test", "rules": rules, **config})
        return extractor.extract(configuration, document if document is not None else catalog)

    return _run
