"""Tests for translator module."""

import pytest

from xpath_to_json.errors import UnsupportedPath
from xpath_to_json.translator import translate


class TestTranslate:
    """Test supported path expressions."""

    @pytest.mark.parametrize(
        "xpath,selector,document_selector",
        [
            ("//span[@class='day']", ':scope span[class="day"]', 'span[class="day"]'),
            ("//a", ":scope a", "a"),
            ("//div[@id='products']/div", ':scope div[id="products"] > div', 'div[id="products"] > div'),
            ("/html/body/h1", "html:root > body > h1", "html:root > body > h1"),
            ("./td", ":scope > td", "td:root"),
            ("td", ":scope > td", "td:root"),
            ("html/body", ":scope > html > body", "html:root > body"),
            (".//li", ":scope li", "li"),
            (".//div//span", ":scope div span", "div span"),
            (
                "//table//tr[2]/td[1]",
                ":scope table tr:nth-of-type(2) > td:nth-of-type(1)",
                "table tr:nth-of-type(2) > td:nth-of-type(1)",
            ),
            ("//ul/*[2]", ":scope ul > *:nth-child(2)", "ul > *:nth-child(2)"),
            ("//div[contains(@class, 'prod')]", ':scope div[class*="prod"]', 'div[class*="prod"]'),
            ("//input[@type='text' and @name]", ':scope input[type="text"][name]', 'input[type="text"][name]'),
            ('//a[@title="x"]', ':scope a[title="x"]', 'a[title="x"]'),
            ("//a[@href='/p/a1']", ':scope a[href="/p/a1"]', 'a[href="/p/a1"]'),
            ("//a[@title='salt and pepper']", ':scope a[title="salt and pepper"]', 'a[title="salt and pepper"]'),
            ("//div[@data-sku]", ":scope div[data-sku]", "div[data-sku]"),
        ],
    )
    def test_selector(self, xpath, selector, document_selector):
        """Test translation to CSS for element and document contexts."""
        compiled = translate(xpath)

        assert compiled.selector == selector
        assert compiled.document_selector == document_selector
        assert compiled.selector_for(at_document=False) == selector
        assert compiled.selector_for(at_document=True) == document_selector

    def test_attribute_step(self):
        """Test trailing /@attr becomes an attribute hint."""
        compiled = translate("//a/@href")

        assert compiled.document_selector == "a"
        assert compiled.attribute == "href"
        assert compiled.text_step is False

    def test_text_step(self):
        """Test trailing /text() selects the parent step."""
        compiled = translate("//td/text()")

        assert compiled.document_selector == "td"
        assert compiled.text_step is True

    def test_context_node(self):
        """Test "." addresses the context itself."""
        assert translate(".").selects_context
        assert translate("@href").selects_context
        assert translate("@href").attribute == "href"
        assert translate("text()").text_step

    def test_deterministic(self):
        """Test same input gives the same output."""
        assert translate("//div/span") == translate("//div/span")


class TestUnsupported:
    """Test constructs outside the supported subset."""

    @pytest.mark.parametrize(
        "xpath,construct",
        [
            ("//tr/preceding-sibling::tr[1]", "preceding-sibling::"),
            ("//td[contains(., 'x')]", "contains()"),
            ("//li[last()]", "last()"),
            ("count(//a)", "count()"),
            ("//a | //b", "|"),
            ("//a/..", ".."),
            ("//a[@x='1' or @y='2']", "or"),
            ("//a[@x!='1']", "!="),
            ("//a//", "trailing //"),
            ("", "empty expression"),
            ("   ", "empty expression"),
        ],
    )
    def test_rejected(self, xpath, construct):
        """Test failure names the construct."""
        with pytest.raises(UnsupportedPath) as exc_info:
            translate(xpath)

        assert exc_info.value.construct == construct
        assert construct in str(exc_info.value)

    def test_rejected_consistently(self):
        """Test the same failure is raised every time."""
        for _ in range(2):
            with pytest.raises(UnsupportedPath):
                translate("//a/following::b")

    def test_nested_path_predicate(self):
        """Test predicates containing paths are rejected."""
        with pytest.raises(UnsupportedPath):
            translate("//tr[td/@class='x']")
