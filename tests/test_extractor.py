"""Tests for doc_compiler.services.extractor."""

import time

import pytest

from doc_compiler.services.extractor import (
    DEFAULT_TITLE,
    collapse_whitespace,
    convert_to_markdown,
    estimate_size,
    extract_code_blocks,
    extract_description,
    extract_headings,
    extract_markdown,
    extract_page,
    extract_plain_text,
    extract_title,
    format_size,
    parse_size,
    strip_regions,
)

_LONG_PARAGRAPH = "Widgets let you compose reusable interface elements across every page."


# ---------------------------------------------------------------------------
# Title / description
# ---------------------------------------------------------------------------

class TestExtractTitle:
    def test_prefers_title_element(self):
        html = "<html><head><title> My Docs </title></head><body><h1>Other</h1></body></html>"
        assert extract_title(html) == "My Docs"

    def test_falls_back_to_first_h1(self):
        html = "<body><h1 class='hero'>Header <span>One</span></h1><h1>Second</h1></body>"
        assert extract_title(html) == "Header One"

    def test_empty_title_element_falls_back_to_h1(self):
        assert extract_title("<title></title><h1>Fallback</h1>") == "Fallback"

    def test_default_fallback(self):
        assert extract_title("<p>No heading</p>") == DEFAULT_TITLE == "Documentation Page"

    def test_custom_fallback(self):
        assert extract_title("", fallback="Documentation") == "Documentation"

    def test_decodes_entities(self):
        assert extract_title("<title>Tips &amp; Tricks</title>") == "Tips & Tricks"


class TestExtractDescription:
    def test_meta_description(self):
        html = '<meta name="description" content="Short description">'
        assert extract_description(html) == "Short description"

    def test_meta_description_attribute_order(self):
        html = "<meta content='Content first' name='Description'>"
        assert extract_description(html) == "Content first"

    def test_other_meta_tags_ignored(self):
        html = f'<meta name="keywords" content="a, b"><p>{_LONG_PARAGRAPH}</p>'
        assert extract_description(html) == _LONG_PARAGRAPH

    def test_first_paragraph_in_length_range(self):
        html = f"<p>Too short to describe anything.</p><p>{_LONG_PARAGRAPH}</p>"
        assert extract_description(html) == _LONG_PARAGRAPH

    def test_paragraph_too_long_is_ignored(self):
        html = "<p>" + "word " * 60 + "</p>"
        assert extract_description(html) == ""

    def test_empty_when_nothing_qualifies(self):
        assert extract_description("<div>Nothing here</div>") == ""


# ---------------------------------------------------------------------------
# Body pipeline
# ---------------------------------------------------------------------------

class TestStripRegions:
    def test_removes_comments_and_chrome(self):
        html = (
            "<header>Site header</header><nav>Menu</nav><!-- hidden <p>old</p> -->"
            "<p>Body</p><script>var x = 1;</script><style>p {}</style><footer>Foot</footer>"
        )
        assert strip_regions(html) == "<p>Body</p>"

    def test_keeps_head_element(self):
        assert "<head>" in strip_regions("<head><title>T</title></head>")

    def test_does_not_match_longer_tag_names(self):
        html = "<navbar>Kept</navbar>"
        assert strip_regions(html) == html


class TestConvertToMarkdown:
    def test_heading_levels(self):
        assert convert_to_markdown("<h3>Setup</h3>").strip() == "### Setup"

    def test_inline_formatting(self):
        result = convert_to_markdown("<strong>bold</strong> <em>it</em> <code>x()</code>")
        assert result == "**bold** *it* `x()`"

    def test_empty_bold_is_dropped(self):
        assert convert_to_markdown("a<b> </b>b") == "a b"


class TestCollapseWhitespace:
    def test_limits_blank_lines(self):
        assert collapse_whitespace("A\n\n\n\n\nB") == "A\n\nB"

    def test_trims_around_line_breaks(self):
        assert collapse_whitespace("  A  \n   B  ") == "A\nB"


class TestExtractMarkdown:
    def test_full_conversion(self):
        html = (
            "<h2>Install</h2>"
            "<p>Run <code>pip install x</code> now.</p>"
            "<ul><li>One</li><li><strong>Two</strong></li></ul>"
        )
        assert extract_markdown(html) == (
            "## Install\n\nRun `pip install x` now.\n\n- One\n- **Two**"
        )

    def test_source_whitespace_is_not_significant(self):
        assert extract_markdown("<p>Hello\n      world</p>") == "Hello world"

    def test_explicit_line_breaks_survive(self):
        assert extract_markdown("<p>line one<br>line two</p>") == "line one\nline two"

    def test_removes_regions_and_comments(self):
        html = (
            "<nav>Menu</nav><!-- secret --><p>Body text</p>"
            "<script>var x=1;</script><footer>Foot</footer>"
        )
        assert extract_markdown(html) == "Body text"

    def test_collapses_empty_paragraphs(self):
        assert extract_markdown("<p>A</p><p></p><p></p><p>B</p>") == "A\n\nB"

    def test_inline_links_do_not_leave_gaps(self):
        assert extract_markdown("<p>See <a href='/x'>the docs</a>.</p>") == "See the docs."

    def test_decodes_entities(self):
        assert extract_markdown("<p>a &amp; b &lt;tag&gt;</p>") == "a & b <tag>"

    def test_unclosed_list_items(self):
        assert extract_markdown("<ul><li>First<li>Second</ul>") == "- First\n- Second"

    def test_unclosed_paragraphs(self):
        assert extract_markdown("<p>One<p>Two") == "One\n\nTwo"

    def test_unclosed_paragraph_ends_at_block_boundary(self):
        assert extract_markdown("<div><p>Inside</div><p>Next</p>") == "Inside\n\nNext"

    def test_unclosed_bold_left_as_text(self):
        assert extract_markdown("<p><b>one <b>two</b></p>") == "one **two**"


class TestExtractPlainText:
    def test_strips_everything(self):
        html = "<script>x()</script><h1>Title</h1>\n<p>Hello <b>bold</b></p>\n<p>World</p>"
        assert extract_plain_text(html) == "Title Hello bold World"

    def test_no_markdown_conversion(self):
        assert "#" not in extract_plain_text("<h2>Section</h2>")


# ---------------------------------------------------------------------------
# Headings / code blocks
# ---------------------------------------------------------------------------

class TestExtractHeadings:
    def test_document_order_and_levels(self):
        html = "<h1>A</h1><p>x</p><h3 class='x'>B</h3><h2>C <code>d</code></h2><h7>no</h7>"
        headings = extract_headings(html)
        assert [(h.level, h.text) for h in headings] == [(1, "A"), (3, "B"), (2, "C d")]

    def test_levels_within_range(self):
        html = "".join(f"<h{n}>Level {n}</h{n}>" for n in range(1, 7))
        headings = extract_headings(html)
        assert [h.level for h in headings] == [1, 2, 3, 4, 5, 6]
        assert all(1 <= h.level <= 6 for h in headings)

    def test_skips_empty_and_commented_headings(self):
        assert extract_headings("<h2> </h2><!-- <h2>Old</h2> --><h2>New</h2>")[0].text == "New"

    def test_mismatched_close_tag_not_a_heading(self):
        assert extract_headings("<h2>Broken</h3>") == []


class TestExtractCodeBlocks:
    def test_pre_with_nested_code_counts_once(self):
        html = "<pre><code class='py'>print(&quot;hi&quot;)\n</code></pre>"
        assert extract_code_blocks(html) == ['print("hi")']

    def test_discards_short_blocks(self):
        html = "<code>x</code><code>0123456789</code><code>len(items) &gt; 0</code>"
        assert extract_code_blocks(html) == ["0123456789", "len(items) > 0"]

    def test_strips_highlighting_markup(self):
        html = '<pre><span class="k">def</span> <span class="f">main</span>():</pre>'
        assert extract_code_blocks(html) == ["def main():"]


# ---------------------------------------------------------------------------
# Sizes
# ---------------------------------------------------------------------------

class TestFormatSize:
    @pytest.mark.parametrize(
        "chars, expected",
        [
            (0, "0 chars"),
            (950, "950 chars"),
            (999, "999 chars"),
            (1000, "1k chars"),
            (4500, "4.5k chars"),
            (4549, "4.5k chars"),
            (4550, "4.6k chars"),
            (9999, "10k chars"),
            (10000, "10k chars"),
            (125000, "125k chars"),
            (125499, "125k chars"),
            (125500, "126k chars"),
        ],
    )
    def test_bands(self, chars, expected):
        assert format_size(chars) == expected

    def test_monotonic(self):
        values = [parse_size(format_size(n)) for n in range(0, 30000, 7)]
        assert values == sorted(values)


class TestParseSize:
    @pytest.mark.parametrize(
        "text, expected",
        [("950 chars", 950), ("4.5k chars", 4500), ("4.1k chars", 4100), ("125k chars", 125000)],
    )
    def test_parses_display_magnitude(self, text, expected):
        assert parse_size(text) == expected

    def test_round_trips_own_output(self):
        for chars in (0, 950, 4500, 125000):
            assert parse_size(format_size(chars)) == chars

    def test_rejects_other_strings(self):
        with pytest.raises(ValueError):
            parse_size("big")


class TestEstimateSize:
    def test_plain_mode_counts_text(self):
        assert estimate_size("<p>" + "a" * 2000 + "</p>") == "2k chars"

    def test_structured_mode_is_scaled(self):
        assert estimate_size("<p>" + "a" * 2000 + "</p>", structured=True) == "1.4k chars"


class TestExtractPage:
    _HTML = (
        "<html><head><title>Widgets</title></head><body>"
        "<nav>Menu</nav><h1>Widgets</h1>"
        f"<p>{_LONG_PARAGRAPH}</p>"
        "<pre>widget = Widget()</pre>"
        "</body></html>"
    )

    def test_structured(self):
        page = extract_page(self._HTML, structured=True)
        assert page.title == "Widgets"
        assert page.description == _LONG_PARAGRAPH
        assert page.body.startswith("# Widgets")
        assert "Menu" not in page.body
        assert page.code_blocks == ["widget = Widget()"]
        assert [h.text for h in page.headings] == ["Widgets"]

    def test_plain(self):
        page = extract_page(self._HTML)
        assert "#" not in page.body
        assert page.body.startswith("Widgets")


class TestUnclosedTagScaling:
    @pytest.mark.parametrize(
        "fragment",
        ["<p>text ", "<li>item ", "<b>bold ", "<h2>title ", "<nav>menu ", "<pre>code ", "<!-- note "],
    )
    def test_linear_on_unclosed_tags(self, fragment):
        html = "<html><body>" + fragment * 3000 + "</body></html>"
        started = time.monotonic()
        extract_page(html, structured=True)
        assert time.monotonic() - started < 1.0

    def test_unclosed_paragraph_body(self):
        page = extract_page("<body>" + "<p>text " * 3000 + "</body>", structured=True)
        assert page.body.count("text") == 3000
