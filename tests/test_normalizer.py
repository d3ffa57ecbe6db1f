from story_lighting.reader import ContentNormalizer, ExtractionConfig, LiveDocument
from story_lighting.reader.dom import RemovalMarks


def _normalize(inner_html, config=None, marks=None):
    document = LiveDocument.from_html(f'<html><body><div id="c">{inner_html}</div></body></html>')
    container = document.find_by_id("c")
    return ContentNormalizer(config).normalize(container, marks), container


def test_double_breaks_split_paragraphs():
    paragraphs, _ = _normalize("<p>first line<br><br>second line</p><p>third</p>")
    assert paragraphs == ["first line", "second line", "third"]


def test_single_break_stays_inside_paragraph():
    paragraphs, _ = _normalize("<p>first line<br>same paragraph</p>")
    assert paragraphs == ["first line\nsame paragraph"]


def test_double_breaks_in_block_wrap_loose_text():
    paragraphs, _ = _normalize("intro text<br><br>more text<p>para</p>")
    assert paragraphs == ["intro text", "more text", "para"]


def test_noise_elements_are_removed():
    paragraphs, _ = _normalize(
        "<p>keep</p>"
        '<p class="meta-info">drop</p>'
        "<p>&nbsp;</p>"
        "<figure><p>caption</p></figure>"
        "<aside><p>related</p></aside>"
        '<p aria-hidden="true">hidden</p>'
        '<p><annotation encoding="application/x-tex">x^2</annotation>tex</p>'
        '<p class="ad-slot-top">buy</p>'
    )
    assert paragraphs == ["keep", "tex"]


def test_math_fallback_is_exempt_from_noise_rules():
    paragraphs, _ = _normalize(
        '<p>before</p><p class="mwe-math-fallback-image-inline" aria-hidden="true">x2</p>'
    )
    assert paragraphs == ["before", "x2"]


def test_pre_without_code_becomes_paragraph_with_breaks():
    paragraphs, _ = _normalize("<pre>line one\nline two</pre><pre><code>x = 1</code></pre><p>after</p>")
    assert paragraphs == ["line one\nline two", "after"]


def test_pre_is_kept_when_configured():
    config = ExtractionConfig(keep_preformatted=True)
    paragraphs, _ = _normalize("<pre>line one</pre><p>after</p>", config=config)
    assert paragraphs == ["after"]


def test_font_becomes_paragraph():
    paragraphs, _ = _normalize("<font>styled <b>words</b></font><p>x</p>")
    assert paragraphs == ["styled words", "x"]


def test_paragraph_emptied_by_removal_is_still_emitted():
    paragraphs, _ = _normalize("<p>a</p><p><span></span></p><p>b</p>")
    assert paragraphs == ["a", "", "b"]


def test_hidden_and_marked_elements_are_dropped():
    document = LiveDocument.from_html(
        '<body><div id="c"><p>kept</p><p style="display: none">secret</p><p id="m">marked</p></div></body>'
    )
    marks = RemovalMarks()
    marks.mark(document.find_by_id("m"))
    paragraphs = ContentNormalizer().normalize(document.find_by_id("c"), marks)
    assert paragraphs == ["kept"]


def test_presentational_attributes_do_not_change_text():
    paragraphs, _ = _normalize('<p style="color: red" width="10">red text</p>')
    assert paragraphs == ["red text"]


def test_live_container_is_not_mutated():
    html = (
        '<p style="color: red">one<br><br>two</p><figure>fig</figure>'
        '<p class="meta">m</p><font>f</font><pre>a\nb</pre>'
    )
    document = LiveDocument.from_html(f'<body><div id="c">{html}</div></body>')
    container = document.find_by_id("c")
    before = str(container)

    ContentNormalizer().normalize(container)

    assert str(container) == before


def test_normalization_is_stable_across_runs():
    html = "<p>one<br><br>two</p><p class='meta'>x</p><p>three</p>"
    first, _ = _normalize(html)
    second, _ = _normalize(html)
    assert first == second == ["one", "two", "three"]
