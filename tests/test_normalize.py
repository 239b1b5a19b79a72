from store_context.normalize import (
    basic_clean,
    normalize,
    rewrite_query,
    strip_html,
    tokenize,
)
from store_context.config import MAX_INPUT_CHARS


def test_normalize_collapses_whitespace_and_trims():
    assert normalize("  Mainspring \n\t barrel  ") == "Mainspring barrel"


def test_normalize_never_raises_on_empty_input():
    assert normalize(None) == ""
    assert normalize("") == ""
    assert normalize("   ") == ""


def test_tokenize_drops_stop_words_and_short_tokens():
    tokens = tokenize("Please show me the Mainspring for an Omega 12!")
    assert tokens == {"mainspring", "omega"}


def test_tokenize_splits_on_non_word_characters():
    assert tokenize("belt/turntable-drive, 33rpm") == {"belt", "turntable", "drive", "33rpm"}


def test_tokenize_is_deterministic_and_deduplicated():
    text = "Belt belt BELT turntable"
    assert tokenize(text) == tokenize(text) == {"belt", "turntable"}


def test_tokenize_empty():
    assert tokenize(None) == set()
    assert tokenize("the a of") == set()


def test_strip_html_basic():
    text = strip_html("<p>Hello <b>world</b>!</p>")
    assert "Hello" in text and "world" in text
    assert "<" not in text


def test_basic_clean_trims_whitespace_and_html():
    raw = "   <div>Hello   world</div>\n"
    assert basic_clean(raw) == "Hello world"


def test_basic_clean_folds_smart_quotes():
    assert basic_clean("\u201cQuoted\u201d \u2013 text") == '"Quoted" - text'


def test_basic_clean_caps_length():
    cleaned = basic_clean("x" * (MAX_INPUT_CHARS + 100))
    assert len(cleaned) == MAX_INPUT_CHARS


def test_rewrite_query_uses_domain_vocabulary():
    assert rewrite_query("need a spring for my watch") == "need a mainspring for my watch"
    assert rewrite_query("Spring bars") == "mainspring bars"
    assert rewrite_query("two springs") == "two mainsprings"


def test_rewrite_query_leaves_specialised_words_alone():
    assert rewrite_query("mainspring") == "mainspring"
    assert rewrite_query("turntable belt") == "turntable belt"
