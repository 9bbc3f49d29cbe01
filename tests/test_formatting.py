from datetime import date

import pytest

from noctule.formatting import (
    DateTimeFormat,
    FormatCache,
    Formatters,
    MessageFormat,
    MessageFormatError,
    NumberFormat,
    parse_locale,
)

POSTS = "{count, plural, =0 {No posts} one {# post} other {# posts}}"


def test_simple_argument():
    assert MessageFormat("Hello {name}!", "en").format(name="Ada") == "Hello Ada!"
    assert MessageFormat("Hello {name}!", "en").format({"name": "Bob"}) == "Hello Bob!"


def test_plural_with_exact_match_and_pound():
    fmt = MessageFormat(POSTS, "en")
    assert fmt.format(count=0) == "No posts"
    assert fmt.format(count=1) == "1 post"
    assert fmt.format(count=1234) == "1,234 posts"


def test_plural_uses_locale_rules():
    fmt = MessageFormat("{n, plural, one {# Beitrag} other {# Beiträge}}", "de")
    assert fmt.format(n=1) == "1 Beitrag"
    assert fmt.format(n=2000) == "2.000 Beiträge"


def test_select():
    fmt = MessageFormat("{who, select, female {She} male {He} other {They}} wrote", "en")
    assert fmt.format(who="female") == "She wrote"
    assert fmt.format(who="robot") == "They wrote"


def test_quoting():
    assert MessageFormat("It''s '{literal}'", "en").format() == "It's {literal}"


def test_number_and_date_arguments():
    assert MessageFormat("{n, number}", "de").format(n=1234.5) == "1.234,5"
    assert MessageFormat("{r, number, percent}", "en").format(r=0.25) == "25%"
    assert MessageFormat("{d, date, long}", "en").format(d=date(2024, 1, 15)) == (
        "January 15, 2024"
    )


def test_malformed_patterns():
    with pytest.raises(MessageFormatError):
        MessageFormat("Hello {name", "en")
    with pytest.raises(MessageFormatError):
        MessageFormat("Hello }", "en")
    with pytest.raises(MessageFormatError):
        MessageFormat("{n, plural, one {#}}", "en")


def test_missing_value():
    with pytest.raises(MessageFormatError):
        MessageFormat("Hello {name}", "en").format()


def test_datetime_format():
    assert DateTimeFormat("yyyy-MM-dd", "en").format(date(2024, 1, 5)) == "2024-01-05"
    assert DateTimeFormat("medium", "en").format(date(2024, 1, 15)) == "Jan 15, 2024"
    assert DateTimeFormat("yyyy-MM-dd", "en").format("2024-01-05") == "2024-01-05"
    with pytest.raises(TypeError):
        DateTimeFormat(None, "en").format(42)


def test_number_format():
    assert NumberFormat(None, "en").format(1234.5) == "1,234.5"
    assert NumberFormat("integer", "en").format(1234.6) == "1,235"
    with pytest.raises(TypeError):
        NumberFormat(None, "en").format("12")


def test_parse_locale():
    assert str(parse_locale("en-US")) == "en_US"
    with pytest.raises(ValueError):
        parse_locale("xx_YY")


def test_format_cache_memoizes_by_format_and_locale():
    calls = []

    def factory(spec, locale):
        calls.append((spec, locale))
        return object()

    cache = FormatCache(factory)
    first = cache("x", "en")
    assert cache("x", "en") is first
    assert cache("x", "fr") is not first
    assert calls == [("x", "en"), ("x", "fr")]
    assert len(cache) == 2
    cache.clear()
    assert len(cache) == 0


def test_formatters_share_compiled_formats():
    formatters = Formatters()
    msg = formatters.get_message_format(POSTS, "en")
    assert formatters.get_message_format(POSTS, "en") is msg
    assert formatters.get_message_format(POSTS, "de") is not msg
    assert formatters.get_datetime_format("long", "en") is formatters.get_datetime_format(
        "long", "en"
    )
    assert formatters.get_number_format(None, "en").format(3) == "3"
