"""Locale-aware formatting for templates.

Message, date/time and number formatters are compiled once per
``(format, locale)`` pair and memoized in a FormatCache. A build owns one
Formatters bundle and hands it to the template renderer, so compiled
formatters are shared by every page of the run and nothing lives in module
globals.

Key classes:
- FormatCache: memoizing factory keyed by (format, locale).
- MessageFormat: compiled ICU-style message pattern.
- DateTimeFormat: CLDR date/time formatter.
- NumberFormat: CLDR number formatter.
- Formatters: the three caches bundled together.

Message syntax (a subset of ICU MessageFormat)::

    Hello {name}!
    {count, plural, =0 {No posts} one {# post} other {# posts}}
    {gender, select, female {She} male {He} other {They}} wrote this
    Published {when, date, long}; {ratio, number, percent} read
    It''s quoted: '{literal}'
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from numbers import Number
from typing import Any, Generic, TypeVar

from babel import Locale, UnknownLocaleError
from babel.dates import format_date, format_datetime, format_time
from babel.numbers import format_decimal, format_percent

T = TypeVar("T")

DATE_STYLES = ("short", "medium", "long", "full")


class MessageFormatError(ValueError):
    """A message pattern is malformed or a value is missing."""


def parse_locale(locale: str | Locale) -> Locale:
    """Parse ``en``, ``en_US`` or ``en-US`` into a Babel Locale.

    Raises:
        ValueError: If the identifier is not a known locale.
    """
    if isinstance(locale, Locale):
        return locale
    try:
        return Locale.parse(str(locale).replace("-", "_"))
    except UnknownLocaleError as exc:
        raise ValueError(f"Unknown locale: {locale}") from exc


class FormatCache(Generic[T]):
    """Memoize formatter construction by ``(format, locale)``."""

    def __init__(self, factory: Callable[[Any, str], T]):
        self._factory = factory
        self._cache: dict[tuple[Any, str], T] = {}

    def __call__(self, spec: Any, locale: str) -> T:
        key = (spec, locale)
        try:
            return self._cache[key]
        except KeyError:
            formatter = self._factory(spec, locale)
            self._cache[key] = formatter
            return formatter

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()


@dataclass
class _Argument:
    name: str
    kind: str | None = None
    style: str | None = None
    options: dict[str, list] = field(default_factory=dict)


class _Pound:
    """Placeholder for ``#`` inside a plural branch."""


class _MessageParser:
    """Recursive-descent parser producing a list of text and argument nodes."""

    def __init__(self, pattern: str):
        self.text = pattern
        self.pos = 0

    def parse(self) -> list:
        parts = self._message(in_plural=False)
        if self.pos < len(self.text):
            raise MessageFormatError(
                f"Unmatched '}}' at position {self.pos} in {self.text!r}"
            )
        return parts

    def _message(self, in_plural: bool) -> list:
        parts: list = []
        buf: list[str] = []

        def flush() -> None:
            if buf:
                parts.append("".join(buf))
                buf.clear()

        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "'":
                buf.append(self._quoted())
            elif ch == "{":
                flush()
                self.pos += 1
                parts.append(self._argument(in_plural))
            elif ch == "}":
                break
            elif ch == "#" and in_plural:
                flush()
                parts.append(_Pound())
                self.pos += 1
            else:
                buf.append(ch)
                self.pos += 1
        flush()
        return parts

    def _quoted(self) -> str:
        nxt = self.text[self.pos + 1 : self.pos + 2]
        if nxt == "'":
            self.pos += 2
            return "'"
        if nxt and nxt in "{}#":
            end = self.text.find("'", self.pos + 1)
            if end == -1:
                literal = self.text[self.pos + 1 :]
                self.pos = len(self.text)
            else:
                literal = self.text[self.pos + 1 : end]
                self.pos = end + 1
            return literal
        self.pos += 1
        return "'"

    def _read_until(self, stops: str) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in stops:
            self.pos += 1
        if self.pos >= len(self.text):
            raise MessageFormatError(f"Unclosed argument in {self.text!r}")
        return self.text[start : self.pos].strip()

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _argument(self, in_plural: bool) -> _Argument:
        name = self._read_until(",}")
        if not name:
            raise MessageFormatError(f"Empty argument name in {self.text!r}")
        arg = _Argument(name)
        if self.text[self.pos] == "}":
            self.pos += 1
            return arg
        self.pos += 1
        arg.kind = self._read_until(",}")
        if self.text[self.pos] == "}":
            self.pos += 1
            return arg
        self.pos += 1
        if arg.kind in ("plural", "select"):
            arg.options = self._options(in_plural or arg.kind == "plural")
            if "other" not in arg.options:
                raise MessageFormatError(
                    f"{arg.kind} argument {name!r} needs an 'other' option"
                )
        else:
            arg.style = self._read_until("}") or None
        self.pos += 1
        return arg

    def _options(self, in_plural: bool) -> dict[str, list]:
        options: dict[str, list] = {}
        while True:
            self._skip_whitespace()
            if self.pos >= len(self.text):
                raise MessageFormatError(f"Unclosed options in {self.text!r}")
            if self.text[self.pos] == "}":
                return options
            start = self.pos
            while (
                self.pos < len(self.text)
                and not self.text[self.pos].isspace()
                and self.text[self.pos] not in "{}"
            ):
                self.pos += 1
            selector = self.text[start : self.pos]
            self._skip_whitespace()
            if not selector or self.text[self.pos : self.pos + 1] != "{":
                raise MessageFormatError(
                    f"Expected '{{' after selector {selector!r} in {self.text!r}"
                )
            self.pos += 1
            options[selector] = self._message(in_plural)
            if self.text[self.pos : self.pos + 1] != "}":
                raise MessageFormatError(f"Unclosed option {selector!r} in {self.text!r}")
            self.pos += 1


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


class MessageFormat:
    """A compiled message pattern bound to a locale.

    Args:
        pattern: ICU-style message pattern.
        locale: Locale identifier used for numbers, dates and plural rules.
    """

    def __init__(self, pattern: str, locale: str):
        self.pattern = pattern
        self.locale = parse_locale(locale)
        self._parts = _MessageParser(pattern).parse()

    def format(self, values: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        params = dict(values or {}, **kwargs)
        return self._render(self._parts, params, None)

    def _render(self, parts: list, params: dict[str, Any], plural_value: Any) -> str:
        out: list[str] = []
        for part in parts:
            if isinstance(part, str):
                out.append(part)
            elif isinstance(part, _Pound):
                out.append(format_decimal(plural_value, locale=self.locale))
            else:
                out.append(self._format_argument(part, params, plural_value))
        return "".join(out)

    def _format_argument(
        self, arg: _Argument, params: dict[str, Any], plural_value: Any
    ) -> str:
        if arg.name not in params:
            raise MessageFormatError(f"Missing value for {arg.name!r} in {self.pattern!r}")
        value = params[arg.name]

        if arg.kind is None:
            return self._format_plain(value)
        if arg.kind == "number":
            return NumberFormat(arg.style, self.locale).format(value)
        if arg.kind in ("date", "time"):
            return DateTimeFormat(arg.style, self.locale, kind=arg.kind).format(value)
        if arg.kind == "plural":
            if not _is_number(value):
                raise MessageFormatError(f"Plural value for {arg.name!r} must be a number")
            branch = self._plural_branch(arg.options, value)
            return self._render(branch, params, value)
        if arg.kind == "select":
            branch = arg.options.get(str(value), arg.options["other"])
            return self._render(branch, params, plural_value)
        raise MessageFormatError(f"Unknown argument type {arg.kind!r} in {self.pattern!r}")

    def _plural_branch(self, options: dict[str, list], value: Any) -> list:
        for selector, branch in options.items():
            if selector.startswith("="):
                try:
                    if float(selector[1:]) == float(value):
                        return branch
                except ValueError as exc:
                    raise MessageFormatError(f"Bad plural selector {selector!r}") from exc
        category = self.locale.plural_form(abs(value))
        return options.get(category, options["other"])

    def _format_plain(self, value: Any) -> str:
        if _is_number(value):
            return format_decimal(value, locale=self.locale)
        if isinstance(value, (date, time)):
            return DateTimeFormat(None, self.locale).format(value)
        return str(value)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"MessageFormat({self.pattern!r}, {str(self.locale)!r})"


class DateTimeFormat:
    """Format dates, datetimes and times for a locale.

    Args:
        format_spec: One of ``short``, ``medium``, ``long``, ``full`` or a CLDR
            pattern such as ``yyyy-MM-dd``. Defaults to ``medium``.
        locale: Locale identifier.
        kind: ``"date"`` formats only the date part of datetimes,
            ``"time"`` only the time part, None formats whatever it is given.
    """

    def __init__(self, format_spec: str | None, locale: str | Locale, kind: str | None = None):
        self.format_spec = format_spec or "medium"
        self.locale = parse_locale(locale)
        self.kind = kind

    def format(self, value: Any) -> str:
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value)
            except ValueError as exc:
                raise ValueError(f"Not an ISO date: {value!r}") from exc
        if self.kind == "time" or isinstance(value, time):
            return format_time(value, self.format_spec, locale=self.locale)
        if isinstance(value, datetime) and self.kind != "date":
            return format_datetime(value, self.format_spec, locale=self.locale)
        if isinstance(value, date):
            return format_date(value, self.format_spec, locale=self.locale)
        raise TypeError(f"Cannot format {type(value).__name__} as a date")


class NumberFormat:
    """Format numbers for a locale.

    ``format_spec`` is None for the locale's decimal format, ``integer``,
    ``percent`` or a CLDR number pattern such as ``#,##0.00``.
    """

    def __init__(self, format_spec: str | None, locale: str | Locale):
        self.format_spec = format_spec
        self.locale = parse_locale(locale)

    def format(self, value: Any) -> str:
        if not _is_number(value):
            raise TypeError(f"Cannot format {type(value).__name__} as a number")
        if self.format_spec == "percent":
            return format_percent(value, locale=self.locale)
        if self.format_spec == "integer":
            return format_decimal(value, format="#,##0", locale=self.locale)
        return format_decimal(value, format=self.format_spec, locale=self.locale)


class Formatters:
    """Formatter caches shared by one build."""

    def __init__(self) -> None:
        self.messages: FormatCache[MessageFormat] = FormatCache(MessageFormat)
        self.dates: FormatCache[DateTimeFormat] = FormatCache(DateTimeFormat)
        self.numbers: FormatCache[NumberFormat] = FormatCache(NumberFormat)

    def get_message_format(self, pattern: str, locale: str) -> MessageFormat:
        return self.messages(pattern, locale)

    def get_datetime_format(self, format_spec: str | None, locale: str) -> DateTimeFormat:
        return self.dates(format_spec, locale)

    def get_number_format(self, format_spec: str | None, locale: str) -> NumberFormat:
        return self.numbers(format_spec, locale)
