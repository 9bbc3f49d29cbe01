"""Renderer capabilities for Noctule.

Every renderer implements the Renderer protocol: ``render(body, context)``
returning text. Renderers are registered under a name in a RendererRegistry
and selected per file extension through ``Config.renderers``.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with syntax highlighting.
- TemplateRenderer: Expands Jinja2 templates with helpers and locale formatting.
- PassthroughRenderer: Returns the body unchanged.
- RendererRegistry: Name -> renderer mapping.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

import mistune
from jinja2 import Environment, FileSystemLoader, pass_context
from jinja2.runtime import Context
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .config import Config
from .errors import ConfigError
from .formatting import Formatters
from .helpers import TEMPLATE_HELPERS, clean_html
from .html_utils import escape_html, strip_tags
from .protocols import Renderer


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text, possibly with inline markup.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = strip_tags(text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _HighlightRenderer(mistune.HTMLRenderer):
    """Mistune HTML renderer adding heading ids and Pygments highlighting.

    Inline HTML is kept as is; escaping is left to the templates.
    """

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text)

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block, highlighted when the language is known."""
        if info:
            lang = info.split()[0]
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape_html(info.split()[0])}"' if info else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown bodies to HTML.

    The context is not used: Markdown bodies contain no expressions.
    """

    plugins = ("strikethrough", "footnotes", "table", "url")

    def render(self, body: str, context: Mapping[str, Any]) -> str:
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(), plugins=list(self.plugins)
        )
        return markdown(body)


class PassthroughRenderer:
    """Treats the body as final HTML."""

    def render(self, body: str, context: Mapping[str, Any]) -> str:
        return body


class FunctionRenderer:
    """Adapts a plain ``(body, context) -> str`` callable to the Renderer protocol."""

    def __init__(self, func: Callable[[str, Mapping[str, Any]], str]):
        self.func = func

    def render(self, body: str, context: Mapping[str, Any]) -> str:
        return self.func(body, context)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"FunctionRenderer({self.func!r})"


class TemplateRenderer:
    """Jinja2 template expansion.

    Bodies are compiled with ``Environment.from_string``; the loader searches
    ``search_path`` so templates can ``{% include %}`` or ``{% extends %}``
    other files. Helpers from noctule.helpers are installed as globals,
    together with locale-aware formatting:

    - ``format_message(pattern, **values)`` formats an ICU-style message.
    - ``t(key, **values)`` formats the message stored under ``key`` for the
      active locale, falling back to the default locale and then to the key.
    - ``value|format_date(style)`` and ``value|format_number(style)``.

    The active locale is the ``locale`` context variable, or the renderer's
    default locale when it is unset.

    Attributes:
        env: Jinja2 environment.
        formatters: Formatter caches shared with the rest of the build.
        default_locale: Locale used when the context does not name one.
        messages: Locale -> key -> message pattern.
    """

    def __init__(
        self,
        search_path: Iterable[Path] = (),
        formatters: Formatters | None = None,
        default_locale: str = "en",
        messages: Mapping[str, Mapping[str, str]] | None = None,
    ):
        self.formatters = formatters or Formatters()
        self.default_locale = default_locale
        self.messages = messages or {}
        self.env = Environment(
            loader=FileSystemLoader([str(p) for p in search_path]),
            autoescape=False,
            keep_trailing_newline=True,
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Install helpers, formatters and filters in the Jinja environment."""
        self.env.globals.update(TEMPLATE_HELPERS)
        self.env.globals["format_message"] = self._format_message
        self.env.globals["t"] = self._translate
        self.env.filters["format_date"] = self._format_date
        self.env.filters["format_number"] = self._format_number
        self.env.filters["clean_html"] = clean_html

    def _locale(self, ctx: Context) -> str:
        return str(ctx.get("locale") or self.default_locale)

    @pass_context
    def _format_message(self, ctx: Context, pattern: str, **values: Any) -> str:
        return self.formatters.get_message_format(pattern, self._locale(ctx)).format(values)

    @pass_context
    def _translate(self, ctx: Context, key: str, **values: Any) -> str:
        locale = self._locale(ctx)
        pattern = key
        for candidate in (locale, locale.replace("-", "_").split("_")[0], self.default_locale):
            catalog = self.messages.get(candidate)
            if catalog and key in catalog:
                pattern = catalog[key]
                break
        return self.formatters.get_message_format(pattern, locale).format(values)

    @pass_context
    def _format_date(self, ctx: Context, value: Any, style: str | None = None) -> str:
        if value is None or value == "":
            return ""
        return self.formatters.get_datetime_format(style, self._locale(ctx)).format(value)

    @pass_context
    def _format_number(self, ctx: Context, value: Any, style: str | None = None) -> str:
        return self.formatters.get_number_format(style, self._locale(ctx)).format(value)

    def render(self, body: str, context: Mapping[str, Any]) -> str:
        template = self.env.from_string(body)
        return template.render(dict(context))


class RendererRegistry:
    """Named renderer capabilities.

    Adding a renderer never requires changing the generator: register it
    here and map an extension to its name in the configuration.
    """

    def __init__(self, renderers: Mapping[str, Any] | None = None):
        self._renderers: dict[str, Renderer] = {}
        for name, renderer in (renderers or {}).items():
            self.register(name, renderer)

    def register(self, name: str, renderer: Any) -> None:
        """Register a renderer under ``name``, replacing any previous one.

        Args:
            name: Renderer name referenced by ``Config.renderers``.
            renderer: A Renderer, or a plain ``(body, context)`` callable.

        Raises:
            TypeError: If ``renderer`` is neither.
        """
        if not isinstance(renderer, Renderer):
            if not callable(renderer):
                raise TypeError(f"Renderer {name!r} must have a render(body, context) method")
            renderer = FunctionRenderer(renderer)
        self._renderers[name] = renderer

    def resolve(self, name: str) -> Renderer:
        """Return the renderer registered under ``name``.

        Raises:
            ConfigError: If no renderer has that name.
        """
        try:
            return self._renderers[name]
        except KeyError:
            known = ", ".join(sorted(self._renderers)) or "none"
            raise ConfigError(f"Unknown renderer {name!r} (registered: {known})") from None

    def names(self) -> list[str]:
        return sorted(self._renderers)

    def __contains__(self, name: object) -> bool:
        return name in self._renderers

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"RendererRegistry({self.names()})"


def create_default_registry(
    config: Config | None = None, formatters: Formatters | None = None
) -> RendererRegistry:
    """Registry with the built-in ``markdown``, ``template`` and ``passthrough`` renderers.

    Args:
        config: Supplies template search paths, default locale and messages.
        formatters: Formatter caches for the template renderer.
    """
    search_path: list[Path] = []
    locale = "en"
    messages: Mapping[str, Mapping[str, str]] = {}
    if config is not None:
        search_path = [config.layouts_dir, config.source_dir]
        locale = config.locale
        messages = config.messages
    return RendererRegistry(
        {
            "markdown": MarkdownRenderer(),
            "template": TemplateRenderer(search_path, formatters, locale, messages),
            "passthrough": PassthroughRenderer(),
        }
    )
