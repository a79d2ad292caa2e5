"""
L1 Domain — Distribution name templates (pure).

Renders ``bdist-name`` templates.  The syntax is the mustache subset
that makes sense for file and artifact names:

    {{{agda-version}}}   {{&arch}}     unescaped value
    {{agda-version}}                   HTML-escaped value (mustache default)
    {{#icu-version}}-icu{{{icu-version}}}{{/icu-version}}
                                       section, rendered if the field is set
    {{^icu-version}}-noicu{{/icu-version}}
                                       inverted section
    {{! comment }}                     ignored

Only the fields in ``NAME_TEMPLATE_FIELDS`` may appear.  Anything else is
a syntax error, raised by :func:`parse_template` so that option
resolution can report it before the pipeline starts; rendering itself
never fails on a template that parsed.

Rendering is deterministic: the probe name and the publish name are
produced by the same function and are reproducible across runs.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Mapping

from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.services.bdist.data.constants import (
    BDIST_NAME_DEFAULT_TEMPLATE,
    NAME_TEMPLATE_FIELDS,
)


class TemplateSyntaxError(ValueError):
    """Raised when a name template does not parse."""


# Node shapes (tuples, so parsed templates are immutable and cacheable):
#   ("text", str)
#   ("var", name, escape)
#   ("section", name, inverted, children)
Node = tuple

_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
    "/": "&#x2F;",
    "`": "&#x60;",
    "=": "&#x3D;",
}


def _escape(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


# ── Parsing ────────────────────────────────────────────────────


@lru_cache(maxsize=64)
def parse_template(template: str) -> tuple[Node, ...]:
    """Parse ``template`` into an immutable node tree.

    Raises:
        TemplateSyntaxError: On unclosed tags, empty tags, unbalanced
            sections, or fields outside the whitelist.
    """
    root: list[Node] = []
    # Each frame: (section name, inverted, children, opening position)
    stack: list[tuple[str, bool, list[Node], int]] = []
    current = root
    pos = 0

    while True:
        start = template.find("{{", pos)
        if start == -1:
            if pos < len(template):
                current.append(("text", template[pos:]))
            break
        if start > pos:
            current.append(("text", template[pos:start]))

        if template.startswith("{{{", start):
            end = template.find("}}}", start + 3)
            if end == -1:
                raise TemplateSyntaxError(f"Unclosed tag at {start}")
            kind, name = "&", template[start + 3:end].strip()
            pos = end + 3
        else:
            end = template.find("}}", start + 2)
            if end == -1:
                raise TemplateSyntaxError(f"Unclosed tag at {start}")
            body = template[start + 2:end].strip()
            pos = end + 2
            if body[:1] in ("#", "^", "/", "&", "!"):
                kind, name = body[0], body[1:].strip()
            else:
                kind, name = "", body

        if kind == "!":
            continue
        if not name:
            raise TemplateSyntaxError(f"Empty tag at {start}")
        if name not in NAME_TEMPLATE_FIELDS:
            raise TemplateSyntaxError(
                f"Unknown field '{name}' at {start}; "
                f"expected one of: {', '.join(sorted(NAME_TEMPLATE_FIELDS))}"
            )

        if kind in ("#", "^"):
            children: list[Node] = []
            stack.append((name, kind == "^", children, start))
            current.append(("section-open", len(stack) - 1))
            current = children
        elif kind == "/":
            if not stack:
                raise TemplateSyntaxError(f"Unopened section '{name}' at {start}")
            open_name, inverted, children, open_pos = stack.pop()
            if open_name != name:
                raise TemplateSyntaxError(
                    f"Unclosed section '{open_name}' at {open_pos}"
                )
            parent = stack[-1][2] if stack else root
            # Replace the placeholder pushed when the section opened.
            parent[-1] = ("section", name, inverted, tuple(children))
            current = parent
        else:
            current.append(("var", name, kind == ""))

    if stack:
        open_name, _, _, open_pos = stack[-1]
        raise TemplateSyntaxError(f"Unclosed section '{open_name}' at {open_pos}")

    return tuple(root)


def normalize_template(template: str) -> str:
    """Remove all whitespace from a template."""
    return "".join(template.split())


# ── Rendering ──────────────────────────────────────────────────


def _render_nodes(nodes: tuple[Node, ...], values: Mapping[str, str | None]) -> str:
    out: list[str] = []
    for node in nodes:
        if node[0] == "text":
            out.append(node[1])
        elif node[0] == "var":
            value = values.get(node[1]) or ""
            out.append(_escape(value) if node[2] else value)
        else:
            _, name, inverted, children = node
            present = bool(values.get(name))
            if present != inverted:
                out.append(_render_nodes(children, values))
    return "".join(out)


def render_template(template: str, values: Mapping[str, str | None]) -> str:
    """Render ``template`` against a field → value mapping."""
    return _render_nodes(parse_template(template), values)


def template_values(options: BuildOptions, context: RuntimeContext) -> dict[str, str | None]:
    """The whitelisted field values for ``options`` on ``context``."""
    return {
        "agda-version": options.agda_version,
        "ghc-version": options.ghc_version,
        "cabal-version": options.cabal_version,
        "stack-version": options.stack_version,
        "icu-version": options.icu_version,
        "upx-version": options.upx_version,
        "arch": context.arch,
        "platform": context.platform,
        "release": context.release,
    }


def render_name(template: str, options: BuildOptions, context: RuntimeContext) -> str:
    """Render a distribution name.

    An empty ``template`` renders the default template.
    """
    return render_template(
        template or BDIST_NAME_DEFAULT_TEMPLATE,
        template_values(options, context),
    )


def default_bdist_name(options: BuildOptions, context: RuntimeContext) -> str:
    """The name a prebuilt bdist for ``options`` is published under."""
    return render_name(BDIST_NAME_DEFAULT_TEMPLATE, options, context)


def bdist_name(options: BuildOptions, context: RuntimeContext) -> str:
    """The name to publish a freshly built bdist under."""
    return render_name(options.bdist_name, options, context)
