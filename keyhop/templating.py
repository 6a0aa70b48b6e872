from __future__ import annotations

from typing import Any, Iterable

from jinja2 import DictLoader, Environment, StrictUndefined, select_autoescape

# WHATWG fragment percent-encode set, plus characters that would otherwise be
# read as a query separator ("&", "+") or a fragment start ("#").
_ENCODED_ASCII = frozenset(' "<>`+&#')

INDEX_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>keyhop</title>
  <link rel="search" type="application/opensearchdescription+xml"
        href="http://{{ hostname }}/bunbunsearch.xml" title="keyhop">
</head>
<body>
  <h1>keyhop</h1>
  <p>Add <code>http://{{ hostname }}/hop?to=%s</code> as a search engine, then
     type a keyword followed by your query.</p>
  <p><a href="/ls">See all routes</a></p>
</body>
</html>
"""

LIST_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>keyhop - routes</title>
</head>
<body>
  <h1>Routes</h1>
  {% for group in groups %}{% set routes = group.visible_routes() %}{% if routes %}
  <section>
    <h2>{{ group.name }}</h2>
    {% if group.description %}<p>{{ group.description }}</p>{% endif %}
    <table>
      <tr><th>Keyword</th><th>Destination</th><th>Arguments</th></tr>
      {% for keyword, route in routes.items() %}
      <tr>
        <td><code>{{ keyword }}</code></td>
        <td>{{ route.description or route.path }}</td>
        <td>{% if route.min_args is not none %}min {{ route.min_args }} {% endif %}{% if route.max_args is not none %}max {{ route.max_args }}{% endif %}</td>
      </tr>
      {% endfor %}
    </table>
  </section>
  {% endif %}{% endfor %}
</body>
</html>
"""

OPENSEARCH_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<OpenSearchDescription xmlns="http://a9.com/-/spec/opensearch/1.1/">
  <ShortName>keyhop</ShortName>
  <Description>Hop to where you need to go</Description>
  <InputEncoding>UTF-8</InputEncoding>
  <Url type="text/html" template="http://{{ hostname }}/hop?to={searchTerms}"/>
</OpenSearchDescription>
"""

_pages = Environment(
    loader=DictLoader(
        {
            "index.html": INDEX_TEMPLATE,
            "list.html": LIST_TEMPLATE,
            "opensearch.xml": OPENSEARCH_TEMPLATE,
        }
    ),
    autoescape=select_autoescape(["html", "xml"]),
    undefined=StrictUndefined,
)

# Redirect targets are URLs that may contain "{#" or "{%"; only "{{ }}" is
# template syntax there. NUL cannot appear in a URL, so these never match.
_redirects = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    block_start_string="\x00{%",
    block_end_string="%}\x00",
    comment_start_string="\x00{#",
    comment_end_string="#}\x00",
)


def percent_encode(text: str) -> str:
    encoded = []
    for byte in text.encode("utf-8"):
        char = chr(byte)
        if byte < 0x20 or byte >= 0x7F or char in _ENCODED_ASCII:
            encoded.append(f"%{byte:02X}")
        else:
            encoded.append(char)
    return "".join(encoded)


def render_redirect(template: str, args: str) -> str:
    """Substitute the percent-encoded ``args`` into a route's ``{{query}}``.

    Raises ``jinja2.TemplateError`` for syntax errors or unknown placeholders.
    """
    return _redirects.from_string(template).render(query=percent_encode(args))


def render_index(hostname: str) -> str:
    return _pages.get_template("index.html").render(hostname=hostname)


def render_opensearch(hostname: str) -> str:
    return _pages.get_template("opensearch.xml").render(hostname=hostname)


def render_list(groups: Iterable[Any]) -> str:
    return _pages.get_template("list.html").render(groups=groups)
