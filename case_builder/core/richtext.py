"""
Texte riche — simple passe-plat HTML assaini (pas de moteur d'édition).

Retire script/style/iframe/object/embed, les attributs on*, et les href
javascript:. Le reste du balisage est conservé tel quel.
"""
import re
from html import escape

from lxml import etree
from lxml import html as lxml_html

_DROP_TAGS = {"script", "style", "iframe", "object", "embed"}
_JS_HREF = re.compile(r"^\s*javascript:", re.IGNORECASE)


def _parse_fragment(value: str):
    return lxml_html.fragment_fromstring(value, create_parent="div")


def sanitize_rich_html(value: str) -> str:
    if not value or not value.strip():
        return ""
    try:
        root = _parse_fragment(value)
    except (etree.ParserError, ValueError):
        return escape(value)

    for el in list(root.iter()):
        if el is root:
            continue
        if not isinstance(el.tag, str):
            el.drop_tree()  # commentaires, instructions
            continue
        if el.tag.lower() in _DROP_TAGS:
            el.drop_tree()
            continue
        for attr in list(el.attrib):
            if attr.lower().startswith("on"):
                del el.attrib[attr]
        href = el.get("href")
        if href and _JS_HREF.match(href):
            del el.attrib["href"]

    parts = [escape(root.text or "", quote=False)]
    parts.extend(lxml_html.tostring(child, encoding="unicode") for child in root)
    return "".join(parts)


def html_to_text(value: str) -> str:
    """Texte brut d'un fragment HTML (repli `body` du texte riche)."""
    if not value or not value.strip():
        return ""
    try:
        return _parse_fragment(value).text_content().strip()
    except (etree.ParserError, ValueError):
        return value.strip()
