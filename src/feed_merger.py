"""Append episode items to an existing index.xml by plain string surgery.

The document is never parsed. It is split at the closing trailer, new
<item> blocks are appended, and the trailer is put back, so every existing
byte before the trailer survives unchanged.
"""

from collections.abc import Iterable
from xml.sax.saxutils import escape

from src.models import EpisodeRecord

TRAILER = "</channel>\n</rss>\n"
# Tried in order; at most one of them is removed per merge.
TRAILER_SUFFIXES = (TRAILER, "</channel>\n", "</rss>\n")

ENCLOSURE_TYPE = "audio/mpeg"

ITEM_TEMPLATE = """     <item>
         <title>{title}</title>
         <pubDate>{pub_date}</pubDate>
         <enclosure url="{url}" length="{length}" type="{type}" />
     </item>"""

_ATTR_ENTITIES = {'"': "&quot;"}


def strip_trailer(document: str) -> str:
    """Remove one trailer's worth of closing tags from the end of ``document``."""
    for suffix in TRAILER_SUFFIXES:
        if document.endswith(suffix):
            return document[: -len(suffix)]
    return document


def enclosure_url(base_url: str, object_path: str) -> str:
    return f"{base_url.rstrip('/')}/{object_path.lstrip('/')}"


def render_item(record: EpisodeRecord, base_url: str) -> str:
    """Render one fixed-format <item> block (no trailing newline)."""
    return ITEM_TEMPLATE.format(
        title=escape(record.title),
        pub_date=escape(record.pub_date),
        url=escape(enclosure_url(base_url, record.object_path), _ATTR_ENTITIES),
        length=record.size_bytes,
        type=ENCLOSURE_TYPE,
    )


def merge(existing: str, records: Iterable[EpisodeRecord], base_url: str) -> str:
    """Return ``existing`` with one <item> per record appended before the trailer.

    Records keep their order and are not deduplicated: merging the same
    record twice yields two identical items. ``merge("", [])`` is just the
    trailer.
    """
    parts = [strip_trailer(existing)] if existing else []
    for record in records:
        parts.append(render_item(record, base_url))
        parts.append("\n")
    parts.append(TRAILER)
    return "".join(parts)


def references(document: str, object_path: str) -> bool:
    """True when an enclosure for ``object_path`` already appears in ``document``."""
    path = escape(object_path.lstrip("/"), _ATTR_ENTITIES)
    return f'/{path}"' in document
