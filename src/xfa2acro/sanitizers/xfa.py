# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Script and event removal from embedded XFA packets.

The /XFA entry of the AcroForm is either a single stream holding the
whole XDP document or an array of alternating name/stream pairs
(``preamble``, ``config``, ``template``, ``datasets``, ...). Only packets
that can carry scripts are rewritten; everything else is left as is.
"""

import logging
import re
import zlib
from typing import Any

from lxml import etree
from pikepdf import Array, Name, Pdf, PdfError, Stream

from ..exceptions import XfaPacketError
from ..utils import read_text
from ..utils import resolve_indirect as _resolve_indirect

logger = logging.getLogger(__name__)

_SECURE_XML_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    load_dtd=False,
    remove_blank_text=False,
)

# Same limits, but tolerates undeclared namespace prefixes. The tag of such
# an element keeps its "prefix:" text.
_LENIENT_XML_PARSER = etree.XMLParser(
    recover=True,
    resolve_entities=False,
    no_network=True,
    load_dtd=False,
    remove_blank_text=False,
)

# Packet names (case-insensitive substrings) that may hold scripts
SCRIPT_PACKET_KEYWORDS = ("template", "form", "datasets", "config")

_UTF16_BE_BOM = b"\xfe\xff"
_UTF16_LE_BOM = b"\xff\xfe"
_UTF8_BOM = b"\xef\xbb\xbf"

_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml\s[^>]*\?>")


def strip_xfa_scripts(pdf: Pdf) -> dict[str, int]:
    """Removes <event> and JavaScript <script> nodes from XFA packets.

    A packet that fails to parse is logged and left unmodified; the
    remaining packets are still processed.

    Args:
        pdf: Opened pikepdf PDF object (modified in place).

    Returns:
        Dictionary with the keys ``xfa_packets_cleaned``,
        ``xfa_packets_failed`` and ``xfa_nodes_removed``.
    """
    result = {
        "xfa_packets_cleaned": 0,
        "xfa_packets_failed": 0,
        "xfa_nodes_removed": 0,
    }

    if "/AcroForm" not in pdf.Root:
        return result
    acroform = _resolve_indirect(pdf.Root.AcroForm)
    xfa = acroform.get("/XFA")
    if xfa is None:
        return result
    xfa = _resolve_indirect(xfa)

    for packet_name, stream in _iter_script_packets(xfa):
        try:
            cleaned, removed = clean_xfa_packet(bytes(stream.read_bytes()))
        except XfaPacketError as e:
            result["xfa_packets_failed"] += 1
            logger.warning("XFA packet '%s' left unmodified: %s", packet_name, e)
            continue
        except PdfError as e:
            # Undecodable stream data (unsupported filter, truncated data)
            result["xfa_packets_failed"] += 1
            logger.warning("XFA packet '%s' could not be read: %s", packet_name, e)
            continue

        if "/DecodeParms" in stream:
            del stream["/DecodeParms"]
        stream.write(zlib.compress(cleaned), filter=Name.FlateDecode)
        result["xfa_packets_cleaned"] += 1
        result["xfa_nodes_removed"] += removed
        logger.debug(
            "Stripped %d script/event node(s) from XFA packet '%s'",
            removed,
            packet_name,
        )

    if result["xfa_nodes_removed"] > 0:
        logger.info(
            "%d XFA script/event node(s) removed", result["xfa_nodes_removed"]
        )
    return result


def _iter_script_packets(xfa: Any):
    """Yield ``(name, stream)`` for every XFA packet that may hold scripts."""
    if isinstance(xfa, Stream):
        yield "xfa", xfa
        return

    if not isinstance(xfa, Array):
        logger.debug("Ignoring /XFA of unexpected type %s", type(xfa).__name__)
        return

    for i in range(0, len(xfa) - 1, 2):
        name = read_text(xfa[i])
        if name is None:
            name = str(i)
        if not is_script_packet(name):
            continue

        stream = _resolve_indirect(xfa[i + 1])
        if not isinstance(stream, Stream):
            logger.debug("XFA packet '%s' is not a stream, skipped", name)
            continue
        yield name, stream


def is_script_packet(name: str) -> bool:
    """Returns True if an XFA packet with this name may contain scripts."""
    lower = name.lower()
    return any(keyword in lower for keyword in SCRIPT_PACKET_KEYWORDS)


def decode_xml_bytes(data: bytes) -> str:
    """Decodes XFA packet bytes, honouring a UTF-16 or UTF-8 byte order mark.

    Data without a BOM is decoded as UTF-8.

    Raises:
        XfaPacketError: If the data is not valid in the detected encoding.
    """
    if data.startswith(_UTF16_BE_BOM):
        encoding, body = "utf-16-be", data[len(_UTF16_BE_BOM) :]
    elif data.startswith(_UTF16_LE_BOM):
        encoding, body = "utf-16-le", data[len(_UTF16_LE_BOM) :]
    elif data.startswith(_UTF8_BOM):
        encoding, body = "utf-8", data[len(_UTF8_BOM) :]
    else:
        encoding, body = "utf-8", data

    try:
        return body.decode(encoding)
    except UnicodeDecodeError as e:
        raise XfaPacketError(f"cannot decode packet as {encoding}: {e}") from e


def _local_name(element: etree._Element) -> str | None:
    """Returns the tag without namespace or prefix, or None for comments and PIs.

    Elements with an undeclared prefix keep it in their tag (``xfa:event``).
    """
    tag = element.tag
    if not isinstance(tag, str):
        return None
    if "}" in tag:
        tag = tag.rsplit("}", 1)[1]
    return tag.rsplit(":", 1)[-1]


def _is_namespace_error(error: etree.XMLSyntaxError) -> bool:
    """Returns True if every logged parse error is a namespace error."""
    entries = list(error.error_log)
    return bool(entries) and all(e.domain_name == "NAMESPACE" for e in entries)


def _parse_packet(xml: bytes) -> etree._Element:
    try:
        return etree.fromstring(xml, parser=_SECURE_XML_PARSER)
    except etree.XMLSyntaxError as e:
        if not _is_namespace_error(e):
            raise XfaPacketError(f"XML parse error: {e}") from e
        logger.debug("Undeclared namespace prefix in XFA packet: %s", e)

    try:
        root = etree.fromstring(xml, parser=_LENIENT_XML_PARSER)
    except etree.XMLSyntaxError as e:
        raise XfaPacketError(f"XML parse error: {e}") from e
    if root is None:
        raise XfaPacketError("XML parse error: no root element")
    return root


def _is_javascript_script(element: etree._Element) -> bool:
    content_type = element.get("contentType")
    return content_type is not None and "javascript" in content_type.lower()


def _remove_preserving_tail(element: etree._Element) -> bool:
    """Detaches an element while keeping the text that follows it.

    Returns False for the root element, which cannot be detached.
    """
    parent = element.getparent()
    if parent is None:
        return False
    if element.tail:
        previous = element.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + element.tail
        else:
            parent.text = (parent.text or "") + element.tail
    parent.remove(element)
    return True


def clean_xfa_packet(data: bytes) -> tuple[bytes, int]:
    """Removes script-bearing nodes from one XFA packet.

    Every ``<event>`` element is removed. A ``<script>`` element is removed
    when its ``contentType`` attribute contains "javascript"
    (case-insensitive); scripts without ``contentType`` are kept.
    Elements are matched by local name, ignoring namespaces. A packet
    whose only parse errors are undeclared namespace prefixes is parsed in
    recovery mode and cleaned like any other.

    Args:
        data: Raw (decoded stream) bytes of the packet.

    Returns:
        Tuple of (cleaned UTF-8 bytes with XML declaration, number of
        removed nodes).

    Raises:
        XfaPacketError: If the packet cannot be parsed or serialized.
    """
    text = decode_xml_bytes(data)

    # The encoding declaration no longer matches once the text is decoded,
    # so parse from UTF-8 bytes with the declaration removed.
    root = _parse_packet(_strip_xml_declaration(text).encode("utf-8"))

    # Collect first: removing during iter() would skip siblings
    doomed = []
    for element in root.iter():
        name = _local_name(element)
        if name == "event":
            doomed.append(element)
        elif name == "script" and _is_javascript_script(element):
            doomed.append(element)

    removed = 0
    for element in doomed:
        if _remove_preserving_tail(element):
            removed += 1

    try:
        cleaned = etree.tostring(
            root.getroottree(),
            xml_declaration=True,
            encoding="UTF-8",
            pretty_print=False,
        )
    except (etree.SerialisationError, ValueError) as e:
        raise XfaPacketError(f"XML serialization error: {e}") from e

    return cleaned, removed


def _strip_xml_declaration(text: str) -> str:
    """Removes a leading ``<?xml ...?>`` declaration if present."""
    return _XML_DECLARATION_RE.sub("", text, count=1)
