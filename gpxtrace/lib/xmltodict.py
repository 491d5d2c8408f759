import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from itertools import chain
from typing import Any

import lxml.etree as ET
from sizestr import sizestr

from gpxtrace.config import XML_PARSE_MAX_SIZE
from gpxtrace.lib.exceptions_context import raise_for

_PARSER = ET.XMLParser(
    ns_clean=True,
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    remove_pis=True,
    collect_ids=False,
    compact=False,
)

XMLSyntaxError = ET.XMLSyntaxError


class XMLToDict:
    force_list = frozenset((
        'gpx_file',
        'tag',
        'trk',
        'trkseg',
        'trkpt',
    ))

    @staticmethod
    def parse(xml_bytes: bytes, *, size_limit: int | None = XML_PARSE_MAX_SIZE) -> dict[str, Any]:
        """
        Parse XML string to dict.

        Attributes are prefixed with '@', namespaces are stripped and elements
        listed in `force_list` are always returned as lists.
        Raises `XMLSyntaxError` if the document is not well-formed.
        """
        if size_limit is not None and len(xml_bytes) > size_limit:
            raise_for.input_too_big(len(xml_bytes))

        logging.debug('Parsing %s XML string', sizestr(len(xml_bytes)))
        root = ET.fromstring(xml_bytes, parser=_PARSER)  # noqa: S320
        return {_strip_namespace(root.tag): _parse_element(root)}

    @staticmethod
    def unparse(d: Mapping[str, Any], *, binary: bool = False) -> str | bytes:
        """
        Unparse dict to XML string.

        If `binary` is `True`, then the result is returned as UTF-8 bytes.
        """
        if len(d) != 1:
            raise ValueError(f'Invalid root element count {len(d)}')

        root_k, root_v = next(iter(d.items()))
        elements = _unparse_element(root_k, root_v)

        # always return root element, even if it's empty
        if not elements:
            elements = (ET.Element(root_k),)

        result: bytes = ET.tostring(elements[0], encoding='UTF-8', xml_declaration=True)
        logging.debug('Unparsed %s XML string', sizestr(len(result)))
        return result if binary else result.decode()


_force_list = XMLToDict.force_list


def _parse_element(element) -> dict[str, Any] | str:
    parsed: list[tuple[str, Any]] = [('@' + _strip_namespace(k), v) for k, v in element.attrib.items()]
    parsed_children: dict[str, Any] = {}

    for child in element:
        if not isinstance(child.tag, str):
            # entities and other special nodes
            continue

        k = _strip_namespace(child.tag)
        v = _parse_element(child)

        # merge with existing value
        if k in parsed_children:
            parsed_v = parsed_children[k]
            if isinstance(parsed_v, list):
                parsed_v.append(v)
            else:
                # upgrade from single value to list
                parsed_children[k] = [parsed_v, v]

        # add new value
        elif k in _force_list:
            parsed_children[k] = [v]
        else:
            parsed_children[k] = v

    if parsed_children:
        parsed.extend(parsed_children.items())

    if text := (element.text.strip() if element.text else ''):
        if parsed:
            parsed.append(('#text', text))
        else:
            return text

    return dict(parsed)


def _strip_namespace(tag: str) -> str:
    return tag.rpartition('}')[-1]


def _unparse_element(key: str, value: Any) -> tuple[Any, ...]:
    if isinstance(value, Mapping):
        element = ET.Element(key)
        for k, v in value.items():
            if k == '#text':
                element.text = _to_string(v)
            elif k and k[0] == '@':
                if v is not None:
                    element.attrib[k[1:]] = _to_string(v)
            else:
                element.extend(_unparse_element(k, v))
        return (element,)

    if isinstance(value, Sequence) and not isinstance(value, str):
        return tuple(chain.from_iterable(_unparse_element(key, v) for v in value))

    element = ET.Element(key)
    if value is not None:
        element.text = _to_string(value)
    return (element,)


def _to_string(v: Any) -> str:
    if isinstance(v, str):
        return v
    if isinstance(v, datetime):
        if v.tzinfo is not None:
            v = v.astimezone(UTC).replace(tzinfo=None)
        return v.isoformat(timespec='seconds') + 'Z'
    if isinstance(v, bool):
        return 'true' if v else 'false'
    return str(v)
