"""
OVAL XML Loading

Parses an OVAL definitions document with lxml into the typed
``vulnfeed.schemas.oval.Root`` view. Namespaces differ between vendors
(and between OVAL schema versions), so elements are matched on their
local names only.
"""

import logging
from typing import IO, Iterator, List, Optional, Union

from lxml import etree

from vulnfeed.core.exceptions import ParseError
from vulnfeed.schemas.oval import (
    Advisory,
    AdvisoryCve,
    Affected,
    ConstantVariable,
    Criteria,
    Criterion,
    Definition,
    ObjectName,
    OvalObject,
    OvalState,
    OvalTest,
    Reference,
    Root,
    StateField,
)

logger = logging.getLogger(__name__)

_PARSER_OPTIONS = dict(
    resolve_entities=False,
    no_network=True,
    huge_tree=True,
    remove_comments=True,
)


def _local(el) -> str:
    return etree.QName(el).localname


def _children(el, name: Optional[str] = None) -> Iterator:
    for child in el:
        if not isinstance(child.tag, str):
            continue
        if name is None or _local(child) == name:
            yield child


def _child(el, name: str):
    return next(_children(el, name), None)


def _text(el) -> str:
    if el is None or el.text is None:
        return ""
    return el.text


def _bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("true", "1")


def _parse_criteria(el) -> Criteria:
    crit = Criteria(
        operator=el.get("operator", "AND"),
        negate=_bool(el.get("negate")),
        comment=el.get("comment", ""),
    )
    for child in _children(el):
        name = _local(child)
        if name == "criterion":
            crit.criterions.append(
                Criterion(
                    test_ref=child.get("test_ref", ""),
                    comment=child.get("comment", ""),
                    negate=_bool(child.get("negate")),
                )
            )
        elif name == "criteria":
            crit.criterias.append(_parse_criteria(child))
    return crit


def _parse_advisory(el) -> Advisory:
    adv = Advisory()
    for child in _children(el):
        name = _local(child)
        if name == "severity":
            adv.severity = _text(child).strip()
        elif name == "issued":
            adv.issued = child.get("date", "")
        elif name == "updated":
            adv.updated = child.get("date", "")
        elif name == "public_date":
            adv.public_date = _text(child).strip()
        elif name == "cve":
            adv.cves.append(
                AdvisoryCve(
                    cve_id=_text(child).strip(),
                    href=child.get("href", ""),
                    cvss3=child.get("cvss3", ""),
                    impact=child.get("impact", ""),
                    public=child.get("public", ""),
                )
            )
        elif name == "bugzilla":
            adv.bugs.append(child.get("href", "") or _text(child).strip())
        elif name == "bug":
            adv.bugs.append(_text(child).strip())
        elif name == "ref":
            adv.refs.append(_text(child).strip())
        elif name == "affected_cpe_list":
            adv.affected_cpes.extend(_text(cpe).strip() for cpe in _children(child, "cpe"))
    return adv


def _parse_definition(el) -> Definition:
    definition = Definition(id=el.get("id", ""), class_=el.get("class", ""))
    metadata = _child(el, "metadata")
    if metadata is not None:
        for child in _children(metadata):
            name = _local(child)
            if name == "title":
                definition.title = _text(child).strip()
            elif name == "description":
                definition.description = _text(child)
            elif name == "affected":
                definition.affecteds.append(
                    Affected(
                        family=child.get("family", ""),
                        platforms=[_text(p).strip() for p in _children(child, "platform")],
                        products=[_text(p).strip() for p in _children(child, "product")],
                    )
                )
            elif name == "reference":
                definition.references.append(
                    Reference(
                        source=child.get("source", ""),
                        ref_id=child.get("ref_id", ""),
                        ref_url=child.get("ref_url", ""),
                    )
                )
            elif name == "advisory":
                definition.advisory = _parse_advisory(child)
    criteria = _child(el, "criteria")
    if criteria is not None:
        definition.criteria = _parse_criteria(criteria)
    return definition


def _parse_test(el) -> OvalTest:
    return OvalTest(
        id=el.get("id", ""),
        kind=_local(el),
        comment=el.get("comment", ""),
        check=el.get("check", ""),
        object_refs=[o.get("object_ref", "") for o in _children(el, "object")],
        state_refs=[s.get("state_ref", "") for s in _children(el, "state")],
    )


def _parse_object(el) -> OvalObject:
    obj = OvalObject(id=el.get("id", ""), kind=_local(el))
    name = _child(el, "name")
    if name is not None:
        obj.name = ObjectName(body=_text(name).strip(), var_ref=name.get("var_ref", ""))
    return obj


def _state_field(el) -> Optional[StateField]:
    if el is None:
        return None
    return StateField(
        body=_text(el),
        operation=el.get("operation", ""),
        datatype=el.get("datatype", ""),
    )


def _parse_state(el) -> OvalState:
    return OvalState(
        id=el.get("id", ""),
        kind=_local(el),
        evr=_state_field(_child(el, "evr")),
        arch=_state_field(_child(el, "arch")),
        version=_state_field(_child(el, "version")),
        signature_keyid=_state_field(_child(el, "signature_keyid")),
    )


def _parse_variable(el) -> ConstantVariable:
    return ConstantVariable(
        id=el.get("id", ""),
        comment=el.get("comment", ""),
        datatype=el.get("datatype", ""),
        values=[_text(v).strip() for v in _children(el, "value")],
    )


def parse_document(source: Union[IO[bytes], bytes]) -> Root:
    """
    Decode an OVAL definitions document.

    Args:
        source: A binary file object (such as a spool) or raw bytes

    Returns:
        The typed document with lookup maps built

    Raises:
        ParseError: If the document is not well formed XML
    """
    parser = etree.XMLParser(**_PARSER_OPTIONS)
    try:
        if isinstance(source, bytes):
            tree = etree.fromstring(source, parser)
        else:
            tree = etree.parse(source, parser).getroot()
    except etree.XMLSyntaxError as e:
        raise ParseError(f"unable to decode OVAL document: {e}") from e

    if _local(tree) != "oval_definitions":
        raise ParseError(f"unexpected OVAL root element {_local(tree)!r}")

    definitions: List[Definition] = []
    tests: List[OvalTest] = []
    objects: List[OvalObject] = []
    states: List[OvalState] = []
    variables: List[ConstantVariable] = []

    for section in _children(tree):
        name = _local(section)
        if name == "definitions":
            definitions.extend(_parse_definition(d) for d in _children(section, "definition"))
        elif name == "tests":
            tests.extend(_parse_test(t) for t in _children(section))
        elif name == "objects":
            objects.extend(_parse_object(o) for o in _children(section))
        elif name == "states":
            states.extend(_parse_state(s) for s in _children(section))
        elif name == "variables":
            variables.extend(_parse_variable(v) for v in _children(section, "constant_variable"))

    root = Root(
        definitions=definitions,
        tests=tests,
        objects=objects,
        states=states,
        variables=variables,
    )
    logger.debug(
        f"OVAL document decoded: {len(definitions)} definitions, {len(tests)} tests, "
        f"{len(objects)} objects, {len(states)} states"
    )
    return root


def links(definition: Definition) -> str:
    """Collect the unique reference URLs of a definition, space separated."""
    seen = []
    candidates = [r.ref_url for r in definition.references]
    candidates.extend(definition.advisory.refs)
    candidates.extend(definition.advisory.bugs)
    candidates.extend(c.href for c in definition.advisory.cves)
    for url in candidates:
        if url and url not in seen:
            seen.append(url)
    return " ".join(seen)
