"""Conformance reports in text and JUnit XML form.

Both formats take the ``results`` list of a ``conformance``
ServiceResult: dicts with ``name``, ``ok`` and ``error`` keys.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from xml.etree import ElementTree as ET

type CheckRecord = Mapping[str, Any]


def format_text(results: Iterable[CheckRecord]) -> str:
    """``PASS name`` / ``FAIL name :: error`` lines and a summary line."""
    records = list(results)
    lines: list[str] = []
    for record in records:
        if record.get("ok"):
            lines.append(f"PASS {record['name']}")
        else:
            lines.append(f"FAIL {record['name']} :: {record.get('error')}")
    passed = sum(1 for r in records if r.get("ok"))
    lines.append(f"\nSummary: {passed}/{len(records)} passing")
    return "\n".join(lines)


def format_junit(results: Iterable[CheckRecord], *, suite_name: str = "agentidl") -> str:
    """A single ``<testsuite>`` with one ``<testcase>`` per check.

    Attribute values are XML-escaped by the serializer.
    """
    records = list(results)
    failures = sum(1 for r in records if not r.get("ok"))
    suite = ET.Element(
        "testsuite",
        {"name": suite_name, "tests": str(len(records)), "failures": str(failures)},
    )
    for record in records:
        case = ET.SubElement(suite, "testcase", {"name": str(record["name"])})
        if not record.get("ok"):
            ET.SubElement(case, "failure", {"message": str(record.get("error") or "failure")})
    ET.indent(suite, space="  ")
    body = ET.tostring(suite, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'


REPORT_FORMATTERS = {
    "text": format_text,
    "junit": format_junit,
}
