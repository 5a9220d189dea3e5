"""Inspect a standalone HTML artifact for leftover external dependencies."""

from __future__ import annotations

import argparse
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

try:
    from bs4 import BeautifulSoup  # type: ignore[import-not-found]
except ImportError as exc:
    raise SystemExit(
        "Missing dependency 'beautifulsoup4'. Install with pip install"
        " beautifulsoup4 lxml"
    ) from exc

from bundler.options import DEFAULT_MOUNT_ID, DEFAULT_OUTPUT_FILE

FAILURE_SIGNATURES: tuple[tuple[str, str], ...] = (
    ("ERR_FILE_NOT_FOUND", "Contains file not found error patterns"),
    ("ERR_FAILED", "Contains failed request error patterns"),
    ("ChunkLoadError", "Contains chunk loading error patterns"),
    ("CORS policy", "Contains CORS policy error patterns"),
)
BLOCKING_LINK_RELS = frozenset(
    {"stylesheet", "preload", "modulepreload", "prefetch"}
)
DATA_URI_RE = re.compile(r"data:[^\"'\s)]+")
RULE = "=" * 50


class Severity(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Finding:
    severity: Severity
    message: str


@dataclass(slots=True)
class ValidationReport:
    """Ordered findings for one artifact; passes when there are no errors."""

    path: Path
    size: int = 0
    findings: List[Finding] = field(default_factory=list)

    def add(self, severity: Severity, message: str) -> None:
        self.findings.append(Finding(severity, message))

    def of(self, severity: Severity) -> List[Finding]:
        return [item for item in self.findings if item.severity is severity]

    @property
    def errors(self) -> List[Finding]:
        return self.of(Severity.ERROR)

    @property
    def warnings(self) -> List[Finding]:
        return self.of(Severity.WARNING)

    @property
    def passed(self) -> bool:
        return not self.errors

    def render(self) -> str:
        lines = ["", "📊 VALIDATION REPORT", RULE]
        if self.size:
            lines.append(f"File size: {self.size / 1024 / 1024:.2f}MB")
        sections = (
            (Severity.SUCCESS, "✅ SUCCESS CHECKS:", "✓"),
            (Severity.WARNING, "⚠️  WARNINGS:", "⚠"),
            (Severity.ERROR, "❌ ERRORS:", "✗"),
        )
        for severity, heading, marker in sections:
            items = self.of(severity)
            if not items:
                continue
            lines.append("")
            lines.append(heading)
            lines.extend(f"  {marker} {item.message}" for item in items)
        lines.append("")
        lines.append(RULE)
        if self.passed:
            lines.append(
                "🎉 VALIDATION PASSED - File appears to be properly"
                " standalone!"
            )
        else:
            lines.append(
                "❌ VALIDATION FAILED - Issues found that need to be"
                " addressed."
            )
        return "\n".join(lines)


def _is_external(url: str) -> bool:
    return not url.strip().lower().startswith("data:")


class StandaloneValidator:
    """Read-only checks over a finished artifact."""

    def __init__(self, *, mount_id: str = DEFAULT_MOUNT_ID) -> None:
        self.mount_id = mount_id

    def validate_file(self, path: Path | str) -> ValidationReport:
        path = Path(path)
        report = ValidationReport(path=path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            report.add(Severity.ERROR, f"Failed to read file: {exc}")
            return report
        self.check_content(content, report)
        return report

    def check_content(self, content: str, report: ValidationReport) -> None:
        if not content:
            report.add(Severity.ERROR, "File is empty")
            return
        report.size = len(content.encode("utf-8"))
        report.add(Severity.SUCCESS, "File is readable and not empty")

        self._check_structure(content, report)
        soup = BeautifulSoup(content, "lxml")
        self._check_external_references(soup, report)
        self._check_inlined_content(content, soup, report)
        self._check_failure_signatures(content, report)

    def _check_structure(self, content: str, report: ValidationReport) -> None:
        markers = (
            (
                r"^\s*<!doctype html",
                "Valid DOCTYPE found",
                "Missing DOCTYPE declaration",
            ),
            (r"<html[\s>]", "HTML tag found", "Missing HTML tag"),
            (r"<head[\s>]", "Head section found", "Missing head section"),
            (r"<body[\s>]", "Body section found", "Missing body section"),
        )
        for pattern, found, missing in markers:
            if re.search(pattern, content, re.IGNORECASE):
                report.add(Severity.SUCCESS, found)
            else:
                report.add(Severity.ERROR, missing)

    def _check_external_references(
        self, soup: BeautifulSoup, report: ValidationReport
    ) -> None:
        scripts = [
            tag
            for tag in soup.find_all("script", src=True)
            if _is_external(str(tag["src"]))
        ]
        if scripts:
            report.add(
                Severity.ERROR,
                f"Found {len(scripts)} external script tags",
            )
            for tag in scripts:
                report.add(Severity.ERROR, f"  External script: {tag}")
        else:
            report.add(
                Severity.SUCCESS, "No external script dependencies found"
            )

        blocking: list[str] = []
        other: list[str] = []
        for tag in soup.find_all("link", href=True):
            if not _is_external(str(tag["href"])):
                continue
            rels = {str(rel).lower() for rel in tag.get("rel") or []}
            if rels & BLOCKING_LINK_RELS:
                blocking.append(str(tag))
            else:
                other.append(str(tag))
        if blocking:
            report.add(
                Severity.ERROR,
                f"Found {len(blocking)} external style links",
            )
            for tag in blocking:
                report.add(Severity.ERROR, f"  External style: {tag}")
        else:
            report.add(
                Severity.SUCCESS, "No external style dependencies found"
            )
        for tag in other:
            report.add(Severity.WARNING, f"External link: {tag}")

    def _check_inlined_content(
        self, content: str, soup: BeautifulSoup, report: ValidationReport
    ) -> None:
        if f'id="{self.mount_id}"' in content or (
            f"id='{self.mount_id}'" in content
        ):
            report.add(Severity.SUCCESS, "Framework mount element detected")
        else:
            report.add(Severity.WARNING, "No framework mount element detected")

        data_urls = DATA_URI_RE.findall(content)
        if data_urls:
            report.add(
                Severity.SUCCESS,
                f"Found {len(data_urls)} inlined assets (data URLs)",
            )
        else:
            report.add(Severity.WARNING, "No inlined assets found")

        for name in ("script", "style"):
            filled = [
                tag
                for tag in soup.find_all(name)
                if not tag.get("src") and tag.get_text().strip()
            ]
            if filled:
                report.add(
                    Severity.SUCCESS,
                    f"Found {len(filled)} {name} tags with content",
                )
            else:
                report.add(
                    Severity.WARNING, f"No {name} tags with content found"
                )

    def _check_failure_signatures(
        self, content: str, report: ValidationReport
    ) -> None:
        for signature, message in FAILURE_SIGNATURES:
            if signature in content:
                report.add(Severity.ERROR, message)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Return CLI arguments for the standalone validator."""

    parser = argparse.ArgumentParser(
        description="Check a standalone HTML file for external dependencies.",
    )
    parser.add_argument(
        "artifact",
        nargs="?",
        default=str(DEFAULT_OUTPUT_FILE),
        help=f"Artifact to validate (default: {DEFAULT_OUTPUT_FILE}).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the ``validate_standalone`` CLI."""

    args = parse_args(argv)
    print("🔍 Standalone HTML Validator")
    print(RULE)
    print(f"ℹ️ Validating standalone HTML file: {args.artifact}")

    report = StandaloneValidator().validate_file(args.artifact)
    print(report.render())
    return 0 if report.passed else 1


__all__ = [
    "FAILURE_SIGNATURES",
    "Finding",
    "Severity",
    "StandaloneValidator",
    "ValidationReport",
]


if __name__ == "__main__":
    raise SystemExit(main())
