"""Project metadata read from the working copy's Maven descriptor."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from openmrs_pr.orchestrator.errors import BadScmUrlError

logger = logging.getLogger(__name__)

POM_FILE = "pom.xml"

PROPERTY_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    """The bits of project configuration the pipeline relies on."""

    base_dir: Path
    scm_url: str | None = None

    def repository_slug(self) -> str:
        """Repository name: everything after the last "/" of the SCM URL.

        A trailing slash and a ".git" suffix are ignored.

        Raises:
            BadScmUrlError: If the URL is missing, still holds an unresolved
                `${...}` property, or yields an empty name.
        """

        url = (self.scm_url or "").strip().rstrip("/")
        if not url:
            raise BadScmUrlError("Project does not declare an SCM URL")
        if "${" in url:
            raise BadScmUrlError(f"SCM URL has an unresolved property: {self.scm_url!r}")
        slug = url[url.rfind("/") + 1 :]
        slug = slug.removesuffix(".git")
        if not slug or "/" not in url:
            raise BadScmUrlError(f"Cannot derive repository name from SCM URL {self.scm_url!r}")
        return slug

    @property
    def upstream_url(self) -> str | None:
        """Fetch URL for the `upstream` remote, when the SCM URL is a web URL."""

        url = (self.scm_url or "").strip().rstrip("/")
        if not url.startswith(("https://", "http://")) or "${" in url:
            return None
        return url if url.endswith(".git") else f"{url}.git"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _text(element: ET.Element) -> str | None:
    if element.text and element.text.strip():
        return element.text.strip()
    return None


def _pom_properties(root: ET.Element) -> dict[str, str]:
    """Values that `${...}` references in the pom itself may resolve to."""

    properties: dict[str, str] = {}
    for child in root:
        name = _local_name(child.tag)
        if name == "properties":
            for prop in child:
                value = _text(prop)
                if value is not None:
                    properties[_local_name(prop.tag)] = value
        elif name in ("artifactId", "groupId", "version", "name"):
            value = _text(child)
            if value is not None:
                properties[f"project.{name}"] = value
                properties[name] = value
    return properties


def _resolve_properties(value: str, properties: dict[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        return properties.get(match.group(1), match.group(0))

    return PROPERTY_PATTERN.sub(replace, value)


def read_scm_url(pom_path: Path) -> str | None:
    """Return <project><scm><url> from a pom, ignoring XML namespaces.

    References to the pom's own coordinates and <properties> are resolved;
    anything else (a parent's properties, for instance) is left as written.
    """

    root = ET.parse(pom_path).getroot()
    for child in root:
        if _local_name(child.tag) != "scm":
            continue
        for element in child:
            if _local_name(element.tag) == "url":
                value = _text(element)
                if value is not None:
                    return _resolve_properties(value, _pom_properties(root))
    return None


def load_project(base_dir: Path, *, scm_url: str | None = None) -> ProjectInfo:
    """Describe the project rooted at base_dir.

    An explicit scm_url wins over the one declared in pom.xml. A missing pom is
    not an error here; the pipeline reports the missing URL when it needs it.
    """

    base_dir = Path(base_dir).resolve()
    if scm_url:
        return ProjectInfo(base_dir=base_dir, scm_url=scm_url)

    pom_path = base_dir / POM_FILE
    if not pom_path.is_file():
        logger.info("No pom.xml found", extra={"path": str(base_dir)})
        return ProjectInfo(base_dir=base_dir)

    try:
        declared = read_scm_url(pom_path)
    except ET.ParseError as e:
        logger.warning("Unreadable pom.xml", extra={"path": str(pom_path), "error": str(e)})
        declared = None
    return ProjectInfo(base_dir=base_dir, scm_url=declared)
