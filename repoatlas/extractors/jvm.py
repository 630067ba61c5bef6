"""JVM build manifests: Maven pom.xml and Gradle build scripts."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import List

from .base import ManifestError, ManifestParser, decode
from ..models import Dependency

_XML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_DEPENDENCIES_BLOCK = re.compile(r"<dependencies>(.*?)</dependencies>", re.DOTALL)
_GROUP_ID = re.compile(r"<groupId>\s*([^<]+?)\s*</groupId>")
_ARTIFACT_ID = re.compile(r"<artifactId>\s*([^<]+?)\s*</artifactId>")
_VERSION = re.compile(r"<version>\s*([^<]+?)\s*</version>")

_GRADLE_KEYWORDS = ("implementation", "compile")
_GRADLE_COORDINATE = re.compile(r"['\"]([^:'\"\s]+):([^:'\"\s]+):([^'\"\s]+)['\"]")


class MavenParser(ManifestParser):
    """Scans ``<dependencies>`` blocks and pairs coordinates by position.

    The Nth groupId is paired with the Nth artifactId and the Nth version.
    Declarations that omit a version (managed versions, exclusions) shift the
    pairing; this mirrors a plain textual scan and is a known limitation.
    """

    languages = ("java", "kotlin")
    patterns = ("pom.xml",)

    def parse(self, content: bytes) -> List[Dependency]:
        text = decode(content)
        try:
            ET.fromstring(text.encode("utf-8"))
        except ET.ParseError as exc:
            raise ManifestError(f"Invalid pom.xml: {exc}") from exc

        body = "\n".join(_DEPENDENCIES_BLOCK.findall(_XML_COMMENT.sub("", text)))
        groups = _GROUP_ID.findall(body)
        artifacts = _ARTIFACT_ID.findall(body)
        versions = _VERSION.findall(body)

        deps: List[Dependency] = []
        for index in range(min(len(groups), len(artifacts))):
            version = versions[index] if index < len(versions) else ""
            deps.append(Dependency(name=f"{groups[index]}:{artifacts[index]}", version=version))
        return deps


class GradleParser(ManifestParser):
    """Line scan for ``implementation``/``compile`` coordinates."""

    languages = ("java", "kotlin")
    patterns = ("build.gradle", "build.gradle.kts")

    def parse(self, content: bytes) -> List[Dependency]:
        deps: List[Dependency] = []
        for raw_line in decode(content).splitlines():
            line = raw_line.strip()
            if not line or line.startswith("//"):
                continue
            if not any(keyword in line for keyword in _GRADLE_KEYWORDS):
                continue
            match = _GRADLE_COORDINATE.search(line)
            if match:
                group, artifact, version = match.groups()
                deps.append(Dependency(name=f"{group}:{artifact}", version=version))
        return deps


__all__ = ["GradleParser", "MavenParser"]
