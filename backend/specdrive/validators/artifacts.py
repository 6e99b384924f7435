"""Artifact set — the name → content map that rules and traceability read from."""

from typing import Iterable, Mapping, Optional

from specdrive.models.domain import Artifact
from specdrive.validators.reference_data import (
    API_SPEC_ARTIFACT,
    ARTIFACT_ALIASES,
    DATA_MODEL_ARTIFACT,
    DEPENDENCIES_ARTIFACT,
    REQUIREMENTS_ARTIFACT,
    STACK_PROPOSAL_ARTIFACT,
    TASKS_ARTIFACT,
)

_ALIAS_LOOKUP: dict[str, str] = {}
for _canonical, _aliases in ARTIFACT_ALIASES.items():
    _ALIAS_LOOKUP[_canonical.lower()] = _canonical
    for _alias in _aliases:
        _ALIAS_LOOKUP[_alias.lower()] = _canonical


def canonical_artifact_name(name: str) -> str:
    """Map known aliases ("Data Model", "prd.md", ...) to their canonical file name."""
    return _ALIAS_LOOKUP.get(name.strip().lower(), name)


def _as_text(content) -> str:
    """Artifact content as text: bytes are decoded leniently, other values stringified."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, (bytes, bytearray)):
        return bytes(content).decode("utf-8", errors="replace")
    return str(content)


class ArtifactSet:
    """Read-only view over artifact contents keyed by canonical name.

    Missing artifacts read as empty strings; `None` content is treated the same.
    """

    def __init__(self, contents: Optional[Mapping[str, Optional[str]]] = None):
        self._contents: dict[str, str] = {}
        for name, content in (contents or {}).items():
            self._contents[canonical_artifact_name(str(name))] = _as_text(content)

    @classmethod
    def from_artifacts(cls, artifacts: Iterable[Artifact]) -> "ArtifactSet":
        """Build from stored artifacts; later rows win, so the newest version is used."""
        ordered = sorted(artifacts, key=lambda a: a.created_at)
        return cls({a.artifact_name: a.content for a in ordered})

    def __len__(self) -> int:
        return len(self._contents)

    def __contains__(self, name: str) -> bool:
        return canonical_artifact_name(name) in self._contents

    @property
    def names(self) -> list[str]:
        return list(self._contents)

    def items(self):
        return self._contents.items()

    def get(self, name: str) -> str:
        return self._contents.get(canonical_artifact_name(name), "")

    def present(self, names: Iterable[str]) -> list[str]:
        """Subset of `names` that exist with non-empty content."""
        return [n for n in names if self.get(n)]

    @property
    def requirements(self) -> str:
        return self.get(REQUIREMENTS_ARTIFACT)

    @property
    def api_spec(self) -> str:
        return self.get(API_SPEC_ARTIFACT)

    @property
    def data_model(self) -> str:
        return self.get(DATA_MODEL_ARTIFACT)

    @property
    def tasks(self) -> str:
        return self.get(TASKS_ARTIFACT)

    @property
    def stack_proposal(self) -> str:
        return self.get(STACK_PROPOSAL_ARTIFACT)

    @property
    def dependencies(self) -> str:
        return self.get(DEPENDENCIES_ARTIFACT)


def latest_by_name(artifacts: Iterable[Artifact]) -> list[Artifact]:
    """Newest version of each artifact name, in order of first appearance."""
    latest: dict[str, Artifact] = {}
    for artifact in sorted(artifacts, key=lambda a: a.created_at):
        latest[artifact.artifact_name] = artifact
    return list(latest.values())
