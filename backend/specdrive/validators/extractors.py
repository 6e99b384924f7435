"""Artifact parsers shared by the rule checks and the traceability engine.

Every extractor is total: malformed or empty input yields an empty list,
never an exception.
"""

import json
import re
from typing import Optional

from pydantic import BaseModel

from specdrive.validators.reference_data import (
    DEPENDENCY_CATEGORIES,
    REQUIREMENT_CATEGORIES,
    STACK_TECHNOLOGIES,
)

_REQUIREMENT_LINE = re.compile(r"^\s*(?:[-*+]\s+)?(REQ-[A-Z]+-\d+):\s*(.+)$")
_ENTITY_HEADING = re.compile(r"^#{1,3}\s+(\w+)\s+(?:Table|Entity|Schema)\b", re.IGNORECASE)
_CHECKBOX_TASK = re.compile(r"^\s*[-*]\s*\[(.*?)\]\s*(.*)$")
_NUMBERED_TASK = re.compile(r"^\s*(?:\*\s*)?\d+\.\s+(.*)$")
_TOKEN = re.compile(r"[a-z0-9]+")
_PINNED_DEPENDENCY = re.compile(r"(@?[a-z0-9][a-z0-9._/-]*)(?:@|==|>=|~=)(\^?~?[0-9][0-9a-z.*-]*)", re.IGNORECASE)

HTTP_METHODS = {"get", "post", "put", "patch", "delete", "head", "options"}


class Requirement(BaseModel):
    id: str
    title: str
    description: str
    category: str = "general"


class Endpoint(BaseModel):
    path: str
    method: str
    description: str = ""

    @property
    def label(self) -> str:
        return f"{self.method} {self.path}"


class DataEntity(BaseModel):
    name: str
    description: str = ""


class Task(BaseModel):
    id: str = ""
    title: str


class Dependency(BaseModel):
    name: str
    version: Optional[str] = None
    category: str = "general"


# ── Tokenizing ──


def tokenize(text: str, min_length: int = 0) -> list[str]:
    """Lowercase word tokens longer than `min_length`, in order, without duplicates."""
    seen: list[str] = []
    for token in _TOKEN.findall((text or "").lower()):
        if len(token) > min_length and token not in seen:
            seen.append(token)
    return seen


def overlaps(tokens: list[str], text: str) -> bool:
    """True if any token occurs in `text` (case-insensitive substring match)."""
    haystack = (text or "").lower()
    return any(token in haystack for token in tokens)


# ── Requirements ──


def categorize_requirement(title: str) -> str:
    title_lower = title.lower()
    for category, keywords in REQUIREMENT_CATEGORIES.items():
        if any(keyword in title_lower for keyword in keywords):
            return category
    return "general"


def extract_requirements(content: Optional[str]) -> list[Requirement]:
    """Scan `REQ-<CATEGORY>-<NNN>: <title>` lines."""
    requirements = []
    for line in (content or "").splitlines():
        match = _REQUIREMENT_LINE.match(line)
        if not match:
            continue
        req_id, title = match.group(1), match.group(2).strip()
        requirements.append(Requirement(
            id=req_id,
            title=title,
            description=line.strip(),
            category=categorize_requirement(title),
        ))
    return requirements


# ── API spec ──


def extract_api_endpoints(content: Optional[str]) -> list[Endpoint]:
    """Read (method, path, summary) triples from an OpenAPI-style `paths` object."""
    try:
        spec = json.loads(content or "")
    except (json.JSONDecodeError, TypeError):
        return []

    if not isinstance(spec, dict) or not isinstance(spec.get("paths"), dict):
        return []

    endpoints = []
    for path, methods in spec["paths"].items():
        if not isinstance(methods, dict):
            continue
        for method, details in methods.items():
            if method.lower() not in HTTP_METHODS or not isinstance(details, dict):
                continue
            endpoints.append(Endpoint(
                path=str(path),
                method=method.upper(),
                description=str(details.get("summary") or details.get("description") or ""),
            ))
    return endpoints


# ── Data model ──


def extract_data_entities(content: Optional[str]) -> list[DataEntity]:
    """Headings such as `## User Table`, `# Order Entity`, `### Audit Schema`."""
    entities = []
    for line in (content or "").splitlines():
        match = _ENTITY_HEADING.match(line)
        if match:
            entities.append(DataEntity(name=match.group(1), description=line.strip()))
    return entities


# ── Tasks ──


def extract_tasks(content: Optional[str]) -> list[Task]:
    """Checkbox (`- [ ] ...`, `- [T-1] ...`) and numbered (`1. ...`, `* 1. ...`) lines."""
    tasks = []
    for line in (content or "").splitlines():
        checkbox = _CHECKBOX_TASK.match(line)
        if checkbox:
            marker, title = checkbox.group(1).strip(), checkbox.group(2).strip()
            task_id = "" if marker.lower() in ("", "x") else marker
            if title:
                tasks.append(Task(id=task_id, title=title))
            continue

        numbered = _NUMBERED_TASK.match(line)
        if numbered and numbered.group(1).strip():
            tasks.append(Task(title=numbered.group(1).strip()))
    return tasks


# ── Stack and dependencies ──


def extract_stack(content: Optional[str]) -> list[str]:
    """Technologies from the catalog named in a stack proposal, in catalog order."""
    text = (content or "").lower()
    found = []
    for tech in STACK_TECHNOLOGIES:
        if re.search(r"(?<![a-z0-9])" + re.escape(tech.lower()) + r"(?![a-z0-9])", text):
            found.append(tech)
    return found


def stack_categories(content: Optional[str]) -> list[str]:
    categories = []
    for tech in extract_stack(content):
        category = STACK_TECHNOLOGIES[tech]
        if category not in categories:
            categories.append(category)
    return categories


def categorize_dependency(name: str) -> str:
    name_lower = name.lower()
    for category, keywords in DEPENDENCY_CATEGORIES.items():
        if any(keyword in name_lower for keyword in keywords):
            return category
    return "general"


def extract_dependencies(content: Optional[str]) -> list[Dependency]:
    """Dependencies from a package.json-style manifest or pinned `name@1.2` / `name==1.2` lines."""
    text = content or ""
    dependencies: dict[str, Dependency] = {}

    try:
        manifest = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        manifest = None

    if isinstance(manifest, dict):
        for section in ("dependencies", "devDependencies"):
            block = manifest.get(section)
            if isinstance(block, dict):
                for name, version in block.items():
                    dependencies[name] = Dependency(
                        name=name,
                        version=str(version),
                        category=categorize_dependency(name),
                    )

    for name, version in _PINNED_DEPENDENCY.findall(text):
        if name not in dependencies:
            dependencies[name] = Dependency(
                name=name,
                version=version,
                category=categorize_dependency(name),
            )

    return list(dependencies.values())
