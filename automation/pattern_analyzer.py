"""
Heuristic detection of the code patterns an automated test needs.

Given a test description and the source artifacts offered for reuse, the analyzer works out
which pattern categories the test requires and which of them the artifacts already provide.
Detection is regex based: it recognises page-object classes, element locators, navigation
calls and assertion helpers in Python or Java Selenium/Playwright sources and properties files.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from models.generation_session import Artifact

PATTERN_CATEGORIES = {
    "page_object": "A page object class exposing the actions of the screen under test",
    "locators": "Element locators for the elements the test interacts with",
    "navigation": "A way to open the page under test (URL or navigation helper)",
    "assertions": "Verification helpers or assertion examples for the expected results",
}

ALWAYS_REQUIRED = ("page_object", "locators")

_NAVIGATION_WORDS = re.compile(r"\b(navigate|open|opens|visit|go to|goto|launch|load)\b", re.IGNORECASE)
_ASSERTION_WORDS = re.compile(
    r"\b(verify|verifies|should|expect|expected|assert|check|displayed|visible|see|shown)\b",
    re.IGNORECASE,
)

DETECTORS = {
    "page_object": re.compile(r"class\s+(\w+(?:Page|Screen))\b"),
    "locators": re.compile(
        r"\bBy\.[A-Za-z_]+|find_elements?\(|\.locator\(|@FindBy|^[\w.-]+\s*=\s*(?:(?:id|xpath|css|name)\s*[:=]|//)",
        re.MULTILINE,
    ),
    "navigation": re.compile(r"driver\.get\(|\.goto\(|\bnavigate\w*\(|\bdef open\w*\(|\bopen\w*\(\)"),
    "assertions": re.compile(r"^\s*assert\b|\bAssert\.\w+|\bassertThat\(|\bexpect\(|\bdef (?:is|has|verify)_\w+\(",
                             re.MULTILINE),
}

_PY_METHOD = re.compile(r"def\s+([a-z]\w*)\s*\(\s*self")
_JAVA_METHOD = re.compile(r"public\s+[\w<>\[\]]+\s+([a-z]\w*)\s*\(")
_URL = re.compile(r"https?://[^\s\"')]+")


@dataclass
class PatternAnalysis:
    """Result of one analysis pass."""
    required: List[str]
    available: Dict[str, str] = field(default_factory=dict)
    missing: Dict[str, str] = field(default_factory=dict)
    page_class: Optional[str] = None
    page_module: Optional[str] = None
    page_methods: List[str] = field(default_factory=list)
    base_url: Optional[str] = None


def required_categories(description: str) -> List[str]:
    required = list(ALWAYS_REQUIRED)
    if _NAVIGATION_WORDS.search(description or ""):
        required.append("navigation")
    if _ASSERTION_WORDS.search(description or ""):
        required.append("assertions")
    return required


def module_name(artifact_name: str) -> Optional[str]:
    """
    Importable Python module name for an artifact, e.g. ``pages/login-page.py`` -> ``login_page``.
    None for sources that are not Python files.
    """
    stem = artifact_name.replace("\\", "/").rsplit("/", 1)[-1]
    base, _, extension = stem.rpartition(".")
    if extension != "py" or not base:
        return None
    name = re.sub(r"\W", "_", base)
    return f"_{name}" if name[0].isdigit() else name


class PatternAnalyzer:
    """Reports which pattern categories are available and which are missing."""

    def analyze(self, description: str, artifacts: Iterable[Artifact]) -> PatternAnalysis:
        artifacts = list(artifacts)
        analysis = PatternAnalysis(required=required_categories(description))

        for artifact in artifacts:
            # A caller explicitly supplying a category counts as evidence for it
            if artifact.category in PATTERN_CATEGORIES and artifact.category not in analysis.available:
                analysis.available[artifact.category] = f"{artifact.name} (supplied)"

            for category, detector in DETECTORS.items():
                match = detector.search(artifact.content or "")
                if match and category not in analysis.available:
                    analysis.available[category] = f"{artifact.name}: {match.group(0).strip()}"

            page_match = DETECTORS["page_object"].search(artifact.content or "")
            if page_match and analysis.page_class is None:
                analysis.page_class = page_match.group(1)
                analysis.page_module = module_name(artifact.name)
                content = artifact.content or ""
                analysis.page_methods = _PY_METHOD.findall(content) or _JAVA_METHOD.findall(content)

            url_match = _URL.search(artifact.content or "")
            if url_match and analysis.base_url is None:
                analysis.base_url = url_match.group(0)

        for category in analysis.required:
            if category not in analysis.available:
                analysis.missing[category] = PATTERN_CATEGORIES[category]
        return analysis
