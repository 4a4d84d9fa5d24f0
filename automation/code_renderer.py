"""
Renders a pytest + Selenium test module for one test scenario.

The renderer reuses what the pattern analysis found (page object class, its methods, base URL)
and writes an explicit placeholder marker for every pattern category it was told is missing,
so incomplete output can never be mistaken for a finished test.
"""
import re
from typing import Dict, List, Optional, Tuple

from automation.pattern_analyzer import PatternAnalysis
from models.generation_session import GeneratedCode

PLACEHOLDER_MARKER = "MISSING PATTERN"

_STEP_LINE = re.compile(r"^(?:step\s*)?\d+\s*[.):-]\s*(.+)$", re.IGNORECASE)
_EXPECTED_LINE = re.compile(r"^expected(?:\s+result)?\s*:\s*(.+)$", re.IGNORECASE)
_NAVIGATION_METHOD = re.compile(r"^(open|load|navigate|visit|go_?to)", re.IGNORECASE)
_VERIFY_METHOD = re.compile(r"^(is|has|verify|assert|should)", re.IGNORECASE)


def placeholder_line(category: str, description: str) -> str:
    return f"# {PLACEHOLDER_MARKER} [{category}]: {description}"


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", (text or "").lower()).strip("_")
    return slug[:60].rstrip("_") or "generated_scenario"


def parse_description(description: str) -> Tuple[str, List[str], List[str]]:
    """
    Splits a scenario description into its title (first line), numbered steps and
    ``Expected:`` lines.
    """
    lines = [line.strip() for line in (description or "").splitlines() if line.strip()]
    title = lines[0] if lines else "Generated scenario"
    steps, expectations = [], []
    for line in lines[1:]:
        step = _STEP_LINE.match(line)
        if step:
            steps.append(step.group(1))
            continue
        expected = _EXPECTED_LINE.match(line)
        if expected:
            expectations.append(expected.group(1))
    return title, steps, expectations


def _tokens(name: str) -> List[str]:
    # snake_case and camelCase both split into lowercase words
    return [t.lower() for t in re.split(r"_|(?<=[a-z0-9])(?=[A-Z])", name) if t]


def match_method(text: str, methods: List[str]) -> Optional[str]:
    """Picks the method sharing the most words with ``text``; None when nothing overlaps."""
    words = set(re.findall(r"[a-z0-9]+", text.lower()))
    best, best_score = None, 0
    for method in methods:
        score = sum(1 for token in _tokens(method) if token in words)
        if score > best_score:
            best, best_score = method, score
    return best


def render_test(description: str, analysis: PatternAnalysis,
                placeholders: Optional[Dict[str, str]] = None) -> GeneratedCode:
    """
    Renders the test module.

    Args:
        description (str): The scenario: a title line, numbered steps and ``Expected:`` lines.
        analysis (PatternAnalysis): The latest analysis of the session's artifacts.
        placeholders (Optional[Dict[str, str]]): Missing categories to render as placeholder markers.

    Returns:
        GeneratedCode: The file name, source code and the categories rendered as placeholders.
    """
    placeholders = dict(placeholders or {})
    title, steps, expectations = parse_description(description)
    slug = slugify(title)
    # Title ends up inside string literals of the generated module
    title = title.replace("\\", "/").replace('"', "'")

    has_page = "page_object" not in placeholders and bool(analysis.page_class)
    action_methods = [m for m in analysis.page_methods if not _VERIFY_METHOD.match(m)] if has_page else []
    verify_methods = [m for m in analysis.page_methods if _VERIFY_METHOD.match(m)] if has_page else []
    open_method = next((m for m in action_methods if _NAVIGATION_METHOD.match(m)), None)

    header = [f"# Generated automation for: {title}"]
    if placeholders:
        header.append(f"# INCOMPLETE: {len(placeholders)} missing pattern(s): {', '.join(placeholders)}")
    header += ["", "import pytest"]
    if has_page and analysis.page_module:
        header.append(f"from {analysis.page_module} import {analysis.page_class}")
    elif has_page:
        header.append(f"# {analysis.page_class} is not a Python module; port it or import its Python counterpart")
    needs_base_url = "navigation" in analysis.required and "navigation" not in placeholders and not open_method
    if needs_base_url and analysis.base_url:
        header += ["", f"BASE_URL = {analysis.base_url!r}"]

    body = [f'    """{title}"""']
    if placeholders:
        body.append(f'    pytest.fail("Incomplete automation, missing patterns: {", ".join(placeholders)}")')

    # Page object
    if "page_object" in placeholders:
        body.append("    " + placeholder_line("page_object", placeholders["page_object"]))
    elif has_page:
        body.append(f"    page = {analysis.page_class}(driver)")

    # Navigation
    if "navigation" in placeholders:
        body.append("    " + placeholder_line("navigation", placeholders["navigation"]))
    elif "navigation" in analysis.required:
        if open_method:
            body.append(f"    page.{open_method}()")
        elif analysis.base_url:
            body.append("    driver.get(BASE_URL)")
        else:
            body.append(f"    # Navigation: see {analysis.available.get('navigation', 'supplied artifacts')}")

    # Steps
    if "locators" in placeholders:
        body.append("    " + placeholder_line("locators", placeholders["locators"]))
    for index, step in enumerate(steps, start=1):
        body.append(f"    # Step {index}: {step}")
        method = match_method(step, action_methods)
        if method:
            body.append(f"    page.{method}()")

    # Assertions
    if "assertions" in placeholders:
        body.append("    " + placeholder_line("assertions", placeholders["assertions"]))
    for expected in expectations:
        body.append(f"    # Expected: {expected}")
        method = match_method(expected, verify_methods)
        if method:
            body.append(f"    assert page.{method}()")

    code = "\n".join(header + ["", "", f"def test_{slug}(driver):"] + body) + "\n"
    return GeneratedCode(file_name=f"test_{slug}.py", code=code, placeholders=list(placeholders))
