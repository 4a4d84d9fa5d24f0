"""
This module implements PII (Personally Identifiable Information) masking for work-item text.
It utilizes the Presidio library to detect sensitive information like credentials and email
addresses in a ticket before it is sent to the generative provider, and replaces them with
masked placeholders to protect privacy.
"""
from functools import lru_cache
from typing import Any, List

from presidio_analyzer import AnalyzerEngine, Pattern, PatternRecognizer
from presidio_analyzer.predefined_recognizers import EmailRecognizer
from presidio_anonymizer import AnonymizerEngine
from presidio_anonymizer.entities import OperatorConfig

# Keywords like 'password', 'secret', 'token', followed by a colon or equals sign,
# and then non-whitespace characters.
PASSWORD_PATTERN = (
    r"(?i)"
    r"(password|pass|pwd|pswd|passwd|secret|token|api[_-]?key|apikey|auth|authorization)"
    r"\s*[:=]\s*"
    r"[^\s,;]+"
)

# Context words that might appear near a password to improve detection accuracy.
CONTEXT_WORDS = [
    "password", "pass", "pwd", "pswd", "passwd",
    "secret", "token", "api_key", "apikey",
    "auth", "authorization"
]

OPERATORS = {
    "PASSWORD": OperatorConfig(operator_name="replace", params={"new_value": "[PASSWORD_MASKED]"}),
    "EMAIL_ADDRESS": OperatorConfig(operator_name="replace", params={"new_value": "[EMAIL_MASKED]"}),
}


def _dedupe_results(results: List[Any]) -> List[Any]:
    """
    Removes duplicate PII detection results based on their start, end, and entity type.
    Presidio's analyzer might return overlapping or identical results for the same entity.
    """
    seen = set()
    unique = []
    for r in results:
        key = (r.start, r.end, r.entity_type)
        if key not in seen:
            seen.add(key)
            unique.append(r)
    return unique


@lru_cache(maxsize=1)
def _engines() -> tuple:
    """Builds the analyzer (with the custom PASSWORD recognizer) and anonymizer once per process."""
    password_recognizer = PatternRecognizer(
        supported_entity="PASSWORD",
        patterns=[Pattern(name="credential_pattern", regex=PASSWORD_PATTERN, score=0.95)],
        context=CONTEXT_WORDS,
    )
    analyzer = AnalyzerEngine()
    analyzer.registry.add_recognizer(password_recognizer)
    analyzer.registry.add_recognizer(EmailRecognizer())
    return analyzer, AnonymizerEngine()


def mask_pii(text: str) -> str:
    """
    Masks passwords/credentials and email addresses in the given text.

    Args:
        text (str): Raw work-item text.

    Returns:
        str: The text with detected entities replaced by ``[PASSWORD_MASKED]`` / ``[EMAIL_MASKED]``,
             or the original text when nothing was found.
    """
    if not text:
        return text
    analyzer, anonymizer = _engines()

    all_results = []
    for entity in ("PASSWORD", "EMAIL_ADDRESS"):
        all_results.extend(analyzer.analyze(text=text, language="en", entities=[entity], score_threshold=0.5))

    analyzer_results = _dedupe_results(all_results)
    if not analyzer_results:
        return text
    return anonymizer.anonymize(text=text, analyzer_results=analyzer_results, operators=OPERATORS).text
