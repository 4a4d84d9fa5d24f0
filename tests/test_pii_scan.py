"""
This module contains unit tests for the PII (Personally Identifiable Information) masking
applied to work-item text in `utils.pii`.
"""
import pytest

spacy = pytest.importorskip("spacy")
if not spacy.util.is_package("en_core_web_lg"):
    pytest.skip("Presidio needs the en_core_web_lg spaCy model", allow_module_level=True)

from utils.pii import mask_pii


def test_mask_pii_with_email():
    """
    Tests the PII masking of an email address.
    """
    assert mask_pii("My email is test@example.com") == "My email is [EMAIL_MASKED]"


def test_mask_pii_with_password():
    """
    Tests the PII masking of a credential assignment.
    """
    assert mask_pii("Login with password: secret123") == "Login with [PASSWORD_MASKED]"


def test_mask_pii_with_no_pii():
    """
    Tests that text without PII is returned unchanged.
    """
    assert mask_pii("This is a normal sentence.") == "This is a normal sentence."


def test_mask_pii_with_empty_text():
    assert mask_pii("") == ""
