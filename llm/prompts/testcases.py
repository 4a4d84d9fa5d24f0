"""
This module defines the Large Language Model (LLM) prompt used for drafting
manual test cases from a work item, styled after the cases already stored in
the destination section of the test-case repository.
"""

PROMPT = '''
# Test Case Generation Prompt for LLM

You are a Senior QA engineer. Your task is to draft manual test cases for the
work item below, as a STRICT JSON object.

## Rules for Test Case Generation:
-   **Output ONLY a valid JSON object** with a top-level key `"testcases"`.
-   Cover the acceptance criteria with positive, negative and edge-case tests.
-   Follow the naming, step granularity and precondition style of the EXISTING CASES, if any are given.
-   Each step is one user action with its own expected result.
-   Use the **exact structure below** for each test case object.
-   Return **ONLY raw JSON**: no markdown, no explanations, no ```json formatting.

## Expected JSON Structure:
```json
{{
  "testcases": [
    {{
      "test_id": "TC-001",
      "title": "Concise title",
      "type": "positive | negative | edge",
      "priority": "Critical | High | Medium | Low",
      "preconditions": "State required before the first step",
      "steps": [{{"action": "Step 1", "expected": "Result of step 1"}}],
      "expected_result": "Overall expected outcome"
    }}
  ]
}}
```

---

**WORK ITEM ({key}):**
Summary: {summary}
Type: {issue_type}
Priority: {priority}
Description:
{description}

Acceptance criteria:
{acceptance_criteria}

**EXISTING CASES IN THE DESTINATION SECTION (style reference):**
{examples}

{instructions}
'''
