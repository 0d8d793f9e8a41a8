"""ErrorClassifier tests.

The benign signatures are operation-specific: a duplicate key is only
expected on insert and a column-changed error only on delete.
"""

import pytest

from ddlrace.classifier import (
    COLUMN_CHANGED,
    DUPLICATE_KEY,
    ErrorClassifier,
    Operation,
    Signature,
    Verdict,
)
from ddlrace.errors import StoreError

DUPLICATE = StoreError(1062, "Duplicate entry '17' for key 'rows.uniq_val0'")
COLUMN_CHANGE = StoreError(8028, "public column val0 has changed")


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


class TestDefaultTable:
    def test_duplicate_key_on_insert_is_benign(self, classifier) -> None:
        assert classifier.classify(DUPLICATE, Operation.INSERT) is Verdict.BENIGN

    def test_duplicate_key_on_delete_is_fatal(self, classifier) -> None:
        assert classifier.classify(DUPLICATE, Operation.DELETE) is Verdict.FATAL

    def test_column_changed_on_delete_is_benign(self, classifier) -> None:
        assert classifier.classify(COLUMN_CHANGE, Operation.DELETE) is Verdict.BENIGN

    def test_column_changed_on_insert_is_fatal(self, classifier) -> None:
        assert classifier.classify(COLUMN_CHANGE, Operation.INSERT) is Verdict.FATAL

    def test_unknown_error_is_fatal_everywhere(self, classifier) -> None:
        error = StoreError(1105, "Information schema is changed during the execution")
        for operation in Operation:
            assert classifier.classify(error, operation) is Verdict.FATAL

    def test_match_names_the_signature(self, classifier) -> None:
        assert classifier.match(DUPLICATE, Operation.INSERT) is DUPLICATE_KEY
        assert classifier.match(COLUMN_CHANGE, Operation.DELETE) is COLUMN_CHANGED
        assert classifier.match(COLUMN_CHANGE, Operation.INSERT) is None


class TestMessageMatching:
    def test_patterns_used_when_error_has_no_code(self, classifier) -> None:
        error = StoreError(None, "Error: PUBLIC COLUMN val0 HAS CHANGED")
        assert classifier.classify(error, Operation.DELETE) is Verdict.BENIGN

    def test_every_pattern_must_match(self, classifier) -> None:
        error = StoreError(None, "public column val0 is missing")
        assert classifier.classify(error, Operation.DELETE) is Verdict.FATAL

    def test_code_decides_when_present(self, classifier) -> None:
        error = StoreError(1105, "Duplicate entry '3' for key 'PRIMARY'")
        assert classifier.classify(error, Operation.INSERT) is Verdict.FATAL


class TestCustomTable:
    def test_store_specific_table_replaces_defaults(self) -> None:
        serialization = Signature(
            name="serialization-failure",
            operation=Operation.DELETE,
            code=40001,
        )
        classifier = ErrorClassifier([serialization])
        assert classifier.classify(StoreError(40001, "could not serialize"), Operation.DELETE) is Verdict.BENIGN
        assert classifier.classify(COLUMN_CHANGE, Operation.DELETE) is Verdict.FATAL

    def test_empty_table_makes_everything_fatal(self) -> None:
        classifier = ErrorClassifier([])
        assert classifier.classify(DUPLICATE, Operation.INSERT) is Verdict.FATAL

    def test_signature_without_code_or_patterns_never_matches(self) -> None:
        classifier = ErrorClassifier([Signature(name="empty", operation=Operation.INSERT)])
        assert classifier.classify(StoreError(None, "anything"), Operation.INSERT) is Verdict.FATAL
