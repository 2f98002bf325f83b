# topmark:header:start
#
#   project      : DiagWatch
#   file         : test_normalizer.py
#   file_relpath : tests/problems/test_normalizer.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for `ProblemNormalizer`.

Covers the severity code table, placeholder values for missing fields, the
degraded problem produced for unusable payloads, and resolver failures.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

import pytest
from hypothesis import given
from hypothesis import strategies as st

from diagwatch.problems.model import Position, Problem, Range, RelatedInformation, Severity
from diagwatch.problems.normalizer import ProblemNormalizer, degraded_problem
from tests.conftest import parametrize
from tests.helpers import raw_diag

FILE = "/ws/app/a.ts"


def _resolver(file_path: str) -> str | None:
    return "app" if file_path.startswith("/ws/app/") else None


@parametrize(
    "code, expected",
    [
        (0, Severity.ERROR),
        (1, Severity.WARNING),
        (2, Severity.INFORMATION),
        (3, Severity.HINT),
        (4, Severity.ERROR),
        (-1, Severity.ERROR),
        (None, Severity.ERROR),
        ("Hint", Severity.HINT),
        ("garbage", Severity.ERROR),
        (1.0, Severity.ERROR),
    ],
)
def test_severity_mapping(code: object, expected: Severity) -> None:
    """Codes 0..3 map in order; anything else is an error."""
    problem = ProblemNormalizer(_resolver).normalize(raw_diag(severity=code), FILE)
    assert problem.severity is expected


def test_full_payload() -> None:
    raw = raw_diag(
        "Cannot find name 'foo'.",
        line=4,
        character=2,
        severity=0,
        source="ts",
        code={"value": 2304},
        relatedInformation=[
            {
                "location": {
                    "uri": "file:///ws/app/b.ts",
                    "range": {
                        "start": {"line": 1, "character": 0},
                        "end": {"line": 1, "character": 3},
                    },
                },
                "message": "foo is declared here",
            }
        ],
    )
    problem = ProblemNormalizer(_resolver).normalize(raw, FILE)
    assert problem == Problem(
        file_path=FILE,
        workspace_folder="app",
        range=Range(Position(4, 2), Position(4, 3)),
        severity=Severity.ERROR,
        message="Cannot find name 'foo'.",
        source="ts",
        code=2304,
        related_information=(
            RelatedInformation(
                uri="file:///ws/app/b.ts",
                range=Range(Position(1, 0), Position(1, 3)),
                message="foo is declared here",
            ),
        ),
    )


def test_missing_fields_get_placeholders() -> None:
    """An empty mapping still yields a valid problem with placeholder values."""
    problem = ProblemNormalizer().normalize({}, FILE)
    assert problem.message == "Unknown error"
    assert problem.source == "unknown"
    assert problem.workspace_folder == "unknown"
    assert problem.range == Range.zero()
    assert problem.severity is Severity.ERROR
    assert problem.code is None
    assert problem.related_information is None


def test_unparsable_payload_yields_degraded_problem() -> None:
    problem = ProblemNormalizer(_resolver).normalize("not a diagnostic", FILE)
    assert problem == degraded_problem(FILE)
    assert problem.message == "Conversion error occurred"
    assert problem.workspace_folder == "unknown"


def test_resolver_failure_resolves_to_unknown() -> None:
    """A raising resolver never propagates out of `normalize`."""

    def _broken(_: str) -> str | None:
        raise RuntimeError("workspace service gone")

    problem = ProblemNormalizer(_broken).normalize(raw_diag("m"), FILE)
    assert problem.workspace_folder == "unknown"
    assert problem.message == "m"


def test_resolver_empty_answer_resolves_to_unknown() -> None:
    normalizer = ProblemNormalizer(lambda _: "")
    assert normalizer.workspace_folder_for(FILE) == "unknown"
    assert normalizer.workspace_folder_for("/elsewhere/x.ts") == "unknown"


def test_construction_failure_yields_degraded_problem(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unexpected failures while building the value degrade instead of raising."""
    normalizer = ProblemNormalizer(_resolver)

    def _explode(_: str) -> str:
        raise ValueError("unexpected")

    # workspace_folder_for is guarded itself; force a failure past that guard
    monkeypatch.setattr(normalizer, "workspace_folder_for", _explode)
    assert normalizer.normalize(raw_diag(), FILE) == degraded_problem(FILE)


class _FailingMapping(Mapping[str, object]):
    """Adapter payload whose key lookups fail."""

    def __getitem__(self, key: str) -> object:
        raise RuntimeError("adapter lookup failed")

    def __iter__(self) -> Iterator[str]:
        return iter(("message",))

    def __len__(self) -> int:
        return 1


def test_failing_mapping_yields_degraded_problem() -> None:
    problem = ProblemNormalizer(_resolver).normalize(_FailingMapping(), FILE)
    assert problem == degraded_problem(FILE)


def test_normalize_all_preserves_order() -> None:
    raws = [raw_diag("first"), 17, raw_diag("third", line=2)]
    problems = ProblemNormalizer(_resolver).normalize_all(raws, FILE)
    assert [p.message for p in problems] == ["first", "Conversion error occurred", "third"]


def test_to_dict_round_trip() -> None:
    """`Problem.from_dict` inverts `Problem.to_dict`, optional keys included."""
    raw = raw_diag("x", severity=1, code="E1", relatedInformation=[])
    problem = ProblemNormalizer(_resolver).normalize(raw, FILE)
    data = problem.to_dict()
    assert data["severity"] == "Warning"
    assert data["relatedInformation"] == []
    assert "code" in data
    assert Problem.from_dict(data) == problem


def test_to_dict_omits_absent_optional_keys() -> None:
    data = ProblemNormalizer().normalize(raw_diag(), FILE).to_dict()
    assert "code" not in data
    assert "relatedInformation" not in data
    assert set(data) == {"filePath", "workspaceFolder", "range", "severity", "message", "source"}


@given(code=st.one_of(st.integers(), st.floats(), st.text(), st.none(), st.booleans()))
def test_severity_outside_code_table_is_error(code: object) -> None:
    expected = {0: Severity.ERROR, 1: Severity.WARNING, 2: Severity.INFORMATION, 3: Severity.HINT}
    if isinstance(code, int) and not isinstance(code, bool) and code in expected:
        assert Severity.from_code(code) is expected[code]
    else:
        assert Severity.from_code(code) is Severity.ERROR
    assert Severity.from_code(code).code in range(4)
