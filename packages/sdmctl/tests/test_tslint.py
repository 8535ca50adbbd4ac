from __future__ import annotations

import json
import os

import pytest

from sdmctl.core.process import CommandResult
from sdmctl.inspection import tslint
from sdmctl.inspection.tslint import map_tslint_results_to_review_comments, run_tslint_on_project, truncate_comments

BASE = os.path.join(os.sep, "tmp", "project")


def _result(name: str, severity: str = "ERROR", line: int = 3, character: int = 4, position: int = 120) -> dict[str, object]:
    return {
        "name": os.path.join(BASE, name),
        "failure": f"problem in {name}",
        "ruleSeverity": severity,
        "ruleName": "no-console",
        "startPosition": {"position": position, "character": character, "line": line},
        "endPosition": {"position": position + 5, "character": character + 5, "line": line},
    }


def test_results_map_to_one_based_locations_relative_to_base() -> None:
    comments = map_tslint_results_to_review_comments(json.dumps([_result("src/index.ts")]), BASE)
    assert len(comments) == 1
    comment = comments[0]
    assert comment.severity == "error"
    assert comment.category == "lint"
    assert comment.subcategory == "tslint"
    assert comment.detail == "problem in src/index.ts"
    loc = comment.source_location
    assert loc is not None
    assert loc.path == "src/index.ts"
    assert (loc.line_from1, loc.column_from1, loc.offset) == (4, 5, 120)


def test_non_error_severity_maps_to_warn() -> None:
    comments = map_tslint_results_to_review_comments(json.dumps([_result("a.ts", severity="WARNING")]), BASE)
    assert comments[0].severity == "warn"


def test_unparseable_output_yields_no_comments(capsys: pytest.CaptureFixture[str]) -> None:
    assert map_tslint_results_to_review_comments("not json", BASE) == []
    assert "Failed to parse TSLint output" in capsys.readouterr().err


@pytest.mark.parametrize(
    "output",
    [
        "null",
        '"No files"',
        "{}",
        '[{"failure": "x"}]',
        '[{"failure": "x", "name": "a.ts", "startPosition": {"line": "?"}}]',
    ],
)
def test_unexpected_output_shapes_yield_no_comments(output: str, capsys: pytest.CaptureFixture[str]) -> None:
    assert map_tslint_results_to_review_comments(output, BASE) == []
    assert "action=parse" in capsys.readouterr().err


def test_inspection_survives_unexpected_output(make_project, monkeypatch) -> None:
    monkeypatch.setattr(tslint, "run_command", lambda *a, **kw: CommandResult(0, "null", "", 1))
    review = run_tslint_on_project(make_project({"tslint.json": "{}"}))
    assert review.comments == []


def test_truncation_keeps_twenty_and_reports_omitted() -> None:
    results = [_result(f"f{i}.ts") for i in range(23)]
    comments = truncate_comments(map_tslint_results_to_review_comments(json.dumps(results), BASE))
    assert len(comments) == 21
    assert comments[-1].detail == "3 additional errors and/or warnings were omitted from this report"
    assert comments[-1].source_location is None


def test_short_lists_are_not_truncated() -> None:
    comments = map_tslint_results_to_review_comments(json.dumps([_result("a.ts")] * 20), BASE)
    assert truncate_comments(comments) == comments


def test_project_without_tslint_json_is_not_inspected(make_project) -> None:
    review = run_tslint_on_project(make_project({"package.json": "{}"}))
    assert review.comments == []
    assert review.repo == "demo"
