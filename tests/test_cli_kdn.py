from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from cli.kdn.app import QueryCLIOptions, app
from cli.kdn.benchmark import benchmark_knn_latency, count_bruteforce_mismatches
from kdneighbors.__main__ import QUICKSTART, main as quickstart_main

_SMALL = ["--dimension", "2", "--tree-points", "256", "--queries", "16", "--k", "4"]


def test_cli_reports_summary_and_verifies() -> None:
    result = CliRunner().invoke(app, [*_SMALL, "--max-leaf-size", "8", "--seed", "3"])

    assert result.exit_code == 0, result.output
    assert "kdtree | build=" in result.output
    assert "queries=16 k=4" in result.output
    assert "verify | mismatches=0/16" in result.output


def test_cli_skips_verification_for_other_metrics() -> None:
    result = CliRunner().invoke(app, [*_SMALL, "--metric", "manhattan"])

    assert result.exit_code == 0, result.output
    assert "verify | skipped" in result.output


def test_cli_no_verify_prints_only_summary() -> None:
    result = CliRunner().invoke(app, [*_SMALL, "--no-verify"])

    assert result.exit_code == 0, result.output
    assert "verify |" not in result.output


def test_cli_rejects_unknown_metric() -> None:
    result = CliRunner().invoke(app, [*_SMALL, "--metric", "cosine"])

    assert result.exit_code != 0


def test_options_from_namespace_ignores_unknown_fields() -> None:
    options = QueryCLIOptions.from_namespace(SimpleNamespace(k=5, metric="chebyshev", extra=1))

    assert options.k == 5
    assert options.metric == "chebyshev"
    assert options.tree_points == QueryCLIOptions().tree_points


def test_mismatch_counter_detects_wrong_results() -> None:
    tree, points, queries, results, result = benchmark_knn_latency(
        dimension=2,
        tree_points=128,
        query_count=8,
        k=3,
        max_leaf_size=6,
        metric="euclidean",
        seed=11,
    )

    assert result.queries == 8
    assert tree.num_points == 128
    assert count_bruteforce_mismatches(points, queries, results, 3) == 0

    results[0].distances[...] += 1.0
    assert count_bruteforce_mismatches(points, queries, results, 3) == 1


def test_quickstart_prints_usage(capsys: pytest.CaptureFixture[str]) -> None:
    quickstart_main()

    captured = capsys.readouterr()
    assert captured.out.strip() == QUICKSTART.strip()
    assert "KDNeighborsRegressor" in captured.out


def test_benchmark_app_is_not_installed_as_a_console_script() -> None:
    # The app imports tests.utils.datasets, which only exists in a checkout.
    pyproject = (Path(__file__).resolve().parents[1] / "pyproject.toml").read_text()

    assert "[project.scripts]" not in pyproject
    assert '"cli*"' not in pyproject
