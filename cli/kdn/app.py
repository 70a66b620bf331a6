from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

import typer
from typing_extensions import Annotated

from kdneighbors import config as kd_config
from kdneighbors.logging import get_logger

from .benchmark import benchmark_knn_latency, count_bruteforce_mismatches


@dataclass
class QueryCLIOptions:
    dimension: int = 3
    tree_points: int = 8_192
    queries: int = 1_024
    k: int = 8
    max_leaf_size: int = 20
    metric: str = "euclidean"
    seed: int = 0
    verify: bool = True
    log_level: str | None = None

    @classmethod
    def from_namespace(cls, namespace: Any) -> "QueryCLIOptions":
        values = {}
        for field in cls.__dataclass_fields__:
            if hasattr(namespace, field):
                values[field] = getattr(namespace, field)
        return cls(**values)


app = typer.Typer(
    add_completion=False,
    pretty_exceptions_enable=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Benchmark K-d tree nearest-neighbour queries.",
)

_SHAPE_PANEL = "Benchmark shape"
_RUNTIME_PANEL = "Runtime controls"


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    dimension: Annotated[
        int,
        typer.Option(
            "--dimension",
            min=1,
            help="Dimensionality of tree/query points.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 3,
    tree_points: Annotated[
        int,
        typer.Option(
            "--tree-points",
            min=1,
            help="Number of training points in the tree.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 8_192,
    queries: Annotated[
        int,
        typer.Option(
            "--queries",
            min=1,
            help="Number of query points per run.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 1_024,
    k: Annotated[
        int,
        typer.Option(
            "--k",
            min=1,
            help="Number of neighbours requested per query.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 8,
    max_leaf_size: Annotated[
        int,
        typer.Option(
            "--max-leaf-size",
            min=1,
            help="Leaf bucket capacity.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 20,
    seed: Annotated[
        int,
        typer.Option(
            "--seed",
            help="Base random seed for point/query generation.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 0,
    metric: Annotated[
        Literal["euclidean", "manhattan", "chebyshev", "minkowski3"],
        typer.Option(
            "--metric",
            case_sensitive=False,
            help="Distance metric to benchmark.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = "euclidean",
    verify: Annotated[
        bool,
        typer.Option(
            "--verify/--no-verify",
            help="Compare results against a brute-force Euclidean scan.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = True,
    log_level: Annotated[
        Optional[str],
        typer.Option(
            "--log-level",
            help="Override runtime log level.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = None,
) -> None:
    options = QueryCLIOptions(
        dimension=dimension,
        tree_points=tree_points,
        queries=queries,
        k=k,
        max_leaf_size=max_leaf_size,
        metric=metric.lower(),
        seed=seed,
        verify=verify,
        log_level=log_level,
    )
    ctx.obj = options
    if ctx.invoked_subcommand is None:
        run_queries(options)


def run_queries(options: QueryCLIOptions) -> None:
    args = options
    if args.log_level is not None:
        kd_config.runtime_config()
        get_logger().setLevel(args.log_level.upper())

    tree, points, queries, results, result = benchmark_knn_latency(
        dimension=args.dimension,
        tree_points=args.tree_points,
        query_count=args.queries,
        k=args.k,
        max_leaf_size=args.max_leaf_size,
        metric=args.metric,
        seed=args.seed,
    )

    print(
        f"kdtree | build={result.build_seconds:.4f}s "
        f"leaves={result.leaves} depth={result.depth} "
        f"queries={result.queries} k={result.k} "
        f"time={result.elapsed_seconds:.4f}s "
        f"latency={result.latency_ms:.4f}ms "
        f"throughput={result.queries_per_second:,.1f} q/s"
    )

    if args.verify:
        if args.metric != "euclidean":
            print(f"verify | skipped: brute-force reference is Euclidean, metric={args.metric}")
            return
        mismatches = count_bruteforce_mismatches(points, queries, results, args.k)
        print(f"verify | mismatches={mismatches}/{result.queries}")
        if mismatches:
            raise typer.Exit(code=1)


def main() -> None:
    app()


__all__ = ["QueryCLIOptions", "app", "main", "run_queries"]
