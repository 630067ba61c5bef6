"""CLI entrypoints for repoatlas commands."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

from .config import ConfigError, load_config
from .logging import configure_logging
from .models import Component
from .pipeline import AnalysisPipeline, AnalysisResult


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoatlas",
        description="Detect repository components, their dependencies and what changed since the last run.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Scan the repository and report detected components.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the analysis (tree, languages, components) as JSON.",
    )

    status_parser = subparsers.add_parser(
        "status",
        help="Show which components are stale according to the cache.",
    )
    _add_verbose_option(status_parser, suppress_default=True)
    _add_path_argument(status_parser)

    cache_parser = subparsers.add_parser("cache", help="Inspect or reset the component cache.")
    _add_verbose_option(cache_parser, suppress_default=True)
    cache_subparsers = cache_parser.add_subparsers(dest="cache_command", required=True)
    for name, help_text in (
        ("show", "Show cache statistics."),
        ("clear", "Remove the cache so every component is regenerated next run."),
        ("update", "Record every detected component as freshly regenerated."),
    ):
        sub = cache_subparsers.add_parser(name, help=help_text)
        _add_verbose_option(sub, suppress_default=True)
        _add_path_argument(sub)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repoatlas commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    as_json = bool(getattr(args, "json", False))
    configure_logging(verbose=bool(args.verbose), quiet=as_json)

    repo_path = Path(args.path).expanduser().resolve()
    if not repo_path.is_dir():
        parser.exit(1, f"Repository path is not a directory: {args.path}\n")
    try:
        config = load_config(repo_path)
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")

    pipeline = AnalysisPipeline(config)

    if args.command == "cache" and args.cache_command in {"show", "clear"}:
        cache = pipeline.open_cache(repo_path)
        if args.cache_command == "clear":
            cache.clear()
            print("Cache cleared. Next run will regenerate all components.")
        else:
            _print_stats(cache.stats())
        return

    try:
        result = pipeline.analyze(repo_path)
    except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "analyze":
        if as_json:
            print(json.dumps(_result_to_dict(result), indent=2))
        else:
            _print_components(result)
    elif args.command == "status":
        cache = pipeline.open_cache(repo_path)
        stale = {component.name for component in pipeline.plan(result, cache)}
        if not result.components:
            print("No components detected")
        for component in result.components:
            marker = "stale" if component.name in stale else "fresh"
            print(f"{marker:<6} {component.name} ({component.root_path})")
    elif args.command == "cache":
        cache = pipeline.open_cache(repo_path)
        pipeline.record(cache, result.components)
        if config.cache.enabled:
            print(f"Recorded {len(result.components)} components in {_relativize(cache.path)}")
        else:
            print("Cache is disabled; nothing recorded")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_components(result: AnalysisResult) -> None:
    print(f"{result.inventory.total_files} files, {len(result.components)} components")
    for component in result.components:
        print(
            f"  - {component.name} ({component.kind.value}, {component.language or 'unknown'})"
            f" - {len(component.dependencies)} dependencies, {len(component.endpoints)} endpoints"
        )


def _print_stats(stats: Dict[str, Any]) -> None:
    if not stats.get("enabled"):
        print("Cache: disabled")
        return
    print("Cache: enabled")
    print(f"Last run: {stats.get('last_run') or 'never'}")
    print(f"Components cached: {stats.get('components', 0)}")
    print(f"Unchanged: {stats.get('unchanged', 0)}")
    print(f"Stale: {stats.get('stale', 0)}")


def _component_to_dict(component: Component) -> Dict[str, Any]:
    data = asdict(component)
    data["kind"] = component.kind.value
    for dep in data["dependencies"]:
        dep["origin"] = dep["origin"].value
    return data


def _result_to_dict(result: AnalysisResult) -> Dict[str, Any]:
    return {
        "root": str(result.root),
        "total_files": result.inventory.total_files,
        "languages": result.languages,
        "tree": result.tree,
        "components": [_component_to_dict(component) for component in result.components],
    }


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
