"""
CLI for cppflow: flowcharts and complexity metrics for C/C++ source.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich.table import Table

from cppflow.logging_utils import console, get_logger, setup_logging
from cppflow.pipeline import analyze_performance, generate_flowchart

logger = get_logger(__name__)

SEVERITY_STYLES = {"warning": "yellow", "info": "cyan", "suggestion": "green"}


def _path(p: str) -> Path:
    """Convert string to Path."""
    return Path(p).expanduser().resolve()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cppflow",
        description="Control-flow flowcharts and structural complexity metrics for C/C++ functions",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_fc = sub.add_parser("flowchart", help="Generate a Mermaid flowchart for a source file")
    p_fc.add_argument("--file", required=True, type=_path, help="C/C++ source file")
    p_fc.add_argument("--out", type=_path, default=None, help="Output .mmd file (default: print)")
    p_fc.add_argument("--json", action="store_true", help="Print the flowchart record as JSON")

    p_an = sub.add_parser("analyze", help="Report complexity metrics for a source file")
    p_an.add_argument("--file", required=True, type=_path, help="C/C++ source file")
    p_an.add_argument("--json", action="store_true", help="Print the analysis record as JSON")

    return parser


def _read_source(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="ignore")


def _run_flowchart(args: argparse.Namespace) -> int:
    result = generate_flowchart(_read_source(args.file))
    if result["error"]:
        console.print(f"[bold red]Error:[/bold red] {result['message']}: {result.get('details', '')}")
        return 1

    if args.json:
        console.print_json(json.dumps(result["flowchart"]))
    elif args.out is None:
        console.print(result["mermaid"], markup=False, highlight=False)

    if args.out is not None:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(result["mermaid"], encoding="utf-8")
        console.print(f"[green]Wrote Mermaid flowchart to[/green] {args.out}")

    for diag in result["flowchart"]["diagnostics"]:
        console.print(f"[yellow]  Malformed {diag['nodeKind']} (line {diag['line']}):[/yellow] {diag['message']}")
    return 0


def _run_analyze(args: argparse.Namespace) -> int:
    result = analyze_performance(_read_source(args.file))
    if not result["success"]:
        console.print(f"[bold red]Error:[/bold red] {result['message']}: {result.get('details', '')}")
        return 1

    data = result["data"]
    if args.json:
        console.print_json(json.dumps(data))
        return 0

    summary = data["summary"]
    table = Table(title=f"Metrics: {args.file.name}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in summary.items():
        table.add_row(key, str(value))
    console.print(table)

    for insight in data["insights"]:
        style = SEVERITY_STYLES.get(insight["severity"], "white")
        console.print(f"  [{style}]{insight['severity']}:[/{style}] {insight['message']}")

    console.print(f"\n[bold]Score:[/bold] {data['score']}/100  [bold]Complexity:[/bold] {data['complexity']}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    try:
        if args.cmd == "flowchart":
            return _run_flowchart(args)
        return _run_analyze(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130
    except OSError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
