#!/usr/bin/env python3
# flowaudit/cli.py

import asyncio
import glob as _glob
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

import typer
import yaml

from flowaudit.config import REFERENCE_KEYS, AuditPolicy, load_policy
from flowaudit.discovery import CatalogDiscoveryProvider, UnconfiguredDiscovery
from flowaudit.errors import ParseError, StructureError
from flowaudit.orchestrator import AutoValidator, build_comprehensive_report
from flowaudit.reporting.text import PHASE_TITLES, banner, render_summary
from flowaudit.scenarios import load_scenarios
from flowaudit.structural.checker import parse_workflow, validate
from flowaudit.utils.io import write_json, write_text
from flowaudit.utils.logger import init_logger, level_from_name

app = typer.Typer(help="flowaudit CLI - Audit n8n workflow configurations before deployment")


def _policy(policy_file: Optional[Path], reference_key: Optional[str] = None,
            max_nodes: Optional[int] = None) -> AuditPolicy:
    try:
        policy = load_policy(policy_file)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--policy")
    if reference_key is not None:
        if reference_key not in REFERENCE_KEYS:
            raise typer.BadParameter(f"Choose one of: {', '.join(REFERENCE_KEYS)}", param_hint="--reference-key")
        policy = replace(policy, lint=replace(policy.lint, reference_key=reference_key))
    if max_nodes is not None:
        policy = replace(policy, compliance=replace(policy.compliance, max_nodes=max_nodes))
    return policy


def collect_context_documents(docs_dir: Optional[Path], names: List[str]) -> Dict[str, bool]:
    """Map document name -> present. Files in docs_dir count when non-empty."""
    docs: Dict[str, bool] = {}
    if docs_dir is not None:
        for fp in sorted(docs_dir.iterdir()):
            if fp.is_file():
                docs[fp.name] = fp.stat().st_size > 0
    for name in names:
        docs[name] = True
    return docs


@app.command()
def check(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to n8n workflow JSON"),
    policy_file: Optional[Path] = typer.Option(None, "--policy", exists=True, readable=True, help="Policy file (.yaml/.json)"),
    reference_key: Optional[str] = typer.Option(None, "--reference-key", help="Resolve connections by node 'id' or 'name'"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report to this path"),
):
    """
    Structural validation only: JSON syntax, shape, connection references,
    required node fields and expression lint.
    """
    policy = _policy(policy_file, reference_key)
    outcome = validate(input.read_text(encoding="utf-8"), policy.lint)

    stats = outcome.stats
    if stats:
        print(f"Nodes:        {stats['node_count']}")
        print(f"Connections:  {stats['connection_count']}")
        print(f"Expressions:  {stats['expression_count']}")

    if outcome.issues:
        print("Detected issues:")
        for it in outcome.issues:
            prefix = "" if it.is_error else "(warning) "
            print(f"- {prefix}{it}")

    if report is not None:
        write_json(report, {
            "input": str(input),
            "passed": outcome.passed,
            "checks": outcome.checks,
            "stats": stats,
            "issues": [i.as_dict() for i in outcome.issues],
        })
        print(f"[ok] wrote report to {report}")

    print("Structural check: PASSED" if outcome.passed else "Structural check: FAILED")
    if not outcome.passed:
        raise typer.Exit(code=1)


@app.command()
def audit(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to n8n workflow JSON"),
    query: str = typer.Option(..., "--query", "-q", help="Node discovery query"),
    use_case: str = typer.Option(..., "--use-case", "-u", help="Use case for template discovery"),
    catalog: Optional[Path] = typer.Option(None, "--catalog", exists=True, readable=True, help="Node/template catalog backing discovery"),
    docs_dir: Optional[Path] = typer.Option(None, "--docs-dir", exists=True, file_okay=False, help="Directory holding context documents"),
    doc: List[str] = typer.Option([], "--doc", help="Mark a context document as present (repeatable)"),
    scenarios: Optional[Path] = typer.Option(None, "--scenarios", exists=True, readable=True, help="Extra test scenarios (.yaml/.json)"),
    policy_file: Optional[Path] = typer.Option(None, "--policy", exists=True, readable=True, help="Policy file (.yaml/.json)"),
    reference_key: Optional[str] = typer.Option(None, "--reference-key", help="Resolve connections by node 'id' or 'name'"),
    max_nodes: Optional[int] = typer.Option(None, "--max-nodes", min=0, help="Node ceiling for incremental development"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write the comprehensive JSON report to this path"),
    text_report: Optional[Path] = typer.Option(None, "--text-report", help="Write the console report to this path"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG | INFO | WARNING | ERROR"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Also log to a rotating file in this directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show phase detail"),
):
    """
    Run all four phases (discovery, technical, logic, manifesto compliance)
    and print a report per phase plus the overall summary.
    """
    if log_level is not None or log_dir is not None:
        init_logger(level=level_from_name(log_level) if log_level else None, log_dir=log_dir)

    policy = _policy(policy_file, reference_key, max_nodes)
    try:
        provider = CatalogDiscoveryProvider.from_file(catalog) if catalog else UnconfiguredDiscovery()
    except (ValueError, yaml.YAMLError) as e:
        raise typer.BadParameter(str(e), param_hint="--catalog")
    try:
        custom = load_scenarios(scenarios) if scenarios else []
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--scenarios")
    context_documents = collect_context_documents(docs_dir, doc)

    validator = AutoValidator(provider, policy=policy)
    run = asyncio.run(validator.run(
        input.read_text(encoding="utf-8"),
        query=query,
        use_case=use_case,
        custom_scenarios=custom,
        context_documents=context_documents,
    ))
    final = build_comprehensive_report(run)

    chunks: List[str] = []
    for idx, result in enumerate(run, start=1):
        chunks.append(banner(f"PHASE {idx}: {PHASE_TITLES[result.phase].upper()}"))
        chunks.append(result.report)
        if verbose:
            chunks.append(f"[debug] {result.phase} results: {result.results}")
    chunks.append(banner("COMPREHENSIVE VALIDATION REPORT"))
    chunks.append(render_summary(final))
    text = "\n".join(chunks)
    print(text)

    if report is not None:
        write_json(report, {"input": str(input), **final})
        print(f"[ok] wrote report to {report}")
    if text_report is not None:
        write_text(text_report, text + "\n")
        print(f"[ok] wrote text report to {text_report}")

    if final["overall_status"] != "PASSED":
        raise typer.Exit(code=1)


@app.command()
def batch(
    glob: str = typer.Option("workflows/*.json", "--glob", help="Glob for workflow JSON files"),
    out: Path = typer.Option(Path("reports/structural.csv"), "--out", help="CSV path to write results"),
    policy_file: Optional[Path] = typer.Option(None, "--policy", exists=True, readable=True, help="Policy file (.yaml/.json)"),
    reference_key: Optional[str] = typer.Option(None, "--reference-key", help="Resolve connections by node 'id' or 'name'"),
):
    """
    Structurally validate many workflows and export a CSV summary.
    """
    import pandas as pd

    policy = _policy(policy_file, reference_key)
    rows = []
    for fp_str in sorted(_glob.glob(glob)):
        fp = Path(fp_str)
        text = fp.read_text(encoding="utf-8")

        # Skip JSON that is clearly not a workflow (reports, catalogs, ...)
        try:
            wf = parse_workflow(text)
        except (ParseError, StructureError):
            wf = None
        if wf is not None and "nodes" not in wf:
            print(f"[skip] {fp} does not look like a workflow JSON (missing 'nodes'); skipping")
            continue

        outcome = validate(text, policy.lint)
        kinds = [i.kind for i in outcome.errors]
        rows.append({
            "id": fp.stem,
            "path": str(fp),
            "passed": outcome.passed,
            "errors": len(outcome.errors),
            "warnings": len(outcome.warnings),
            "nodes": outcome.stats.get("node_count", 0),
            "connections": outcome.stats.get("connection_count", 0),
            "expressions": outcome.stats.get("expression_count", 0),
            "dangling_refs": sum(k in ("DanglingSourceError", "DanglingTargetError") for k in kinds),
            "missing_fields": kinds.count("MissingFieldError"),
            "lint_errors": kinds.count("ExpressionLintError"),
            "first_error": str(outcome.errors[0]) if outcome.errors else "",
        })

    out.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows, columns=[
        "id", "path", "passed", "errors", "warnings", "nodes", "connections",
        "expressions", "dangling_refs", "missing_fields", "lint_errors", "first_error",
    ]).to_csv(out, index=False)
    print(f"[ok] wrote {out} ({len(rows)} workflows)")


if __name__ == "__main__":
    app()
