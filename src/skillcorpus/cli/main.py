"""
Main CLI entry point for Skillcorpus.

Provides the command-line interface using Click. Every command loads the
corpus lazily, so `config` commands work without a corpus on disk.
"""

import json as _json
import os as _os
import pathlib as _pathlib
import sys as _sys
import typing as _typing

import click as _click
import rich.console as _rich_console
import rich.syntax as _rich_syntax
import yaml as _yaml

import skillcorpus
import skillcorpus.config as config
import skillcorpus.logging as logging
import skillcorpus.skills as skills

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

SEVERITY_CHOICE = _click.Choice(
    [s.value for s in skills.Severity],
    case_sensitive=False,
)


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(skillcorpus.__version__, "-V", "--version", prog_name="skillcorpus")
@_click.option(
    "--root",
    "-r",
    type=_click.Path(file_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Corpus root directory (default: corpus.root from config)",
)
@_click.option(
    "--workers",
    "-w",
    type=_click.IntRange(min=1),
    default=None,
    help="Loader threads (1 disables parallel loading)",
)
@_click.option("--verbose", "-v", is_flag=True, help="Debug logging to stderr")
@_click.option(
    "--journal",
    type=_click.Path(dir_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Write a JSONL journal of the load to this file",
)
@_click.pass_context
def cli(
    ctx: _click.Context,
    root: _pathlib.Path | None,
    workers: int | None,
    verbose: bool,
    journal: _pathlib.Path | None,
) -> None:
    """
    Skillcorpus - load, validate and query Markdown skill documents.

    \b
    Examples:
        skillcorpus --root skills list
        skillcorpus --root skills search "memory retrieval"
        skillcorpus --root skills show agent-memory-systems
        skillcorpus --root skills edges --severity high --at-least
        skillcorpus --root skills validate --strict
        skillcorpus config show
    """
    try:
        settings = config.Settings()
    except config.ConfigFileError as e:
        raise _click.ClickException(str(e)) from None

    if root is not None:
        settings.corpus.root = str(root)
    if workers is not None:
        settings.loader.max_workers = workers
        settings.loader.parallel = workers > 1

    logging.configure_logging("debug" if verbose else settings.logging.level)

    # Store settings in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["journal_path"] = journal


# =============================================================================
# Helpers
# =============================================================================


def _open_journal(ctx: _click.Context) -> logging.LoadJournal | None:
    """Journal requested by --journal or logging.journal, closed with the context."""
    settings: config.Settings = ctx.obj["settings"]
    journal_path: _pathlib.Path | None = ctx.obj.get("journal_path")

    if journal_path is not None:
        journal = logging.LoadJournal(log_file=journal_path)
    elif settings.logging.journal:
        journal = logging.LoadJournal(
            log_dir=settings.journal_dir,
            private_mode=settings.logging.private,
        )
    else:
        return None

    ctx.call_on_close(journal.close)
    return journal


def _load_corpus(ctx: _click.Context) -> skills.SkillCorpus:
    """
    Build and load the corpus for this invocation.

    Raises:
        click.ClickException: If the root is unreadable or titles collide.
    """
    if "corpus" in ctx.obj:
        return ctx.obj["corpus"]

    settings: config.Settings = ctx.obj["settings"]
    corpus = skills.SkillCorpus.from_settings(settings, journal=_open_journal(ctx))
    try:
        result = corpus.result
    except skills.IOFailure as e:
        raise _click.ClickException(str(e)) from None
    except skills.DuplicateDocumentError as e:
        raise _click.ClickException(str(e)) from None

    for failure in result.failures:
        _click.echo(f"Warning: skipped {failure.path}: {failure.error}", err=True)

    ctx.obj["corpus"] = corpus
    return corpus


def _get_document(
    corpus: skills.SkillCorpus,
    name: str,
    json_output: bool,
) -> skills.SkillDocument:
    """Resolve a skill name or exit with an error."""
    doc = corpus.get(name)
    if doc is None:
        if json_output:
            _click.echo(_json.dumps({"error": f"Skill not found: {name}"}))
        else:
            _click.echo(f"Error: Skill '{name}' not found", err=True)
        raise SystemExit(1)
    return doc


def _echo_summaries(summaries: list[dict[str, _typing.Any]], heading: str) -> None:
    if not summaries:
        _click.echo("No skills found.")
        return

    _click.echo(f"{heading} ({len(summaries)}):")
    _click.echo(f"{'Ref':<45} {'Title'}")
    _click.echo("-" * 80)
    for item in summaries:
        _click.echo(f"{item['ref']:<45} {item['title']}")


def _severity_label(severity: skills.Severity | None) -> str:
    return severity.label if severity is not None else "-"


# =============================================================================
# Listing and lookup
# =============================================================================


@cli.command(name="list")
@_click.option("--category", "-c", default=None, help="Only this category")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
def list_cmd(ctx: _click.Context, category: str | None, json_output: bool) -> None:
    """List all skills in the corpus."""
    corpus = _load_corpus(ctx)
    docs = corpus.list_documents(category)

    if json_output:
        _click.echo(
            _json.dumps(
                {
                    "root": str(corpus.root),
                    "count": len(docs),
                    "skills": corpus.summaries(docs),
                },
                indent=2,
            )
        )
        return

    if not docs:
        _click.echo("No skills found.")
        return

    _click.echo(f"Skills in {corpus.root} ({len(docs)}):")
    _click.echo(f"{'Ref':<45} {'Edges':<6} {'Max':<9} {'Title'}")
    _click.echo("-" * 90)
    for doc in docs:
        warn = " ⚠" if doc.has_warnings else ""
        _click.echo(
            f"{doc.ref:<45} {len(doc.sharp_edges):<6} "
            f"{_severity_label(doc.max_severity):<9} {doc.title}{warn}"
        )


@cli.command()
@_click.argument("text")
@_click.option("--category", "-c", default=None, help="Only this category")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
def search(ctx: _click.Context, text: str, category: str | None, json_output: bool) -> None:
    """Search skills by title, slug, summary and tags.

    Every word of TEXT must match somewhere (case-insensitive), in any
    order and in any of those fields. This is looser than a phrase match:
    "memory agent" finds "Agent Memory".
    """
    corpus = _load_corpus(ctx)
    results = corpus.search(text, category)

    if json_output:
        _click.echo(_json.dumps({"query": text, "count": len(results), "skills": results}, indent=2))
        return

    _echo_summaries(results, f"Skills matching '{text}'")


@cli.command()
@_click.argument("name")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.option("--warnings", "show_warnings", is_flag=True, help="List parse warnings")
@_click.pass_context
def show(ctx: _click.Context, name: str, json_output: bool, show_warnings: bool) -> None:
    """Show details for a skill (by ref, slug or title)."""
    corpus = _load_corpus(ctx)
    doc = _get_document(corpus, name, json_output)

    if json_output:
        _click.echo(_json.dumps(doc.to_dict(), indent=2))
        return

    _click.echo(f"Skill: {doc.title or '(untitled)'}")
    _click.echo(f"  Ref: {doc.ref}")
    _click.echo(f"  Path: {doc.path}")
    _click.echo(f"  Version: {doc.version or '-'}")
    if doc.tags:
        _click.echo(f"  Tags: {', '.join(sorted(doc.tags))}")
    if doc.summary:
        _click.echo(f"  Summary: {doc.summary}")

    _click.echo()
    _click.echo(f"Patterns: {len(doc.patterns)}")
    _click.echo(f"Anti-patterns: {len(doc.anti_patterns)}")
    _click.echo(f"Sharp edges: {len(doc.sharp_edges)} (max {_severity_label(doc.max_severity)})")
    for edge in doc.sharp_edges:
        _click.echo(f"  [{edge.severity.label}] {edge.title}")

    if doc.collaboration:
        _click.echo()
        _click.echo("Hands off to:")
        for trigger in doc.collaboration:
            _click.echo(f"  - {trigger.delegate_to}: {trigger.trigger}")
    if doc.works_well_with:
        _click.echo()
        _click.echo(f"Works well with: {', '.join(doc.works_well_with)}")

    if doc.parse_warnings:
        _click.echo()
        _click.echo(f"⚠ {len(doc.parse_warnings)} parse warning(s)")
        if show_warnings:
            for warning in doc.parse_warnings:
                where = f" (line {warning.line})" if warning.line else ""
                _click.echo(f"  {warning.code}{where}: {warning.message}")


@cli.command(name="query")
@_click.option("--tag", "-t", "tags", multiple=True, help="Require tag (repeatable)")
@_click.option("--category", "-c", default=None, help="Only this category")
@_click.option("--severity", "-s", type=SEVERITY_CHOICE, default=None, help="Has a sharp edge of this severity")
@_click.option("--at-least", is_flag=True, help="With --severity, also match more severe edges")
@_click.option("--text", default=None, help="Every word must match title, slug, summary or tags")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
def query_cmd(
    ctx: _click.Context,
    tags: tuple[str, ...],
    category: str | None,
    severity: str | None,
    at_least: bool,
    text: str | None,
    json_output: bool,
) -> None:
    """Select skills matching all given criteria."""
    corpus = _load_corpus(ctx)

    predicate: skills.Predicate | None = None
    for tag in tags:
        criterion = skills.has_tag(tag)
        predicate = criterion if predicate is None else predicate & criterion

    result = corpus.query(
        predicate,
        category=category,
        severity=severity,
        at_least=at_least,
        text=text,
    )
    summaries = corpus.summaries(result)

    if json_output:
        _click.echo(_json.dumps({"count": len(summaries), "skills": summaries}, indent=2))
        return

    _echo_summaries(summaries, "Matching skills")


@cli.command()
@_click.argument("skill", required=False)
@_click.option("--severity", "-s", type=SEVERITY_CHOICE, default=None, help="Only this severity")
@_click.option("--at-least", is_flag=True, help="With --severity, also include more severe edges")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
def edges(
    ctx: _click.Context,
    skill: str | None,
    severity: str | None,
    at_least: bool,
    json_output: bool,
) -> None:
    """List sharp edges, for one SKILL or the whole corpus."""
    corpus = _load_corpus(ctx)
    if skill is not None:
        _get_document(corpus, skill, json_output)

    found = corpus.sharp_edges(skill, severity=severity, at_least=at_least)

    if json_output:
        _click.echo(
            _json.dumps(
                {
                    "count": len(found),
                    "edges": [{"skill": doc.ref, **edge.to_dict()} for doc, edge in found],
                },
                indent=2,
            )
        )
        return

    if not found:
        _click.echo("No sharp edges found.")
        return

    _click.echo(f"Sharp edges ({len(found)}):")
    for doc, edge in found:
        _click.echo(f"  [{edge.severity.label:<8}] {doc.ref}: {edge.title}")
        if edge.situation:
            _click.echo(f"             {edge.situation}")


# =============================================================================
# Validation and graph
# =============================================================================


@cli.command()
@_click.option("--strict", is_flag=True, help="Fail on warnings as well as errors")
@_click.option("--parse-warnings", is_flag=True, help="Also list parser warnings")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
def validate(ctx: _click.Context, strict: bool, parse_warnings: bool, json_output: bool) -> None:
    """Validate every skill; exit 1 on errors (or any issue with --strict)."""
    corpus = _load_corpus(ctx)
    issues = corpus.validate()
    errors = [issue for issue in issues if issue.is_error]
    failed = bool(errors) or (strict and bool(issues))
    warnings = corpus.result.parse_warnings

    if json_output:
        data: dict[str, _typing.Any] = {
            "valid": not failed,
            "skills": len(corpus),
            "errors": len(errors),
            "warnings": len(issues) - len(errors),
            "issues": [issue.to_dict() for issue in issues],
        }
        if parse_warnings:
            data["parse_warnings"] = [w.to_dict() for w in warnings]
        _click.echo(_json.dumps(data, indent=2))
    else:
        for issue in issues:
            _click.echo(f"{issue.level.value.upper():<7} {issue.document}: [{issue.code}] {issue.message}")
        if parse_warnings:
            for warning in warnings:
                where = f":{warning.line}" if warning.line else ""
                _click.echo(f"PARSE   {warning.path}{where}: [{warning.code}] {warning.message}")
        status = "✗" if failed else "✓"
        _click.echo(
            f"{status} {len(corpus)} skills, {len(errors)} errors, "
            f"{len(issues) - len(errors)} warnings, {len(warnings)} parse warnings"
        )

    if failed:
        raise SystemExit(1)


@cli.command()
@_click.option("--cycles", "show_cycles", is_flag=True, help="List hand-off cycles")
@_click.option("--unresolved", "show_unresolved", is_flag=True, help="List unresolved references")
@_click.option("--no-receives", is_flag=True, help="Ignore 'Receives Work From' entries")
@_click.option("--json", "json_output", is_flag=True, help="JSON output")
@_click.pass_context
def graph(
    ctx: _click.Context,
    show_cycles: bool,
    show_unresolved: bool,
    no_receives: bool,
    json_output: bool,
) -> None:
    """Show the hand-off graph between skills."""
    corpus = _load_corpus(ctx)
    handoffs = corpus.handoff_graph(include_receives_from=not no_receives)

    if json_output:
        data = handoffs.to_dict()
        data["adjacency"] = handoffs.adjacency()
        if show_cycles:
            data["cycles"] = handoffs.cycles()
        _click.echo(_json.dumps(data, indent=2))
        return

    for source, targets in handoffs.adjacency().items():
        if targets:
            _click.echo(f"{source} -> {', '.join(targets)}")

    if show_cycles:
        cycles = handoffs.cycles()
        _click.echo()
        _click.echo(f"Cycles ({len(cycles)}):")
        for cycle in cycles:
            _click.echo("  " + " -> ".join(cycle + cycle[:1]))

    if show_unresolved:
        _click.echo()
        _click.echo(f"Unresolved references ({len(handoffs.unresolved)}):")
        for warning in handoffs.unresolved:
            _click.echo(f"  {warning.document} --{warning.relation}--> {warning.target}")


# =============================================================================
# Rendering
# =============================================================================


@cli.command()
@_click.argument("name")
@_click.option(
    "--output",
    "-o",
    type=_click.Path(dir_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Write to file instead of stdout",
)
@_click.pass_context
def render(ctx: _click.Context, name: str, output: _pathlib.Path | None) -> None:
    """Render a skill in the canonical Markdown layout."""
    corpus = _load_corpus(ctx)
    doc = _get_document(corpus, name, json_output=False)
    text = skills.render_skill_markdown(doc)

    if output is None:
        _click.echo(text, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    _click.echo(f"Wrote {output}")


@cli.command()
@_click.argument("out_dir", type=_click.Path(file_okay=False, path_type=_pathlib.Path))
@_click.option("--only", default=None, help="Export only the skill with this slug")
@_click.pass_context
def export(ctx: _click.Context, out_dir: _pathlib.Path, only: str | None) -> None:
    """Render every skill to OUT_DIR/<category>/<slug>.md."""
    corpus = _load_corpus(ctx)
    written = skills.export_corpus(corpus.documents(), out_dir, only=only)

    for path in written:
        _click.echo(f"  ✓ {path.relative_to(out_dir)}")
    _click.echo(f"Generated: {len(written)} skills")
    _click.echo(f"Output: {out_dir}")


# =============================================================================
# Configuration
# =============================================================================


@cli.group(name="config")
def config_cmd() -> None:
    """Configuration management commands."""


@config_cmd.command(name="show")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option("--section", type=str, default=None, help="Show specific section only")
@_click.option(
    "--color/--no-color",
    "use_color",
    default=None,
    help="Enable/disable syntax highlighting (default: auto-detect TTY)",
)
@_click.pass_context
def config_show(
    ctx: _click.Context,
    as_json: bool,
    section: str | None,
    use_color: bool | None,
) -> None:
    """Show effective configuration from all sources.

    \b
    Examples:
        skillcorpus config show              # Show all config as YAML
        skillcorpus config show --json       # Show as JSON
        skillcorpus config show --section loader
    """
    settings: config.Settings = ctx.obj["settings"]
    full_config = settings.model_dump(mode="json")

    if section:
        if section not in full_config:
            raise _click.ClickException(f"Unknown section: {section}")
        full_config = {section: full_config[section]}

    if as_json:
        _click.echo(_json.dumps(full_config, indent=2))
        return

    color_enabled, force_color = _should_use_color(use_color)
    yaml_text = _yaml.dump(full_config, default_flow_style=False, sort_keys=False)
    _print_yaml(yaml_text, color=color_enabled, force_color=force_color)

    extras = settings.collect_all_extra_fields()
    if extras:
        _click.echo(f"⚠ Unknown config keys: {', '.join(sorted(extras))}", err=True)


@config_cmd.command(name="path")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def config_path(as_json: bool) -> None:
    """Show config file locations in precedence order."""
    source = config.LayeredYamlSettingsSource(config.Settings, config.find_project_root())
    layers = source.get_layer_paths()

    if as_json:
        _click.echo(
            _json.dumps(
                [{"layer": name, "path": str(path), "exists": exists} for name, path, exists in layers],
                indent=2,
            )
        )
        return

    for name, path, exists in layers:
        marker = "✓" if exists else "(not found)"
        _click.echo(f"{name:<9} {path} {marker}")


def _should_use_color(cli_flag: bool | None) -> tuple[bool, bool]:
    """Determine whether to use color output.

    Priority:
    1. CLI flag (--color / --no-color) if specified
    2. NO_COLOR env var (if set, disable color)
    3. Auto-detect: color if stdout is a TTY

    Returns:
        Tuple of (color_enabled, force_color).
        force_color is True when color was explicitly requested.
    """
    if cli_flag is not None:
        return (cli_flag, cli_flag)

    if _os.environ.get("NO_COLOR") is not None:
        return (False, False)

    return (_sys.stdout.isatty(), False)


def _print_yaml(yaml_text: str, *, color: bool = True, force_color: bool = False) -> None:
    """Print YAML text, optionally with syntax highlighting."""
    if not color:
        _click.echo(yaml_text)
        return

    console = _rich_console.Console(
        force_terminal=force_color,
        no_color=False if force_color else None,
        color_system="truecolor" if force_color else "auto",
    )
    syntax = _rich_syntax.Syntax(
        yaml_text,
        "yaml",
        theme="monokai",
        background_color="default",
    )
    console.print(syntax)


def main() -> None:
    """Main entry point with correct program name."""
    cli(prog_name="skillcorpus")


if __name__ == "__main__":
    main()
