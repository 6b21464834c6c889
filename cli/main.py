"""bookrule CLI — run and inspect book source rules from the terminal.

Usage:
    python cli/main.py --help

Commands:
    debug   → run the four-stage pipeline against a source and print the trace
    search  → live search through a source
    explore → list a source's explore pages, or load one of them
    select  → evaluate one rule against a saved response body
    demo    → print the built-in demonstration source
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from bookrule.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json

import typer

from bookrule.config import settings
from bookrule.errors import BookRuleError
from bookrule.source.models import BookSource, load_sources

app = typer.Typer(
    name="bookrule",
    help="Rule-driven book source extraction.",
    no_args_is_help=True,
)


def _load_source(path: str, index: int) -> BookSource:
    """Load source number *index* from a source file, exiting on error."""
    source_path = settings.resolve_source_path(path)
    try:
        sources = load_sources(source_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        typer.echo(f"[source] File not found: {source_path}")
        raise typer.Exit(1)
    except (json.JSONDecodeError, ValueError) as exc:
        typer.echo(f"[source] Invalid source file {source_path}: {exc}")
        raise typer.Exit(1)
    if not sources:
        typer.echo(f"[source] No sources in {source_path}")
        raise typer.Exit(1)
    if not 0 <= index < len(sources):
        typer.echo(f"[source] Index {index} out of range (file has {len(sources)} source(s))")
        raise typer.Exit(1)
    return sources[index]


# ---------------------------------------------------------------------------
# Pipeline commands
# ---------------------------------------------------------------------------
@app.command("debug")
def debug(
    source_file: str = typer.Argument(..., help="Source JSON file (object or array)."),
    keyword: str = typer.Argument(..., help="Search keyword, or a detail-page URL."),
    index: int = typer.Option(0, "--index", help="Which source to use when the file holds several."),
) -> None:
    """Run search → detail → toc → content and print the trace as it happens."""
    from bookrule.pipeline import PrintSink, SourceDebugger
    from bookrule.scraper import Fetcher

    source = _load_source(source_file, index)
    with Fetcher() as fetcher:
        debugger = SourceDebugger(fetcher=fetcher, sink=PrintSink(typer.echo))
        result = debugger.run(source, keyword)
    if result.aborted_at is not None:
        raise typer.Exit(1)


@app.command("search")
def search(
    source_file: str = typer.Argument(..., help="Source JSON file (object or array)."),
    keyword: str = typer.Argument(..., help="Search keyword."),
    page: int = typer.Option(1, "--page", help="1-based result page."),
    index: int = typer.Option(0, "--index", help="Which source to use when the file holds several."),
) -> None:
    """Search a source and print one line per result."""
    from bookrule.pipeline import BookClient
    from bookrule.scraper import Fetcher

    source = _load_source(source_file, index)
    try:
        with Fetcher() as fetcher:
            books = BookClient(fetcher=fetcher).search(source, keyword, page=page)
    except BookRuleError as exc:
        typer.echo(f"[search] {exc}")
        raise typer.Exit(1)

    if not books:
        typer.echo(f"[search] No results for {keyword!r}.")
        return
    for book in books:
        typer.echo(f"  {book.name or '?'}  [{book.author or '?'}]  {book.url}")


@app.command("explore")
def explore(
    source_file: str = typer.Argument(..., help="Source JSON file (object or array)."),
    entry: int = typer.Option(0, "--entry", help="1-based explore entry to load; 0 lists the entries."),
    page: int = typer.Option(1, "--page", help="1-based result page."),
    index: int = typer.Option(0, "--index", help="Which source to use when the file holds several."),
) -> None:
    """List a source's explore pages, or load the books on one of them."""
    from bookrule.pipeline import BookClient
    from bookrule.scraper import Fetcher

    source = _load_source(source_file, index)
    with Fetcher() as fetcher:
        client = BookClient(fetcher=fetcher)
        entries = client.explore_entries(source)
        if not entries:
            typer.echo("[explore] Source declares no explore pages.")
            raise typer.Exit(1)

        if entry == 0:
            for i, (title, url) in enumerate(entries, start=1):
                typer.echo(f"  [{i}] {title}  {url}")
            return
        if not 1 <= entry <= len(entries):
            typer.echo(f"[explore] Entry {entry} out of range (source has {len(entries)})")
            raise typer.Exit(1)

        title, url = entries[entry - 1]
        try:
            books = client.explore(source, url, page=page)
        except BookRuleError as exc:
            typer.echo(f"[explore] {exc}")
            raise typer.Exit(1)

    typer.echo(f"[explore] {title}: {len(books)} book(s)")
    for book in books:
        typer.echo(f"  {book.name or '?'}  [{book.author or '?'}]  {book.url}")


# ---------------------------------------------------------------------------
# Rule authoring helpers
# ---------------------------------------------------------------------------
@app.command("select")
def select(
    body_file: Path = typer.Argument(..., help="Saved response body (JSON or HTML)."),
    rule: str = typer.Argument(..., help="Rule string, e.g. 'class.book@tag.a@href'."),
    as_list: bool = typer.Option(False, "--list", help="Evaluate as a list rule."),
) -> None:
    """Evaluate a rule against a saved response body."""
    from bookrule.rules import RuleParser

    try:
        parser = RuleParser.from_body(body_file.read_bytes())
    except FileNotFoundError:
        typer.echo(f"[select] File not found: {body_file}")
        raise typer.Exit(1)
    except BookRuleError as exc:
        typer.echo(f"[select] {exc}")
        raise typer.Exit(1)

    if not as_list:
        typer.echo(parser.select_string(rule))
        return

    items = parser.select_list(rule)
    typer.echo(f"[select] {len(items)} match(es)")
    for i, item in enumerate(items, start=1):
        if parser.is_json:
            rendered = json.dumps(item, ensure_ascii=False)
        else:
            rendered = " ".join(str(item).split())
        typer.echo(f"  [{i}] {rendered[:200]}")


@app.command("demo")
def demo() -> None:
    """Print the built-in demonstration source as JSON."""
    from bookrule.source import demo_source

    typer.echo(demo_source().to_json())


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
