"""
Command-line interface for SEO Content Studio.

Provides commands for keyword density checks, article generation,
research, local search, images, settings and saved templates.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
import pandas as pd
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import ANTHROPIC_API_KEY, GEMINI_API_KEY, ConfigStoreError, mask_secret
from .docx_writer import write_article_docx
from .keyword_loader import KeywordLoadError, build_keyword_report, load_keywords
from .keyword_metrics import DensityStatus, KeywordMetrics, analyze, density_status
from .models import ArticleConfig, GeneratedImage, GroundedAnswer, SearchIntent
from .request_state import RequestState, RequestStatus
from .studio import ArticleReport, ContentStudio
from .templates import TemplateError

console = Console()

SETTING_KEYS = (ANTHROPIC_API_KEY, GEMINI_API_KEY)


def _studio(ctx: click.Context) -> ContentStudio:
    """Return the studio for this invocation, creating it on first use."""
    if ctx.obj.get("studio") is None:
        ctx.obj["studio"] = ContentStudio()
    return ctx.obj["studio"]


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return path.read_text(encoding="latin-1")


def _threshold(ctx: click.Context, threshold: Optional[float]) -> float:
    if threshold is None:
        return _studio(ctx).config.density_caution_threshold
    return threshold


def _require_success(state: RequestState, label: str) -> None:
    """Print the failure and exit unless the request succeeded."""
    if state.status == RequestStatus.SUCCESS:
        return
    kind = state.error_kind.value if state.error_kind else "unknown"
    console.print(f"[red]{label} failed ({kind}):[/red] {escape(str(state.error_message))}")
    sys.exit(1)


def _metrics_table(keyword: str, metrics: KeywordMetrics, threshold: float) -> Table:
    status = density_status(metrics.density_percent, threshold)
    style = "yellow" if status == DensityStatus.CAUTION else "green"

    table = Table(title="Keyword Density", show_header=True)
    table.add_column("Keyword", style="cyan")
    table.add_column("Total Words", justify="right")
    table.add_column("Occurrences", justify="right")
    table.add_column("Density", justify="right", style=style)
    table.add_row(
        escape(keyword),
        str(metrics.total_words),
        str(metrics.occurrence_count),
        f"{metrics.density_percent:.2f}%",
    )
    return table


def _print_grounded(answer: GroundedAnswer) -> None:
    console.print(Markdown(answer.text or "_No answer returned._"))
    if answer.sources:
        table = Table(title="Sources", show_header=True)
        table.add_column("#", justify="right")
        table.add_column("Title", style="cyan")
        table.add_column("URL", style="dim")
        for i, source in enumerate(answer.sources, start=1):
            table.add_row(str(i), escape(source.title), escape(source.uri))
        console.print(table)


def _save_image(image: GeneratedImage, output: Path) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(image.data)
    return output


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """
    SEO Content Studio - Generate and check SEO content.

    Examples:

        seo-studio analyze draft.md --keyword "vintage bag charm"

        seo-studio article --keyword "leather care" --intent Commercial --docx out.docx
    """
    ctx.ensure_object(dict)
    ctx.obj.setdefault("studio", None)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@main.command("analyze")
@click.argument("text_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--keyword", "-k", type=str, required=True, help="Keyword or phrase to score.")
@click.option(
    "--threshold",
    type=float,
    default=None,
    help="Density (percent) above which the keyword is flagged. Defaults to the configured threshold.",
)
@click.pass_context
def analyze_command(
    ctx: click.Context,
    text_file: Path,
    keyword: str,
    threshold: Optional[float],
) -> None:
    """Score keyword density of a text or markdown file."""
    threshold = _threshold(ctx, threshold)
    metrics = analyze(_read_text(text_file), keyword)
    if metrics is None:
        console.print("[yellow]Nothing to analyze:[/yellow] keyword is blank")
        sys.exit(1)

    console.print(_metrics_table(keyword.strip(), metrics, threshold))
    if density_status(metrics.density_percent, threshold) == DensityStatus.CAUTION:
        console.print(
            f"[yellow]Caution:[/yellow] density is above {threshold:.2f}%, "
            "consider fewer repetitions."
        )


@main.command("batch")
@click.argument("text_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--keywords",
    "-k",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Path to keyword file (CSV or Excel).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Optional CSV path for the report.",
)
@click.option(
    "--threshold",
    type=float,
    default=None,
    help="Density (percent) above which a keyword is flagged. Defaults to the configured threshold.",
)
@click.pass_context
def batch_command(
    ctx: click.Context,
    text_file: Path,
    keywords: Path,
    output: Optional[Path],
    threshold: Optional[float],
) -> None:
    """Score every keyword in a keyword file against a text file."""
    threshold = _threshold(ctx, threshold)
    try:
        with console.status("[bold green]Loading keywords..."):
            keyword_list = load_keywords(keywords)
    except KeywordLoadError as e:
        console.print(f"[red]Keyword loading error:[/red] {escape(str(e))}")
        sys.exit(1)

    report = build_keyword_report(_read_text(text_file), keyword_list, threshold)

    table = Table(title=f"Keyword Density ({len(report)} keywords)", show_header=True)
    table.add_column("Keyword", style="cyan")
    table.add_column("Volume", justify="right")
    table.add_column("Occurrences", justify="right")
    table.add_column("Density", justify="right")
    table.add_column("Status")
    for row in report.itertuples(index=False):
        volume = "" if pd.isna(row.search_volume) else str(int(row.search_volume))
        status_style = "yellow" if row.status == DensityStatus.CAUTION.value else "green"
        table.add_row(
            escape(row.keyword),
            volume,
            str(row.occurrences),
            f"{row.density_percent:.2f}%",
            f"[{status_style}]{row.status}[/{status_style}]",
        )
    console.print(table)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        report.to_csv(output, index=False)
        console.print(f"\n[bold green]Report saved to:[/bold green] {escape(str(output))}")


@main.command("article")
@click.option("--keyword", "-k", type=str, required=True, help="Main keyword.")
@click.option("--title", type=str, default=None, help="Specific H1 title.")
@click.option("--url", "target_url", type=str, default="", help="Target URL(s) for context.")
@click.option("--brand", type=str, default="", help="Brand name.")
@click.option(
    "--intent",
    type=click.Choice([i.value for i in SearchIntent], case_sensitive=False),
    default=SearchIntent.INFORMATIONAL.value,
    show_default=True,
)
@click.option("--tone", type=str, default=None, help="Tone of voice.")
@click.option("--words", "word_count", type=int, default=None, help="Target word count.")
@click.option("--readability", type=str, default=None, help="Readability level.")
@click.option("--no-images", is_flag=True, default=False, help="Skip media suggestions.")
@click.option("--template", "template_ref", type=str, default=None, help="Saved template name or id.")
@click.option("--save-template", type=str, default=None, help="Save these settings as a template.")
@click.option("--docx", type=click.Path(path_type=Path), default=None, help="Write a Word document.")
@click.option("--markdown", type=click.Path(path_type=Path), default=None, help="Write a markdown file.")
@click.pass_context
def article_command(
    ctx: click.Context,
    keyword: str,
    title: Optional[str],
    target_url: str,
    brand: str,
    intent: str,
    tone: Optional[str],
    word_count: Optional[int],
    readability: Optional[str],
    no_images: bool,
    template_ref: Optional[str],
    save_template: Optional[str],
    docx: Optional[Path],
    markdown: Optional[Path],
) -> None:
    """Generate a structured SEO article and score its keyword density."""
    studio = _studio(ctx)

    options = {
        "main_keyword": keyword,
        "article_title": title,
        "target_url": target_url,
        "brand_name": brand,
        "search_intent": intent,
        "include_images": not no_images,
    }
    if tone:
        options["tone_of_voice"] = tone
    if word_count is not None:
        options["word_count"] = word_count
    if readability:
        options["readability_level"] = readability

    try:
        article_config = ArticleConfig(**options)
    except ValueError as e:
        console.print(f"[red]Invalid article settings:[/red] {escape(str(e))}")
        sys.exit(1)

    template_id = None
    if template_ref:
        found = studio.templates.find_by_name(template_ref)
        template_id = found.id if found else template_ref

    if save_template:
        try:
            saved = studio.templates.save(save_template, article_config)
        except (TemplateError, ConfigStoreError) as e:
            console.print(f"[red]Template error:[/red] {escape(str(e))}")
            sys.exit(1)
        console.print(f"Saved template [cyan]{escape(saved.name)}[/cyan] ({escape(saved.id)})")

    console.print(Panel.fit(
        f"[bold blue]SEO Content Studio[/bold blue]\n"
        f"Writing an article for '{escape(article_config.main_keyword)}'",
        border_style="blue",
    ))

    with console.status("[bold green]Generating article..."):
        state = studio.generate_article(article_config, template_id=template_id)
    _require_success(state, "Article generation")

    report: ArticleReport = state.result
    article = report.article
    meta = article.seo_metadata

    meta_table = Table(title="SEO Metadata", show_header=True)
    meta_table.add_column("Element", style="cyan")
    meta_table.add_column("Value")
    meta_table.add_row("H1", escape(article.article_content.h1_title))
    meta_table.add_row("Meta Title", escape(meta.meta_title))
    meta_table.add_row("Meta Description", escape(meta.meta_description))
    meta_table.add_row("URL Slug", escape(meta.url_slug_suggestion))
    console.print(meta_table)

    if report.metrics is not None:
        console.print(_metrics_table(
            report.keyword,
            report.metrics,
            studio.config.density_caution_threshold,
        ))

    if article.article_content.faq_section:
        console.print(f"\n[cyan]FAQ items generated:[/cyan] {len(article.article_content.faq_section)}")

    if markdown:
        markdown.parent.mkdir(parents=True, exist_ok=True)
        markdown.write_text(article.to_markdown(), encoding="utf-8")
        console.print(f"[bold green]Markdown saved to:[/bold green] {escape(str(markdown))}")
    if docx:
        with console.status("[bold green]Writing output document..."):
            output_path = write_article_docx(
                article,
                docx,
                keyword=report.keyword,
                metrics=report.metrics,
                status=report.density_status,
            )
        console.print(f"[bold green]Document saved to:[/bold green] {escape(str(output_path))}")
    if not markdown and not docx:
        console.print(Markdown(article.to_markdown()))


@main.command("ideas")
@click.argument("topic")
@click.pass_context
def ideas_command(ctx: click.Context, topic: str) -> None:
    """Brainstorm content ideas and keywords for a topic."""
    studio = _studio(ctx)
    with console.status("[bold green]Brainstorming..."):
        state = studio.quick_ideas(topic)
    _require_success(state, "Ideas")
    console.print(Markdown(state.result))


@main.command("research")
@click.argument("query")
@click.pass_context
def research_command(ctx: click.Context, query: str) -> None:
    """Research a topic with live web search."""
    studio = _studio(ctx)
    with console.status("[bold green]Searching the web..."):
        state = studio.research(query)
    _require_success(state, "Research")
    _print_grounded(state.result)


@main.command("local")
@click.argument("query")
@click.option("--lat", "latitude", type=float, default=None, help="Latitude to bias results.")
@click.option("--lng", "longitude", type=float, default=None, help="Longitude to bias results.")
@click.pass_context
def local_command(
    ctx: click.Context,
    query: str,
    latitude: Optional[float],
    longitude: Optional[float],
) -> None:
    """Local search grounded on Google Maps."""
    if (latitude is None) != (longitude is None):
        console.print("[yellow]Warning:[/yellow] both --lat and --lng are needed; ignoring location")
    studio = _studio(ctx)
    with console.status("[bold green]Searching places..."):
        state = studio.local_search(query, latitude, longitude)
    _require_success(state, "Local search")
    _print_grounded(state.result)


@main.command("image")
@click.argument("prompt")
@click.option("--output", "-o", type=click.Path(path_type=Path), required=True)
@click.option("--size", type=click.Choice(["1K", "2K", "4K"]), default=None)
@click.option(
    "--edit",
    "source",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Edit this image instead of generating a new one.",
)
@click.pass_context
def image_command(
    ctx: click.Context,
    prompt: str,
    output: Path,
    size: Optional[str],
    source: Optional[Path],
) -> None:
    """Generate (or edit) an image and save it to a file."""
    studio = _studio(ctx)
    with console.status("[bold green]Rendering image..."):
        if source:
            mime_type = "image/jpeg" if source.suffix.lower() in (".jpg", ".jpeg") else "image/png"
            original = GeneratedImage(data=source.read_bytes(), mime_type=mime_type)
            state = studio.edit_image(original, prompt)
        else:
            state = studio.generate_image(prompt, size)
    _require_success(state, "Image")
    saved = _save_image(state.result, output)
    console.print(f"[bold green]Image saved to:[/bold green] {escape(str(saved))}")


@main.group("config")
def config_group() -> None:
    """Manage stored API keys."""


@config_group.command("set")
@click.argument("key", type=click.Choice(SETTING_KEYS))
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    studio = _studio(ctx)
    try:
        studio.store.set(key, value.strip())
    except ConfigStoreError as e:
        console.print(f"[red]Settings error:[/red] {escape(str(e))}")
        sys.exit(1)
    console.print(f"Saved [cyan]{key}[/cyan] to {escape(str(studio.store.path))}")


@config_group.command("get")
@click.argument("key", type=click.Choice(SETTING_KEYS), required=False)
@click.pass_context
def config_get(ctx: click.Context, key: Optional[str]) -> None:
    """Show stored keys (masked)."""
    studio = _studio(ctx)
    table = Table(show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Stored")
    table.add_column("Resolved")
    for name in ([key] if key else SETTING_KEYS):
        table.add_row(
            name,
            mask_secret(studio.store.get(name)),
            mask_secret(studio.store.resolve_api_key(name)),
        )
    console.print(table)


@config_group.command("clear")
@click.argument("key", type=click.Choice(SETTING_KEYS), required=False)
@click.pass_context
def config_clear(ctx: click.Context, key: Optional[str]) -> None:
    """Remove one stored key, or all stored settings."""
    studio = _studio(ctx)
    try:
        studio.store.clear(key)
    except ConfigStoreError as e:
        console.print(f"[red]Settings error:[/red] {escape(str(e))}")
        sys.exit(1)
    console.print(f"Cleared {key or 'all settings'}")


@main.group("templates")
def templates_group() -> None:
    """Manage saved article templates."""


@templates_group.command("list")
@click.pass_context
def templates_list(ctx: click.Context) -> None:
    templates = _studio(ctx).templates.all_templates()
    if not templates:
        console.print("No saved templates.")
        return

    table = Table(title="Saved Templates", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Intent")
    table.add_column("Words", justify="right")
    for template in templates:
        table.add_row(
            escape(template.id),
            escape(template.name),
            escape(str(template.config.get("search_intent", ""))),
            str(template.config.get("word_count", "")),
        )
    console.print(table)


@templates_group.command("delete")
@click.argument("template_ref")
@click.pass_context
def templates_delete(ctx: click.Context, template_ref: str) -> None:
    """Delete a template by id or name."""
    store = _studio(ctx).templates
    found = store.find_by_name(template_ref)
    try:
        store.delete(found.id if found else template_ref)
    except (TemplateError, ConfigStoreError) as e:
        console.print(f"[red]Template error:[/red] {escape(str(e))}")
        sys.exit(1)
    console.print(f"Deleted template {escape(template_ref)}")


def run_cli() -> None:
    """Entry point for the CLI."""
    main(obj={})


if __name__ == "__main__":
    run_cli()
