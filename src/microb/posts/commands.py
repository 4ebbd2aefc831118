"""CLI commands for blog post management.

Reads go through the read cache; writes log in as admin and go through the
dashboard, which reports every outcome as a single status message.
"""

from __future__ import annotations

import json as json_module
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from microb.admin.session import open_dashboard, password_option
from microb.core.database import Post
from microb.core.errors import StoreError

console = Console()


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def _post_to_json(post: Post) -> dict:
    return post.to_dict()


def _load_posts() -> list[Post]:
    """Posts for read-only commands, via the read cache."""
    from microb.core.site import open_cache

    try:
        return open_cache().posts()
    except StoreError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


def _read_content_option(content: str | None, content_file: Path | None) -> str | None:
    if content is not None and content_file is not None:
        raise click.UsageError("Use either --content or --content-file, not both.")
    if content_file is not None:
        return content_file.read_text(encoding="utf-8")
    return content


def _report(result) -> None:
    """Print a dashboard ActionResult; exit non-zero on failure."""
    if result.ok:
        console.print(f"[green]{result.message}[/green]")
        if result.post is not None:
            console.print(f"  [dim]slug:[/dim] [cyan]{result.post.slug}[/cyan]")
    else:
        console.print(f"[red]{result.message}[/red]")
        raise SystemExit(1)


def _format_tags(tags: list[str], limit: int = 4) -> str:
    tags_str = ", ".join(tags[:limit])
    if len(tags) > limit:
        tags_str += f" +{len(tags) - limit}"
    return tags_str


# ---------------------------------------------------------------------------
# Click command group
# ---------------------------------------------------------------------------


@click.group(name="posts")
def posts() -> None:
    """Manage blog posts.

    Metadata lives in posts.json, content in posts/<slug>.html.
    """
    pass


# ---------------------------------------------------------------------------
# microb posts list
# ---------------------------------------------------------------------------


@posts.command(name="list")
@click.option("-q", "--query", default=None, help="Search tags, title and description")
@click.option("-t", "--tag", default=None, help="Only posts with this exact tag")
@click.option("-p", "--page", type=int, default=1, help="Page number")
@click.option("--per-page", type=int, default=None, help="Posts per page")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON array")
def list_posts(
    query: str | None,
    tag: str | None,
    page: int,
    per_page: int | None,
    as_json: bool,
) -> None:
    """List posts in display order."""
    from microb.core.queries import filter_by_tag, paginate, search
    from microb.core.settings import get_config_value

    items = _load_posts()

    if query:
        items = search(items, query)
    elif tag:
        items = filter_by_tag(items, tag)

    if as_json:
        click.echo(json_module.dumps([_post_to_json(p) for p in items], indent=2))
        return

    if not items:
        console.print("[yellow]No posts found matching criteria.[/yellow]")
        return

    if per_page is None:
        per_page = int(get_config_value("admin.per_page"))
    result = paginate(items, page, per_page)

    title = f"Posts ({result.total})"
    if result.total_pages > 1:
        title += f" - page {result.page}/{result.total_pages}"
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Date", style="cyan", width=12)
    table.add_column("Title", no_wrap=False)
    table.add_column("Slug", style="green")
    table.add_column("Tags", style="dim")

    offset = (result.page - 1) * result.per_page
    for i, post in enumerate(result.items, start=offset + 1):
        table.add_row(str(i), post.day, post.title, post.slug, _format_tags(post.tags))

    console.print(table)


# ---------------------------------------------------------------------------
# microb posts show
# ---------------------------------------------------------------------------


@posts.command(name="show")
@click.argument("slug")
@click.option("--content", "with_content", is_flag=True, help="Print the content markup")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show_post(slug: str, with_content: bool, as_json: bool) -> None:
    """Show one post's metadata (and optionally its content)."""
    from microb.core.queries import related
    from microb.core.site import open_store
    from microb.core.slugs import is_valid_slug

    items = _load_posts()
    post = next((p for p in items if p.slug == slug), None) if is_valid_slug(slug) else None
    if post is None:
        console.print(f"[red]Post not found: {slug}[/red]")
        raise SystemExit(1)

    content = open_store().load_content(slug) if (with_content or as_json) else None

    if as_json:
        data = _post_to_json(post)
        data["content"] = content
        click.echo(json_module.dumps(data, indent=2))
        return

    table = Table(show_header=False, title=post.title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Slug", post.slug)
    table.add_row("Date", post.date)
    table.add_row("Description", post.description)
    table.add_row("Tags", ", ".join(post.tags))
    table.add_row("Image", post.featured_image or "[dim]-[/dim]")
    table.add_row("Related", ", ".join(p.slug for p in related(items, slug)) or "[dim]-[/dim]")
    console.print(table)

    if with_content:
        console.print()
        click.echo(content)




# ---------------------------------------------------------------------------
# microb posts new
# ---------------------------------------------------------------------------


@posts.command(name="new")
@click.option("--title", required=True, help="Post title")
@click.option("--description", default="", help="Card preview text")
@click.option("--tags", default="", help="Comma-separated tags (max 10)")
@click.option("--image", "featured_image", default="", help="Featured image URL")
@click.option("--content", default=None, help="Content markup")
@click.option(
    "--content-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read content markup from a file",
)
@password_option
def new_post(
    title: str,
    description: str,
    tags: str,
    featured_image: str,
    content: str | None,
    content_file: Path | None,
    password: str,
) -> None:
    """Create a new post at the top of the list.

    \b
    Examples:
        microb posts new --title "Hello World" --tags "intro, meta"
        microb posts new --title "Long Read" --content-file draft.html
    """
    body = _read_content_option(content, content_file) or ""
    dashboard = open_dashboard(password)
    _report(dashboard.add_post(title, description, tags, featured_image, body))


# ---------------------------------------------------------------------------
# microb posts edit
# ---------------------------------------------------------------------------


@posts.command(name="edit")
@click.argument("slug")
@click.option("--title", default=None, help="New title (the slug follows it)")
@click.option("--description", default=None, help="New description")
@click.option("--tags", default=None, help="New comma-separated tags")
@click.option("--image", "featured_image", default=None, help="New featured image URL")
@click.option("--content", default=None, help="New content markup")
@click.option(
    "--content-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read new content markup from a file",
)
@password_option
def edit_post(
    slug: str,
    title: str | None,
    description: str | None,
    tags: str | None,
    featured_image: str | None,
    content: str | None,
    content_file: Path | None,
    password: str,
) -> None:
    """Edit an existing post.

    Fields not given keep their current values. Changing the title
    renames the post's slug and content file.
    """
    body = _read_content_option(content, content_file)
    dashboard = open_dashboard(password)

    form = dashboard.edit_form(slug)
    if form is None:
        console.print(f"[red]Post not found: {slug}[/red]")
        raise SystemExit(1)
    post, current_content = form

    if body is None:
        # Keep a missing content file missing rather than saving the placeholder
        has_file = dashboard.store.content_path(post.slug).exists()
        body = current_content if has_file else ""

    _report(
        dashboard.update_post(
            slug,
            title if title is not None else post.title,
            description if description is not None else post.description,
            tags if tags is not None else post.tags,
            featured_image if featured_image is not None else post.featured_image,
            body,
        )
    )


# ---------------------------------------------------------------------------
# microb posts delete
# ---------------------------------------------------------------------------


@posts.command(name="delete")
@click.argument("slug")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt")
@password_option
def delete_post(slug: str, yes: bool, password: str) -> None:
    """Delete a post and its content file."""
    from microb.core.prompts import confirm

    dashboard = open_dashboard(password)
    post = dashboard.store.find_by_slug(slug)
    details = [f"{post.title} ({post.date})", str(dashboard.store.content_path(slug))] if post else None
    if not confirm(f"Delete post '{slug}'?", details=details, auto_yes=yes):
        console.print("[yellow]Cancelled[/yellow]")
        return
    _report(dashboard.delete_post(slug))


# ---------------------------------------------------------------------------
# microb posts move / shuffle
# ---------------------------------------------------------------------------


@posts.command(name="move")
@click.argument("slug")
@click.argument("direction", type=click.Choice(["up", "down"]))
@password_option
def move_post(slug: str, direction: str, password: str) -> None:
    """Swap a post with its neighbour above or below."""
    dashboard = open_dashboard(password)
    if direction == "up":
        _report(dashboard.move_up(slug))
    else:
        _report(dashboard.move_down(slug))


@posts.command(name="shuffle")
@password_option
def shuffle_posts(password: str) -> None:
    """Randomly reorder all posts."""
    dashboard = open_dashboard(password)
    _report(dashboard.reshuffle())


# ---------------------------------------------------------------------------
# microb posts stats
# ---------------------------------------------------------------------------


@posts.command(name="stats")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show_stats(as_json: bool) -> None:
    """Show post, tag and image counts."""
    from microb.core.config import get_paths
    from microb.core.queries import stats

    items = _load_posts()
    data = stats(items, get_paths().images)

    if as_json:
        payload = dict(data)
        payload["recent_posts"] = [p.to_dict() for p in data["recent_posts"]]
        click.echo(json_module.dumps(payload, indent=2))
        return

    console.print(f"[bold]Posts:[/bold]  {data['total_posts']}")
    console.print(f"[bold]Tags:[/bold]   {data['total_tags']}")
    console.print(f"[bold]Images:[/bold] {data['images_count']}")

    if data["recent_posts"]:
        console.print("\n[bold]Recent posts:[/bold]")
        for post in data["recent_posts"]:
            console.print(f"  [cyan]{post.day}[/cyan] {post.title} [dim]({post.slug})[/dim]")
