"""Command-line interface for packsync."""

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from . import __version__
from .config import ConfigSyncMode, PacksyncConfig, load_config
from .imports import (
    ImportCoordinator,
    RemoteManifestClient,
    RemoteSync,
    export_manifest,
    parse_manifest,
)
from .library import CatalogStore, ModpackStore
from .models import ConflictResolution, ContentBucket, ImportOutcome
from .observability import configure_logging, get_global_collector
from .persistence import ApplyJournal, JsonDocumentStore
from .reconcile import Reconciler
from .resolvers import DirectDownloadResolver
from .utils.exceptions import PacksyncError
from .versioning import VersionControl

app = typer.Typer(
    name="packsync",
    help="packsync - versioned modpacks kept in sync with game instances",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger(__name__)


@dataclass
class Workspace:
    """Stores and services opened for one command."""

    config: PacksyncConfig
    store: JsonDocumentStore
    catalog: CatalogStore
    modpacks: ModpackStore
    versions: VersionControl

    def coordinator(self, resolver: DirectDownloadResolver | None = None) -> ImportCoordinator:
        return ImportCoordinator(
            self.store,
            self.catalog,
            self.modpacks,
            self.versions,
            resolver=resolver,
            config=self.config.imports,
        )


def _open(ctx: typer.Context) -> Workspace:
    config: PacksyncConfig = ctx.obj
    store = JsonDocumentStore(config.storage.base_dir)
    catalog = CatalogStore(store)
    modpacks = ModpackStore(store, catalog)
    versions = VersionControl(store, modpacks, catalog)
    for path in store.quarantined:
        console.print(f"[yellow]WARNING: corrupt document moved aside to {path}[/yellow]")
    return Workspace(config, store, catalog, modpacks, versions)


def _fail(message: str) -> NoReturn:
    console.print(f"[red]ERROR: {message}[/red]")
    raise typer.Exit(code=1)


def _print_outcome(outcome: ImportOutcome) -> None:
    if outcome.is_clean and outcome.result is not None:
        result = outcome.result
        console.print(f"[green]Imported into {result.modpack_id}:[/green] {result.get_summary()}")
        for warning in result.warnings:
            console.print(f"  [yellow]- {warning}[/yellow]")
        return

    table = Table(title="Version conflicts", header_style="bold cyan")
    table.add_column("Incoming key", style="cyan")
    table.add_column("Existing record")
    table.add_column("Existing version")
    for conflict in outcome.conflicts:
        table.add_row(conflict.key, conflict.existing.name, conflict.existing.version or "-")
    console.print(table)
    if outcome.token is not None:
        console.print(f"\nPending import token: [bold cyan]{outcome.token.token_id}[/bold cyan]")
        console.print(
            "[dim]Resolve with: packsync resolve <token> --all-existing | --all-new "
            "| --use-new KEY ...[/dim]"
        )


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(None, "--config", "-c", help="YAML config file"),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log threshold: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR",
    ),
    log_filter: str | None = typer.Option(
        None,
        "--log-filter",
        help="Only show logs from these components (comma-separated, e.g. 'reconcile,imports')",
    ),
) -> None:
    """Load configuration and set up logging for every command."""
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]ERROR: Could not load configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    configure_logging(
        level=log_level or config.logging.level,
        json_logs=config.logging.format == "json",
        log_file=config.logging.file,
        log_filter=log_filter,
    )
    ctx.obj = config


# ----------------------------------------------------------------------
# Modpacks
# ----------------------------------------------------------------------


@app.command()
def create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Modpack name"),
    target_version: str = typer.Option("", "--target-version", "-t", help="Game version"),
    loader: str = typer.Option("", "--loader", "-l", help="Mod loader (forge, fabric, ...)"),
    loader_version: str | None = typer.Option(None, "--loader-version"),
    description: str = typer.Option("", "--description", "-d"),
    remote_url: str | None = typer.Option(None, "--remote", help="Manifest URL to sync from"),
) -> None:
    """
    Create an empty modpack.

    Examples:
        packsync create "All The Things" -t 1.20.1 -l forge
    """
    ws = _open(ctx)
    try:
        definition = ws.modpacks.create(
            name,
            target_version=target_version,
            loader=loader,
            loader_version=loader_version,
            description=description,
            remote_url=remote_url,
        )
    except ValueError as e:
        console.print(f"[red]ERROR: Invalid modpack:[/red] {e}")
        raise typer.Exit(code=1) from e
    ws.versions.initialize(definition.id)
    console.print(f"[green]Created modpack[/green] [cyan]{definition.id}[/cyan]")


@app.command("list")
def list_modpacks(ctx: typer.Context) -> None:
    """List modpacks."""
    ws = _open(ctx)
    definitions = ws.modpacks.all()
    if not definitions:
        console.print("[yellow]No modpacks yet[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Game")
    table.add_column("Loader")
    table.add_column("Mods", justify="right")
    table.add_column("Disabled", justify="right", style="yellow")
    for definition in definitions:
        table.add_row(
            definition.id,
            definition.name,
            definition.version,
            definition.target_version or "-",
            definition.loader or "-",
            str(len(definition.member_ids)),
            str(len(definition.disabled_ids)),
        )
    console.print(table)


@app.command()
def show(ctx: typer.Context, modpack_id: str = typer.Argument(...)) -> None:
    """Show a modpack's members."""
    ws = _open(ctx)
    definition = ws.modpacks.get(modpack_id)
    if definition is None:
        _fail(f"Unknown modpack {modpack_id}")

    table = Table(title=f"{definition.name} {definition.version}", header_style="bold cyan")
    table.add_column("Mod ID", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Bucket")
    table.add_column("Enabled", justify="center")
    for record in ws.modpacks.members(modpack_id):
        enabled = definition.is_enabled(record.id)
        table.add_row(
            record.id,
            record.name,
            record.version or "-",
            record.bucket.value,
            "[green]yes[/green]" if enabled else "[yellow]no[/yellow]",
        )
    console.print(table)

    pending = ws.versions.pending_changes(modpack_id) or []
    if pending:
        console.print(f"\n[yellow]{len(pending)} uncommitted changes[/yellow]")


@app.command("add-local")
def add_local(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    files: list[Path] = typer.Argument(..., help="Files to add", exists=True, dir_okay=False),
    bucket: ContentBucket | None = typer.Option(None, "--bucket", "-b"),
) -> None:
    """Register local files and add them to a modpack."""
    ws = _open(ctx)
    result = asyncio.run(ws.coordinator().import_local_files(modpack_id, files, bucket=bucket))
    if result is None:
        _fail(f"Unknown modpack {modpack_id}")
    console.print(
        f"[green]{result.added} added[/green] ({result.registered} new, {result.reused} reused)"
    )
    for warning in result.warnings:
        console.print(f"  [yellow]- {warning}[/yellow]")


@app.command()
def remove(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    mod_id: str = typer.Argument(...),
) -> None:
    """Remove a member from a modpack."""
    ws = _open(ctx)
    if not ws.modpacks.remove_member(modpack_id, mod_id):
        _fail(f"{mod_id} is not a member of {modpack_id}")
    console.print(f"[green]Removed[/green] {mod_id}")


@app.command()
def toggle(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    mod_id: str = typer.Argument(...),
) -> None:
    """Flip a member between enabled and disabled."""
    ws = _open(ctx)
    enabled = ws.modpacks.toggle(modpack_id, mod_id)
    if enabled is None:
        _fail(f"{mod_id} is not a member of {modpack_id}")
    state = "[green]enabled[/green]" if enabled else "[yellow]disabled[/yellow]"
    console.print(f"{mod_id} is now {state}")


@app.command()
def export(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    output: Path = typer.Option(..., "--output", "-o", help="Manifest file to write"),
) -> None:
    """Write a packsync manifest for a modpack."""
    ws = _open(ctx)
    definition = ws.modpacks.get(modpack_id)
    if definition is None:
        _fail(f"Unknown modpack {modpack_id}")
    manifest = export_manifest(definition, ws.modpacks.members(modpack_id))
    output.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    console.print(f"[green]Exported {len(manifest['mods'])} mods to {output}[/green]")


# ----------------------------------------------------------------------
# Versions
# ----------------------------------------------------------------------


@app.command()
def commit(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    message: str = typer.Option(..., "--message", "-m"),
    tag: str | None = typer.Option(None, "--tag", help="Version tag (default: bump patch)"),
) -> None:
    """Record the current membership as a new version."""
    ws = _open(ctx)
    head = ws.versions.head(modpack_id)
    snapshot = ws.versions.commit(modpack_id, message, tag=tag)
    if snapshot is None:
        _fail(f"Unknown modpack {modpack_id}")
    if head is not None and snapshot.id == head.id:
        console.print("[yellow]Nothing to commit[/yellow]")
        return
    console.print(f"[green]Committed[/green] {snapshot.id} ({snapshot.tag})")
    for change in snapshot.changes:
        console.print(f"  {change}")


@app.command()
def log(ctx: typer.Context, modpack_id: str = typer.Argument(...)) -> None:
    """Show the version history of a modpack, newest first."""
    ws = _open(ctx)
    history = ws.versions.history(modpack_id)
    if history is None:
        console.print(f"[yellow]No history for {modpack_id}[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Version", style="cyan")
    table.add_column("Tag")
    table.add_column("Date")
    table.add_column("Message")
    table.add_column("Mods", justify="right")
    table.add_column("Changes", justify="right")
    for snapshot in reversed(history.versions):
        marker = " *" if snapshot.id == history.head_id else ""
        table.add_row(
            f"{snapshot.id}{marker}",
            snapshot.tag,
            snapshot.created_at.strftime("%Y-%m-%d %H:%M"),
            snapshot.message,
            str(len(snapshot.member_ids)),
            str(len(snapshot.changes)),
        )
    console.print(table)


@app.command()
def diff(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    from_id: str = typer.Argument(..., help="Older version id"),
    to_id: str = typer.Argument(..., help="Newer version id"),
) -> None:
    """Show the changes between two versions."""
    ws = _open(ctx)
    changes = ws.versions.diff(modpack_id, from_id, to_id)
    if changes is None:
        _fail(f"Unknown modpack or version ({modpack_id} {from_id}..{to_id})")
    if not changes:
        console.print("[dim]No differences[/dim]")
        return
    for change in changes:
        console.print(f"  {change}")


@app.command()
def rollback(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    version_id: str = typer.Argument(..., help="Version to restore (e.g. v3)"),
    partial: bool = typer.Option(
        False, "--partial", help="Restore only mods still present in the catalog"
    ),
) -> None:
    """Restore an earlier version as a new commit."""
    ws = _open(ctx)
    check = ws.versions.validate_rollback(modpack_id, version_id)
    if check is None:
        _fail(f"Unknown modpack or version ({modpack_id} {version_id})")

    if not check.complete:
        console.print(f"[yellow]{len(check.missing)} mods of {version_id} are gone:[/yellow]")
        for mod_id in check.missing:
            console.print(f"  - {mod_id}")
        if not partial:
            _fail("Pass --partial to restore the remaining mods")

    available = check.available if partial else None
    ws.versions.rollback(modpack_id, version_id, available_mod_ids=available)
    head = ws.versions.head(modpack_id)
    console.print(f"[green]Rolled back.[/green] Head is now {head.id} ({head.tag})")


# ----------------------------------------------------------------------
# Imports
# ----------------------------------------------------------------------


@app.command("import")
def import_manifest(
    ctx: typer.Context,
    manifest_file: Path = typer.Argument(..., exists=True, dir_okay=False),
    into: str | None = typer.Option(None, "--into", help="Existing modpack to import into"),
    mirror: bool = typer.Option(
        False, "--mirror", help="Also remove members the manifest does not list"
    ),
) -> None:
    """
    Import a CurseForge or packsync manifest.

    Examples:
        packsync import manifest.json
        packsync import pack.json --into my-pack-1a2b3c --mirror
    """
    ws = _open(ctx)
    try:
        manifest = parse_manifest(manifest_file.read_bytes())
    except PacksyncError as e:
        console.print(f"[red]ERROR: Invalid manifest:[/red] {e}")
        raise typer.Exit(code=1) from e

    async def run_import() -> ImportOutcome | None:
        async with DirectDownloadResolver(ws.config.http) as resolver:
            return await ws.coordinator(resolver).begin(
                manifest, target_modpack_id=into, mirror=mirror
            )

    outcome = asyncio.run(run_import())
    if outcome is None:
        _fail(f"Unknown modpack {into}")
    _print_outcome(outcome)


@app.command()
def resolve(
    ctx: typer.Context,
    token: str = typer.Argument(..., help="Pending import token"),
    all_existing: bool = typer.Option(False, "--all-existing", help="Keep every local version"),
    all_new: bool = typer.Option(False, "--all-new", help="Take every incoming version"),
    use_new: list[str] = typer.Option([], "--use-new", help="Incoming key to take"),
    use_existing: list[str] = typer.Option([], "--use-existing", help="Incoming key to skip"),
) -> None:
    """Finish an import that stopped on version conflicts."""
    ws = _open(ctx)
    coordinator = ws.coordinator()
    pending = coordinator.get_pending(token)
    if pending is None:
        _fail(f"Unknown or expired token {token}")

    default = None
    if all_existing:
        default = ConflictResolution.USE_EXISTING
    elif all_new:
        default = ConflictResolution.USE_NEW

    resolutions: dict[str, ConflictResolution] = {}
    for conflict in pending.conflicts:
        if conflict.key in use_new:
            resolutions[conflict.key] = ConflictResolution.USE_NEW
        elif conflict.key in use_existing:
            resolutions[conflict.key] = ConflictResolution.USE_EXISTING
        elif default is not None:
            resolutions[conflict.key] = default

    async def run_resolve():
        async with DirectDownloadResolver(ws.config.http) as resolver:
            return await ws.coordinator(resolver).resolve(token, resolutions)

    try:
        result = asyncio.run(run_resolve())
    except PacksyncError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(code=1) from e
    if result is None:
        _fail(f"Unknown or expired token {token}")
    console.print(f"[green]Imported into {result.modpack_id}:[/green] {result.get_summary()}")


@app.command()
def discard(ctx: typer.Context, token: str = typer.Argument(...)) -> None:
    """Drop a pending import."""
    ws = _open(ctx)
    if not ws.coordinator().discard(token):
        _fail(f"Unknown token {token}")
    console.print(f"[green]Discarded[/green] {token}")


@app.command()
def pending(ctx: typer.Context) -> None:
    """List pending imports, dropping expired ones first."""
    ws = _open(ctx)
    coordinator = ws.coordinator()
    purged = coordinator.purge_expired()
    if purged:
        console.print(f"[dim]{purged} expired imports dropped[/dim]")

    tokens = coordinator.pending()
    if not tokens:
        console.print("[yellow]No pending imports[/yellow]")
        return
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Token", style="cyan")
    table.add_column("Manifest")
    table.add_column("Created")
    table.add_column("Conflicts", justify="right", style="yellow")
    for token in tokens:
        table.add_row(
            token.token_id,
            token.manifest.name,
            token.created_at.strftime("%Y-%m-%d %H:%M"),
            str(len(token.conflicts)),
        )
    console.print(table)


@app.command()
def pull(ctx: typer.Context, modpack_id: str = typer.Argument(...)) -> None:
    """Mirror a modpack from its remote manifest."""
    ws = _open(ctx)

    async def run_pull() -> ImportOutcome | None:
        async with (
            DirectDownloadResolver(ws.config.http) as resolver,
            RemoteManifestClient(ws.config.http) as client,
        ):
            remote = RemoteSync(ws.modpacks, ws.coordinator(resolver), client)
            return await remote.pull(modpack_id)

    try:
        outcome = asyncio.run(run_pull())
    except PacksyncError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(code=1) from e
    if outcome is None:
        _fail(f"{modpack_id} is unknown or has no remote source")
    _print_outcome(outcome)


# ----------------------------------------------------------------------
# Instances
# ----------------------------------------------------------------------


@app.command()
def plan(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    instance: Path = typer.Argument(..., help="Instance directory"),
    clear: bool = typer.Option(False, "--clear", help="Plan removal of files not in the modpack"),
    version_id: str | None = typer.Option(None, "--version", help="Plan for an older version"),
) -> None:
    """Show what a sync would do."""
    ws = _open(ctx)
    reconciler = Reconciler(
        ws.catalog, ws.modpacks, DirectDownloadResolver(), ws.config.policy, versions=ws.versions
    )
    try:
        delta = reconciler.plan(modpack_id, instance, clear_existing=clear, version_id=version_id)
    except PacksyncError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(code=1) from e
    if delta is None:
        _fail(f"Unknown modpack or version {modpack_id}")

    if delta.is_empty:
        console.print("[green]Instance is up to date[/green]")
    for ref in delta.missing:
        console.print(f"  [green]+ fetch[/green]  {ref.target.physical_name()}  ({ref.record.id})")
    for item in delta.toggle:
        verb = "enable" if item.want_enabled else "disable"
        console.print(f"  [yellow]~ {verb}[/yellow] {item.file.filename}")
    for file in delta.obsolete:
        console.print(f"  [red]- remove[/red] {file.physical_name()}")
    if delta.untracked:
        console.print(f"\n[dim]{len(delta.untracked)} untracked files kept (use --clear)[/dim]")


@app.command()
def sync(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    instance: Path = typer.Argument(..., help="Instance directory"),
    clear: bool | None = typer.Option(
        None, "--clear/--keep", help="Remove files not in the modpack"
    ),
    overrides: Path | None = typer.Option(None, "--overrides", help="Config overrides directory"),
    config_mode: ConfigSyncMode | None = typer.Option(None, "--config-mode"),
    concurrency: int | None = typer.Option(None, "--concurrency", min=1),
    version_id: str | None = typer.Option(None, "--version", help="Sync an older version"),
) -> None:
    """
    Bring an instance in line with a modpack.

    Examples:
        packsync sync my-pack-1a2b3c ~/.minecraft/instances/mine
        packsync sync my-pack-1a2b3c ./instance --clear --overrides ./overrides
    """
    ws = _open(ctx)
    policy = ws.config.policy
    if config_mode is not None:
        policy.config_sync_mode = config_mode
    if concurrency is not None:
        policy.concurrency = concurrency

    ws.config.storage.base_dir.mkdir(parents=True, exist_ok=True)

    async def run_sync():
        progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
        )
        with progress, ApplyJournal(ws.config.storage.journal_path) as journal:
            task = progress.add_task("[cyan]Fetching...", total=None)

            def on_progress(done: int, total: int) -> None:
                progress.update(task, completed=done, total=total)

            async with DirectDownloadResolver(ws.config.http) as resolver:
                reconciler = Reconciler(
                    ws.catalog, ws.modpacks, resolver, policy, journal=journal, versions=ws.versions
                )
                return await reconciler.sync(
                    modpack_id,
                    instance,
                    clear_existing=clear,
                    overrides_dir=overrides,
                    version_id=version_id,
                    progress=on_progress,
                )

    result = asyncio.run(run_sync())
    if result is None:
        _fail(f"Unknown modpack or version {modpack_id}")

    table = Table(title="Sync Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in result.get_summary().items():
        table.add_row(key, str(value))
    console.print(table)
    for warning in result.warnings:
        console.print(f"[yellow]WARNING: {warning}[/yellow]")
    for error in result.errors:
        console.print(f"[red]- {error}[/red]")

    counters = get_global_collector().get_summary().get("counters", {})
    if counters:
        console.print("\n[dim]Metrics:[/dim]")
        for key, value in sorted(counters.items()):
            console.print(f"  [dim]{key} = {value}[/dim]")
    if not result.success or result.errors:
        raise typer.Exit(code=1)


@app.command()
def status(
    ctx: typer.Context,
    modpack_id: str = typer.Argument(...),
    instance: Path = typer.Argument(..., help="Instance directory"),
) -> None:
    """Check whether an instance needs a sync."""
    ws = _open(ctx)
    reconciler = Reconciler(ws.catalog, ws.modpacks, DirectDownloadResolver(), ws.config.policy)
    try:
        summary = reconciler.status(modpack_id, instance)
    except PacksyncError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(code=1) from e
    if summary is None:
        _fail(f"Unknown modpack {modpack_id}")

    table = Table(title=f"{modpack_id} @ {instance}")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Missing", str(summary.missing))
    table.add_row("To toggle", str(summary.toggle))
    table.add_row("Untracked", str(summary.extra))
    console.print(table)
    if summary.needs_sync:
        console.print(f"\n[yellow]Run: packsync sync {modpack_id} {instance}[/yellow]")
    else:
        console.print("\n[green]Instance is up to date[/green]")


@app.command()
def history(
    ctx: typer.Context,
    limit: int = typer.Option(10, help="Number of recent syncs to show"),
    modpack_id: str | None = typer.Option(None, "--modpack", help="Only syncs of this modpack"),
) -> None:
    """List recent sync sessions from the apply journal."""
    config: PacksyncConfig = ctx.obj
    journal_path = config.storage.journal_path
    if not journal_path.exists():
        console.print("[yellow]WARNING: No journal found[/yellow]")
        console.print(f"Path: {journal_path}")
        return

    with ApplyJournal(journal_path) as journal:
        sessions = journal.get_sessions(limit=limit, modpack_id=modpack_id)

    if not sessions:
        console.print("[yellow]No sync sessions found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Session ID", style="cyan")
    table.add_column("Modpack")
    table.add_column("Start Time")
    table.add_column("Actions", justify="right")
    table.add_column("Success", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    for session in sessions:
        table.add_row(
            session["session_id"],
            session["modpack_id"],
            session["start_time"][:19],
            str(session["total_actions"]),
            str(session["successful"]),
            str(session["failed"]),
        )
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel.fit(
            "[bold]packsync[/bold]\n\n"
            f"Version: [cyan]{__version__}[/cyan]\n\n"
            "[bold]Features:[/bold]\n"
            "- Linear version history with rollback\n"
            "- Instance reconciliation with bounded concurrency\n"
            "- CurseForge and packsync manifest import\n"
            "- Conflict tokens for cross-source imports\n"
            "- SQLite apply journal",
            title="About",
            border_style="blue",
        )
    )
