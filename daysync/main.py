#!/usr/bin/env python3
"""CLI entry point for diary sync."""

import argparse
import logging
import sys
from datetime import date

from keyring.errors import KeyringError
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .core.client import WebDAVError
from .core.credentials import CredentialStore
from .core.crypto import CryptoError, generate_key, validate_key
from .core.engine import BatchResult, SyncEngine
from .core.local import LocalStore
from .core.secrets import SecretStore
from .core.settings import SettingsStore, StorageError
from .models.config import ENCRYPTION_KEY_SECRET, PASSWORD_SECRET, AppSettings
from .models.entry import parse_entry_filename

console = Console()


def build_engine(args: argparse.Namespace) -> SyncEngine:
    """Wire the engine to the diary at --home (or DAYSYNC_HOME)."""
    settings = AppSettings.from_env(args.home)
    credentials = CredentialStore(
        SettingsStore(settings.settings_dir),
        SecretStore(settings.keyring_service),
    )
    return SyncEngine(credentials, LocalStore(settings.diary_dir))


def mask_key(key: str) -> str:
    """Show only the ends of a key."""
    if len(key) <= 16:
        return "*" * len(key)
    return key[:8] + "********" + key[-8:]


def _print_progress(current: int, total: int, filename: str) -> None:
    console.print(f"  [dim][{current}/{total}][/dim] {filename}")


def _report(result: BatchResult, verb: str) -> int:
    """Print a batch result and turn it into an exit code."""
    if result.message:
        console.print(f"[yellow]{result.message}")
        return 0

    for error in result.errors:
        console.print(f"[red]FAILED: {error}")

    style = "green" if result.success else "yellow"
    console.print(f"[{style}]{result.count} file(s) {verb}, {len(result.errors)} failed")
    return 0 if result.success else 1


def cmd_configure(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Show or change the WebDAV settings."""
    credentials = engine.credentials

    if args.reset:
        credentials.reset()
        console.print("[green]Sync settings and secrets removed")
        return 0

    if args.key:
        try:
            validate_key(args.key)
        except CryptoError as e:
            console.print(f"[red]Invalid encryption key: {e}")
            return 1

    config = credentials.load()
    changed = False

    if args.url is not None:
        config.url = args.url.strip()
        changed = True
    if args.username is not None:
        config.username = args.username.strip()
        changed = True
    if args.enable is not None:
        config.enabled = args.enable
        changed = True
    if args.encrypt is not None:
        if args.encrypt and not credentials.get_encryption_key() and not args.key:
            console.print("[red]Generate or set an encryption key before enabling encryption")
            console.print("  daysync keygen")
            return 1
        config.encryption_enabled = args.encrypt
        changed = True

    password = None
    if args.password:
        password = Prompt.ask("WebDAV password", password=True, console=console)

    if changed or password is not None or args.key:
        credentials.save(config, password=password, encryption_key=args.key)
        console.print("[green]Settings saved")
        if args.encrypt is False:
            console.print(
                "[yellow]Future uploads will be plain text. "
                "Files already encrypted on the server stay encrypted."
            )

    table = Table(title="WebDAV Sync")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("URL", config.url or "[dim]unset")
    table.add_row("Username", config.username or "[dim]unset")
    table.add_row("Enabled", "yes" if config.enabled else "no")
    table.add_row("Encryption", "yes" if config.encryption_enabled else "no")
    table.add_row("Password stored", "yes" if credentials.secrets.has_secret(PASSWORD_SECRET) else "no")
    table.add_row("Key stored", "yes" if credentials.secrets.has_secret(ENCRYPTION_KEY_SECRET) else "no")
    table.add_row("Last sync", engine.last_sync_time() or "[dim]Never")
    console.print(table)
    return 0


def cmd_keygen(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Generate and store a new encryption key."""
    credentials = engine.credentials
    if credentials.get_encryption_key() and not args.force:
        console.print("[yellow]An encryption key is already stored. Use --force to replace it.")
        console.print("Files encrypted with the old key cannot be read with a new one.")
        return 1

    key = generate_key()
    credentials.store_encryption_key(key)
    console.print("[green]New encryption key stored in the keyring")
    console.print(f"Key: {key if args.show else mask_key(key)}")
    console.print("[bold yellow]Keep a copy of this key. Without it, encrypted entries cannot be recovered.")
    return 0


def cmd_verify(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Probe the WebDAV server with the stored settings."""
    console.print("Verifying WebDAV connection...", style="blue")
    try:
        if engine.verify_connection():
            console.print("[green]Connection successful! WebDAV server is reachable")
            return 0
        console.print("[red]Connection failed: server rejected the request or no URL is set")
    except WebDAVError as e:
        console.print(f"[red]Could not reach WebDAV server: {e}")
    return 1


def cmd_status(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Show which entries exist on only one side."""
    if not engine.is_configured():
        console.print("[yellow]WebDAV sync is not configured")
        return 0

    status = engine.check_sync_status()
    if status.in_sync:
        console.print("[green]Local diary and server are in sync")
    else:
        table = Table(title="Files Not in Sync")
        table.add_column("File")
        table.add_column("Location")
        for name in sorted(status.local_only):
            table.add_row(name, "[blue]only on device")
        for name in sorted(status.remote_only):
            table.add_row(name, "[magenta]only on server")
        console.print(table)

    console.print(f"[dim]Last sync: {engine.last_sync_time() or 'Never'}")
    return 0


def cmd_push(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Upload entries that are missing on the server."""
    console.print("Uploading to WebDAV...", style="blue")
    return _report(engine.sync_all_to_webdav(_print_progress), "uploaded")


def cmd_pull(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Download entries that are missing locally."""
    console.print("Importing from WebDAV...", style="blue")
    return _report(engine.import_from_webdav(_print_progress), "imported")


def cmd_sync(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Upload, then download."""
    push_code = cmd_push(args, engine)
    pull_code = cmd_pull(args, engine)
    return push_code or pull_code


def cmd_list(args: argparse.Namespace, engine: SyncEngine) -> int:
    """List local entries."""
    names = sorted(engine.local.list_files(), reverse=True)
    if not names:
        console.print("[dim]No entries yet")
        return 0

    table = Table(title="Entries")
    table.add_column("Date", style="cyan")
    table.add_column("Title")
    table.add_column("File", style="dim")
    for name in names:
        entry = parse_entry_filename(name)
        table.add_row(entry.date, entry.title, name)
    console.print(table)
    return 0


def cmd_new(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Write an entry and upload it in the background."""
    content = args.text if args.text is not None else sys.stdin.read()
    try:
        filename = engine.local.save_entry(
            date=args.date or date.today().isoformat(),
            title=args.title,
            content=content,
            previous_filename=args.replace,
        )
    except ValueError as e:
        console.print(f"[red]{e}")
        return 1

    console.print(f"[green]Entry saved: {filename}")

    uploaded = engine.sync_after_save(filename)
    removed = engine.sync_after_delete(args.replace) if args.replace and args.replace != filename else None

    # The process is about to exit, so wait for the background work here.
    if uploaded.result():
        console.print("[dim]Uploaded to WebDAV")
    if removed is not None:
        removed.result()
    return 0


def cmd_delete(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Delete an entry locally and remove it from the server in the background."""
    engine.local.delete(args.filename)
    console.print(f"[green]Deleted {args.filename}")
    if engine.sync_after_delete(args.filename).result():
        console.print("[dim]Removed from WebDAV")
    return 0


def cmd_wipe(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Delete every local entry, leaving the server untouched."""
    count = len(engine.local.list_files())
    if not count:
        console.print("[dim]No local entries to delete")
        return 0

    if not args.yes and not Confirm.ask(
        f"Delete all {count} local entries? Files on the server are kept", console=console
    ):
        console.print("Cancelled")
        return 1

    deleted = engine.local.wipe()
    console.print(f"[green]Deleted {deleted} local entries")
    console.print("[dim]Run `daysync pull` to import them again from WebDAV")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="daysync",
        description="Sync diary entries with a WebDAV folder",
    )
    parser.add_argument("--home", help="Diary data directory (default: $DAYSYNC_HOME or ~/.daysync)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # configure command
    configure_parser = subparsers.add_parser("configure", help="Show or change WebDAV settings")
    configure_parser.add_argument("--url", help="WebDAV folder URL")
    configure_parser.add_argument("--username", help="WebDAV username")
    configure_parser.add_argument("--password", action="store_true", help="Prompt for the WebDAV password")
    configure_parser.add_argument("--key", help="Use this base64 encryption key")
    enable_group = configure_parser.add_mutually_exclusive_group()
    enable_group.add_argument("--enable", dest="enable", action="store_true", default=None)
    enable_group.add_argument("--disable", dest="enable", action="store_false")
    encrypt_group = configure_parser.add_mutually_exclusive_group()
    encrypt_group.add_argument("--encrypt", dest="encrypt", action="store_true", default=None)
    encrypt_group.add_argument("--no-encrypt", dest="encrypt", action="store_false")
    configure_parser.add_argument("--reset", action="store_true", help="Remove all settings and secrets")

    # keygen command
    keygen_parser = subparsers.add_parser("keygen", help="Generate an encryption key")
    keygen_parser.add_argument("--force", action="store_true", help="Replace an existing key")
    keygen_parser.add_argument("--show", action="store_true", help="Print the full key")

    subparsers.add_parser("verify", help="Verify WebDAV connection")
    subparsers.add_parser("status", help="Show sync status")
    subparsers.add_parser("push", help="Upload entries missing on the server")
    subparsers.add_parser("pull", help="Download entries missing locally")
    subparsers.add_parser("sync", help="Upload then download")
    subparsers.add_parser("list", help="List local entries")

    # new command
    new_parser = subparsers.add_parser("new", help="Write an entry (content from --text or stdin)")
    new_parser.add_argument("title", help="Entry title")
    new_parser.add_argument("--date", help="Entry date (default: today)")
    new_parser.add_argument("--text", help="Entry content")
    new_parser.add_argument("--replace", help="Existing filename this entry replaces")

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete an entry")
    delete_parser.add_argument("filename", help="Entry filename")

    # wipe command
    wipe_parser = subparsers.add_parser("wipe", help="Delete all local entries (server copies are kept)")
    wipe_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    commands = {
        "configure": cmd_configure,
        "keygen": cmd_keygen,
        "verify": cmd_verify,
        "status": cmd_status,
        "push": cmd_push,
        "pull": cmd_pull,
        "sync": cmd_sync,
        "list": cmd_list,
        "new": cmd_new,
        "delete": cmd_delete,
        "wipe": cmd_wipe,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    with build_engine(args) as engine:
        try:
            return command(args, engine)
        except StorageError as e:
            console.print(f"[red]Storage error: {e}")
            return 1
        except KeyringError as e:
            console.print(f"[red]Keyring error: {e}")
            return 1


if __name__ == "__main__":
    sys.exit(main())
