#!/usr/bin/env python3
# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "typer",
#     "rich",
#     "readchar",
#     "httpx",
#     "truststore",
# ]
# ///
"""
create-seniman - Start a new app from a Seniman example

Usage:
    uvx create-seniman

Or install globally:
    uv tool install create-seniman
    create-seniman

Lists the example apps in the senimanjs/seniman repository, lets you pick
one and clones its folder into a new local directory.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import typer
import httpx
from rich.console import Console
from rich.panel import Panel
from rich.live import Live
from rich.table import Table
from rich.text import Text
from rich.markup import escape

# For cross-platform keyboard input
import readchar
import ssl
import truststore

ssl_context = truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)


def _github_token() -> str | None:
    """Return sanitized GitHub token from the environment or None."""
    return ((os.getenv("GH_TOKEN") or os.getenv("GITHUB_TOKEN") or "").strip()) or None


def _github_auth_headers() -> dict:
    """Return Authorization header dict only when a non-empty token exists."""
    token = _github_token()
    return {"Authorization": f"Bearer {token}"} if token else {}


# Constants
REPO_OWNER = "senimanjs"
REPO_NAME = "seniman"
EXAMPLES_PATH = "examples"
API_URL = f"https://api.github.com/repos/{REPO_OWNER}/{REPO_NAME}/contents/{EXAMPLES_PATH}"
HTML_URL = f"https://github.com/{REPO_OWNER}/{REPO_NAME}/tree/main/{EXAMPLES_PATH}"

# Example apps surfaced at the top of the list, in this order
PRIORITY_TEMPLATES = ("hello-world", "counter", "routing-basic", "login-basic", "mini-ecommerce")

PAGE_SIZE = 15
MAX_CLONE_DEPTH = 32
REQUEST_TIMEOUT = 30

TAGLINE = "create-seniman"


class CreateSenimanError(RuntimeError):
    """Base class for failures reported by create-seniman."""


class FetchError(CreateSenimanError):
    """A remote directory listing could not be fetched."""


class DownloadError(CreateSenimanError):
    """A single file could not be fetched or written."""


class TargetExistsError(CreateSenimanError):
    """The chosen target folder is already on disk."""

    def __init__(self, folder: str):
        self.folder = folder
        super().__init__(f'Folder "{folder}" already exists. Please choose a different name.')


@dataclass(frozen=True)
class RemoteEntry:
    """One item of a GitHub contents listing."""

    name: str
    kind: str  # 'file', 'dir', or whatever else the API reports
    locator: Optional[str] = None

    @classmethod
    def from_api(cls, item: dict) -> "RemoteEntry":
        kind = item.get("type", "")
        if kind == "file":
            locator = item.get("download_url")
        else:
            locator = item.get("url")
        return cls(name=item["name"], kind=kind, locator=locator)


@dataclass
class CloneStats:
    """Outcome of a recursive clone."""

    downloaded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    directories: int = 0


class Separator:
    """Non-selectable divider shown between promoted and remaining templates."""

    def __init__(self, line: str = "------------"):
        self.line = line

    def __str__(self):
        return self.line

    def __repr__(self):
        return f"Separator({self.line!r})"


SEPARATOR = Separator()

Choice = Union[str, Separator]


console = Console()


def build_client() -> httpx.Client:
    """Create the HTTP client used for one run (OS trust store, GitHub headers)."""
    headers = {"Accept": "application/vnd.github+json"}
    headers.update(_github_auth_headers())
    return httpx.Client(verify=ssl_context, headers=headers, timeout=REQUEST_TIMEOUT)


def fetch_directory_contents(github_path: str, *, client: httpx.Client = None) -> list[RemoteEntry]:
    """List a directory through the GitHub contents API.

    Raises FetchError on transport errors, non-200 responses or an
    unexpected payload. Listing failures are never retried.
    """
    if client is None:
        client = build_client()

    try:
        response = client.get(github_path, follow_redirects=True)
    except httpx.HTTPError as e:
        raise FetchError(f"Error fetching directory contents from {github_path}: {e}") from e

    if response.status_code != 200:
        raise FetchError(f"GitHub API returned {response.status_code} for {github_path}")
    try:
        payload = response.json()
    except ValueError as je:
        raise FetchError(f"Failed to parse directory listing JSON: {je}\nRaw (truncated 400): {response.text[:400]}") from je
    if not isinstance(payload, list):
        raise FetchError(f"Expected a directory listing at {github_path}")

    return [RemoteEntry.from_api(item) for item in payload]


def fetch_directory_names(*, client: httpx.Client = None) -> list[str]:
    """Return the names of the example apps (top-level directories)."""
    entries = fetch_directory_contents(API_URL, client=client)
    return [entry.name for entry in entries if entry.kind == "dir"]


def _fetch_file(file_url: str, file_path: Path, client: httpx.Client) -> None:
    try:
        response = client.get(file_url, follow_redirects=True)
        if response.status_code != 200:
            raise DownloadError(f"Download failed with {response.status_code}: {file_url}")
        file_path.write_bytes(response.content)
    except (httpx.HTTPError, OSError) as e:
        raise DownloadError(f"Error downloading file: {file_url} ({e})") from e


def download_file(file_url: str, file_path: Path, *, client: httpx.Client = None) -> bool:
    """Download one file, overwriting whatever is at file_path.

    Failures are printed and swallowed so the rest of the clone goes on.
    Returns True when the file was written.
    """
    if client is None:
        client = build_client()

    try:
        if not file_url:
            raise DownloadError(f"No download URL for {file_path}")
        _fetch_file(file_url, file_path, client)
    except DownloadError as e:
        console.print(f"[red]{escape(str(e))}[/red]", soft_wrap=True)
        return False

    console.print(f"[dim]Downloaded {escape(str(file_path))}[/dim]", soft_wrap=True)
    return True


def clone_directory_recursive(github_path: str, local_path: Path, *, client: httpx.Client = None, depth: int = 0, stats: CloneStats | None = None) -> CloneStats:
    """Mirror a remote directory into local_path, depth-first in API order."""
    if client is None:
        client = build_client()
    if stats is None:
        stats = CloneStats()
    if depth > MAX_CLONE_DEPTH:
        raise FetchError(f"Directory tree deeper than {MAX_CLONE_DEPTH} levels at {github_path}")

    local_path = Path(local_path)
    local_path.mkdir(parents=True, exist_ok=True)
    stats.directories += 1

    contents = fetch_directory_contents(github_path, client=client)

    for item in contents:
        item_local_path = local_path / item.name

        if item.kind == "file":
            if download_file(item.locator, item_local_path, client=client):
                stats.downloaded.append(str(item_local_path))
            else:
                stats.failed[str(item_local_path)] = item.locator or ""
        elif item.kind == "dir":
            clone_directory_recursive(item.locator, item_local_path, client=client, depth=depth + 1, stats=stats)
        # symlinks and submodules have no content to mirror

    return stats


def clone_directory(template: str, target_folder: str, *, client: httpx.Client = None) -> CloneStats:
    """Clone the example app `template` into `target_folder`."""
    github_path = f"{API_URL}/{template}"
    return clone_directory_recursive(github_path, Path(target_folder), client=client)


def build_template_choices(names: list[str]) -> list[Choice]:
    """Promoted templates first (fixed order), a separator, then the rest as given."""
    promoted = [name for name in PRIORITY_TEMPLATES if name in names]
    remaining = [name for name in names if name not in PRIORITY_TEMPLATES]
    return promoted + [SEPARATOR] + remaining


def get_key():
    """Get a single keypress in a cross-platform way using readchar."""
    key = readchar.readkey()

    # Arrow keys
    if key == readchar.key.UP:
        return 'up'
    if key == readchar.key.DOWN:
        return 'down'

    # Enter/Return
    if key == readchar.key.ENTER:
        return 'enter'

    # Escape
    if key == readchar.key.ESC:
        return 'escape'

    # Ctrl+C
    if key == readchar.key.CTRL_C:
        raise KeyboardInterrupt

    return key


def _step(choices: list[Choice], index: int, delta: int) -> int:
    """Move to the next selectable choice in direction delta, wrapping around."""
    for _ in range(len(choices)):
        index = (index + delta) % len(choices)
        if not isinstance(choices[index], Separator):
            return index
    return index


def _visible_window(total: int, selected_index: int, page_size: int) -> tuple[int, int]:
    if total <= page_size:
        return 0, total
    start = min(max(selected_index - page_size // 2, 0), total - page_size)
    return start, start + page_size


def select_with_arrows(choices: list[Choice], prompt_text: str = "Select an option", page_size: int = PAGE_SIZE) -> str:
    """
    Interactive single-choice list using arrow keys with Rich Live display.

    Args:
        choices: Selectable names, optionally interleaved with Separator markers
        prompt_text: Text to show above the options
        page_size: Number of rows shown at once

    Returns:
        Selected choice
    """
    if not any(not isinstance(c, Separator) for c in choices):
        raise ValueError("No selectable choices")

    selected_index = _step(choices, -1, 1)
    selected_key = None

    def create_selection_panel():
        """Create the selection panel with current selection highlighted."""
        table = Table.grid(padding=(0, 2))
        table.add_column(style="cyan", justify="left", width=3)
        table.add_column(style="white", justify="left")

        start, end = _visible_window(len(choices), selected_index, page_size)
        for i in range(start, end):
            choice = choices[i]
            if isinstance(choice, Separator):
                table.add_row(" ", f"[dim]{choice}[/dim]")
            elif i == selected_index:
                table.add_row("▶", f"[cyan]{choice}[/cyan]")
            else:
                table.add_row(" ", f"{choice}")

        table.add_row("", "")
        table.add_row("", "[dim]Use ↑/↓ to navigate, Enter to select, Esc to cancel[/dim]")

        return Panel(
            table,
            title=f"[bold]{prompt_text}[/bold]",
            border_style="cyan",
            padding=(1, 2)
        )

    console.print()

    with Live(create_selection_panel(), console=console, transient=True, auto_refresh=False) as live:
        while True:
            try:
                key = get_key()
                if key == 'up':
                    selected_index = _step(choices, selected_index, -1)
                elif key == 'down':
                    selected_index = _step(choices, selected_index, 1)
                elif key == 'enter':
                    selected_key = choices[selected_index]
                    break
                elif key == 'escape':
                    console.print("\n[yellow]Selection cancelled[/yellow]")
                    raise typer.Exit(1)

                live.update(create_selection_panel(), refresh=True)

            except KeyboardInterrupt:
                console.print("\n[yellow]Selection cancelled[/yellow]")
                raise typer.Exit(1)

    console.print(f"[cyan]{prompt_text}[/cyan] {selected_key}")
    return selected_key


def select_template(names: list[str]) -> str:
    """Ask which example app to clone."""
    if not names:
        raise FetchError(f"No example apps found at {HTML_URL}")
    return select_with_arrows(build_template_choices(names), "Choose an example app to clone:")


def choose_target_folder(default_name: str) -> str:
    """Ask for the target folder, pre-filled with default_name."""
    while True:
        answer = typer.prompt("Enter the target folder name", default=default_name).strip()
        if answer:
            return answer
        console.print("[yellow]Folder name cannot be empty[/yellow]")


def show_banner():
    """Display the tool banner."""
    console.print(Text(TAGLINE, style="bold"))


app = typer.Typer(
    name="create-seniman",
    help="Create a new Seniman app from one of the official examples",
    add_completion=False,
)


@app.command()
def create():
    """
    Clone a Seniman example app into a new folder.

    This command will:
    1. Fetch the list of example apps from GitHub
    2. Let you choose an example app and a target folder name
    3. Download the example's files into that folder
    """
    show_banner()
    console.print(f"Loading Seniman example apps from {HTML_URL} ...", soft_wrap=True)
    console.print("========")

    try:
        with build_client() as client:
            directories = fetch_directory_names(client=client)

            selected_app = select_template(directories)
            target_folder = choose_target_folder(selected_app)

            if Path(target_folder).exists():
                raise TargetExistsError(target_folder)

            console.print(f"Cloning from {HTML_URL}/{selected_app}", soft_wrap=True)
            stats = clone_directory(selected_app, target_folder, client=client)
    except typer.Exit:
        raise
    except typer.Abort:
        console.print("\n[yellow]Cancelled[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(Panel(f"An error occurred: {escape(str(e))}", title="Failure", border_style="red"))
        raise typer.Exit(1)

    console.print(
        f"\n[bold green]Successfully cloned {selected_app} into {target_folder}[/bold green] "
        f"[dim]({len(stats.downloaded)} files, {stats.directories} directories)[/dim]",
        soft_wrap=True,
    )

    if stats.failed:
        failed_lines = [f"  - {escape(path)}" for path in stats.failed]
        console.print(Panel(
            f"{len(stats.failed)} file(s) could not be downloaded:\n" + "\n".join(failed_lines),
            title="[yellow]Incomplete Clone[/yellow]",
            border_style="yellow",
            padding=(1, 2)
        ))


def main():
    app()


if __name__ == "__main__":
    main()
