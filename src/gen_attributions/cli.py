"""Command-line interface for gen_attributions.

Provides the main entry point and subcommands for generating a Go module's
license attribution document and printing its dependency tree.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from gen_attributions.errors import AttributionError
from gen_attributions.graph import GraphBuilder
from gen_attributions.models import AttributionsFile, DependencyTree
from gen_attributions.reporters import DEFAULT_HEADER, MarkdownReporter
from gen_attributions.resolvers import (
    ModuleContentResolver,
    ModuleProxyFetcher,
    SPDXClassifier,
    proxy_from_env,
)
from gen_attributions.resolvers.spdx import DEFAULT_THRESHOLD, UNKNOWN_LICENSE
from gen_attributions.scanners import get_scanner

app = typer.Typer(
    name="gen-attributions",
    help="Generate license attribution documents for Go modules.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("gen_attributions")


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("gen_attributions").setLevel(level)


async def _build_tree(
    modfile: Path,
    depth: int,
    lenient: bool,
    proxy: Optional[str],
    threshold: float,
) -> DependencyTree:
    """Parse a go.mod file and build its licensed dependency tree.

    This is shared logic used by both the gen and tree commands.

    Args:
        modfile: Path to the root go.mod file.
        depth: Maximum number of dependency levels to expand.
        lenient: Degrade instead of failing on download errors and
            missing licenses.
        proxy: Module proxy URL, or None to read GOPROXY.
        threshold: License classification threshold.

    Returns:
        The resolved dependency tree.

    Raises:
        ValueError: If the file is not a supported manifest.
        AttributionError: On any fatal resolution error.
    """
    scanner = get_scanner(modfile)
    root = scanner.scan()

    proxy_url = proxy or proxy_from_env()
    logger.debug("Using module proxy %s", proxy_url)

    async with ModuleProxyFetcher(proxy_url=proxy_url) as fetcher:
        builder = GraphBuilder(
            content_resolver=ModuleContentResolver(fetcher, scanner=scanner),
            classifier=SPDXClassifier(threshold=threshold),
            lenient=lenient,
        )
        return await builder.build(root, max_depth=depth)


def _run_build(
    modfile: Path,
    depth: int,
    lenient: bool,
    proxy: Optional[str],
    threshold: float,
) -> DependencyTree:
    """Run the build behind a spinner, exiting with code 1 on errors."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True,
    ) as progress:
        task = progress.add_task("Resolving dependencies and licenses...", total=None)

        try:
            tree = asyncio.run(
                _build_tree(
                    modfile=modfile,
                    depth=depth,
                    lenient=lenient,
                    proxy=proxy,
                    threshold=threshold,
                )
            )
        except (ValueError, AttributionError) as e:
            err_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=1)

        progress.update(task, completed=True)

    return tree


ModfileOption = Annotated[
    Path,
    typer.Option(
        "--modfile",
        "-m",
        help="Path to the root go.mod file",
    ),
]
DepthOption = Annotated[
    int,
    typer.Option(
        "--depth",
        "-d",
        min=0,
        help="Number of dependency levels to expand below the root module",
    ),
]
LenientOption = Annotated[
    bool,
    typer.Option(
        "--lenient",
        help="Use an Unknown placeholder instead of failing on missing licenses "
        "and download errors",
    ),
]
ProxyOption = Annotated[
    Optional[str],
    typer.Option(
        "--proxy",
        help="Go module proxy URL (defaults to the first usable GOPROXY entry)",
    ),
]
ThresholdOption = Annotated[
    float,
    typer.Option(
        "--threshold",
        min=0.01,
        max=1.0,
        help="Minimum confidence for license classification",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
]


@app.command()
def gen(
    modfile: ModfileOption = Path("go.mod"),
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path",
        ),
    ] = Path("ATTRIBUTION.md"),
    depth: DepthOption = 1,
    lenient: LenientOption = False,
    proxy: ProxyOption = None,
    threshold: ThresholdOption = DEFAULT_THRESHOLD,
    header: Annotated[
        Optional[Path],
        typer.Option(
            "--header",
            help="File whose content is placed at the top of the document",
            exists=True,
            readable=True,
        ),
    ] = None,
    template: Annotated[
        Optional[Path],
        typer.Option(
            "--template",
            "-t",
            help="Custom Jinja2 template file",
            exists=True,
            readable=True,
        ),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Generate a license attribution document.

    Resolves the dependency graph of a go.mod file, classifies the license
    of every module and writes a Markdown attribution document.
    """
    _setup_logging(verbose)

    tree = _run_build(modfile, depth, lenient, proxy, threshold)

    modules = tree.unique_modules()
    console.print(f"Found [bold]{len(modules)}[/bold] modules")

    unknown = [m for m in modules if m.license_name == UNKNOWN_LICENSE]
    if unknown:
        console.print(
            f"[yellow]Unknown licenses ({len(unknown)}), review required:[/yellow]"
        )
        for node in unknown:
            console.print(f"  - {node.version}")

    header_text = header.read_text(encoding="utf-8") if header else DEFAULT_HEADER
    reporter = MarkdownReporter(template_path=template)

    try:
        reporter.write(AttributionsFile(header=header_text, tree=tree), output)
    except OSError as e:
        err_console.print(f"[red]Error writing output:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]Generated:[/green] {output}")


@app.command()
def tree(
    modfile: ModfileOption = Path("go.mod"),
    depth: DepthOption = 1,
    lenient: LenientOption = False,
    proxy: ProxyOption = None,
    threshold: ThresholdOption = DEFAULT_THRESHOLD,
    verbose: VerboseOption = False,
) -> None:
    """Print the licensed dependency tree of a go.mod file."""
    _setup_logging(verbose)

    dependency_tree = _run_build(modfile, depth, lenient, proxy, threshold)
    typer.echo(dependency_tree.render(), nl=False)


if __name__ == "__main__":
    app()
