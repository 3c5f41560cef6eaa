#!/usr/bin/env python3
"""
mdpress - Markdown to publishable document engine

Renders an extended markdown document (callouts, footnotes, block anchors,
math, wiki links) into a standalone HTML page plus canonical markdown and a
table of contents.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Outputs:
    - index.html: The element tree (with TOC) as a standalone page
    - document.md: Canonical markdown, parses back to the same tree
    - toc.md: Rendered table of contents (when enabled)
    - widgets.json: Rasterization requests (with --dryRunWidgets)

Usage:
    mdpress inputdir/ outputdir/ --inputFile notes.md

Examples:
    # Basic render
    mdpress . output/ --inputFile notes.md

    # With a settings profile and an output subdirectory
    mdpress . output/ --inputFile notes.md --settingsFile profile.yaml --outputSubdir site/

    # List the widgets a rasterizer would be asked for
    mdpress . output/ --inputFile notes.md --dryRunWidgets -vv
"""

import html
import json
import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .config import settings_resolve
from .lib import __version__, document_load, document_segment, render, LOG, WARN, state_connectToLogger
from .lib.collaborators import RecordingRasterizer
from .lib.errors import SettingsError
from .models import ProgramState, pipeline, html_render


HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
{body}
</body>
</html>
"""

# Define CLI arguments
parser = ArgumentParser(
    description="mdpress - Markdown to publishable document engine",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile", required=True, type=str, help="Input markdown file (relative to inputdir)"
)

parser.add_argument(
    "--settingsFile",
    default=None,
    type=str,
    help="YAML settings profile. Defaults to MDPRESS_* environment variables",
)

parser.add_argument(
    "--outputSubdir",
    default=".",
    type=str,
    help="Subdirectory within outputdir for the rendered files",
)

parser.add_argument(
    "--dryRunWidgets",
    action="store_true",
    default=False,
    help="Record the widgets a rasterizer would produce in widgets.json",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve all file paths.

    Verifies that the input file exists, loads the settings profile and
    creates the output directory.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - inputSourceFile: Resolved path to the markdown input
            - renderSettings: Settings in effect
            - htmlOutputdir: Created output directory path
            - envOK: True if environment is valid

    Exits:
        1 if the input file is missing or the settings profile is invalid
    """

    state = inputstate.copy()

    LOG("Checking environment...", level=2)

    input_file = state.inputdir / state.inputFile

    if not input_file.exists():
        print(f"Error: Input file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.inputSourceFile = input_file
    LOG(f"Input file: {input_file}", level=2)

    settings_file = None
    if state.settingsFile:
        settings_file = Path(state.settingsFile)
        if not settings_file.is_absolute():
            settings_file = state.inputdir / settings_file

    try:
        state.renderSettings = settings_resolve(settings_file)
    except SettingsError as e:
        print(f"Error: {e}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    LOG(f"Settings: {settings_file or 'environment defaults'}", level=2)

    state.htmlOutputdir = state.outputdir / state.outputSubdir
    state.htmlOutputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.htmlOutputdir}", level=2)

    state.envOK = True
    return state


def source_parse(inputstate: ProgramState) -> ProgramState:
    """
    Read the markdown source and segment it into blocks.

    Args:
        inputstate: Program state with inputSourceFile path set

    Returns:
        ProgramState with added fields:
            - sourceText: Document text
            - blockCount: Number of blocks found

    Exits:
        1 if the file cannot be read
    """

    state = inputstate.copy()

    LOG("Reading source file...", level=1)

    try:
        state.sourceText = document_load(state.inputSourceFile)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)

    blocks = document_segment(state.sourceText, state.renderSettings)
    state.blockCount = len(blocks)
    LOG(f"Segmented {state.inputSourceFile.name} into {state.blockCount} blocks", level=2)
    return state


def document_build(inputstate: ProgramState) -> ProgramState:
    """
    Render the document into an element tree and canonical markdown.

    Without --dryRunWidgets no rasterizer is available and every widget is
    rendered natively.

    Args:
        inputstate: Program state with sourceText

    Returns:
        ProgramState with added fields:
            - renderResult: RenderResult of the document
            - rasterRequests: Asset paths requested (dry runs only)

    Exits:
        1 if no source text is available
    """

    state = inputstate.copy()

    LOG("Rendering document...", level=1)

    if state.sourceText is None:
        print("Error: No source text available", file=sys.stderr)
        sys.exit(1)

    rasterizer = RecordingRasterizer() if state.dryRunWidgets else None
    state.renderResult = render(state.sourceText, state.renderSettings, rasterizer=rasterizer)

    if rasterizer is not None:
        state.rasterRequests = [request.asset_path for request in rasterizer.requests]
        LOG(f"Recorded {len(state.rasterRequests)} widget requests", level=2)

    for issue in state.renderResult.issues:
        WARN(f"Lines {issue.line_start + 1}-{issue.line_end + 1}: {issue.message}")
    return state


def results_write(inputstate: ProgramState) -> ProgramState:
    """
    Write the rendered artifacts to the output directory.

    Args:
        inputstate: Program state with renderResult populated

    Returns:
        ProgramState with added field:
            - outputFiles: Paths written, keyed by role ("html", "markdown",
              "toc", "widgets")

    Exits:
        1 if there is nothing to write or writing fails
    """

    state = inputstate.copy()
    result = state.renderResult
    if result is None:
        print("Error: Render failed", file=sys.stderr)
        sys.exit(1)

    title = result.document.title or state.inputSourceFile.stem
    files = {
        "html": (
            "index.html",
            HTML_TEMPLATE.format(title=html.escape(title), body=html_render(result.tree_withToc())),
        ),
        "markdown": ("document.md", result.canonical_markdown),
    }
    if result.toc_markdown:
        files["toc"] = ("toc.md", result.toc_markdown)
    if state.dryRunWidgets:
        files["widgets"] = ("widgets.json", json.dumps(state.rasterRequests, indent=2) + "\n")

    state.outputFiles = {}
    try:
        for role, (name, content) in files.items():
            path = state.htmlOutputdir / name
            path.write_text(content, encoding="utf-8")
            state.outputFiles[role] = path
            LOG(f"Wrote {path}", level=2)
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        sys.exit(1)
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display render results to the user.

    Args:
        inputstate: Program state with renderResult and outputFiles populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if renderResult is None
    """
    state: ProgramState = inputstate.copy()
    if state.renderResult is None:
        print("Error: Render failed", file=sys.stderr)
        sys.exit(1)

    result = state.renderResult
    LOG("\n✓ Render successful!", level=1)
    if result.document.title:
        LOG(f"  Title:     {result.document.title}", level=1)
    LOG(f"  Blocks:    {state.blockCount}", level=1)
    LOG(f"  Footnotes: {len(result.footnotes)}", level=1)
    LOG(f"  Issues:    {len(result.issues)}", level=1)
    for role, path in state.outputFiles.items():
        LOG(f"  {role + ':': <10} {path}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="mdpress - Markdown to publishable document engine",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - render a markdown document to HTML and canonical markdown.

    Orchestrates the full pipeline:
        1. env_check: Validate paths, load settings
        2. source_parse: Read and segment the source
        3. document_build: Render element tree, markdown and TOC
        4. results_write: Write index.html, document.md, toc.md
        5. results_report: Display results to user

    Args:
        options: CLI arguments from argparse
            - inputFile: str - Input markdown filename
            - settingsFile: Optional[str] - YAML settings profile
            - outputSubdir: str - Output subdirectory name
            - dryRunWidgets: bool - Record rasterization requests
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Directory containing markdown source files
        outputdir: Directory where rendered files will be written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, source_parse, document_build, results_write, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
