"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, List, Dict, Callable, TYPE_CHECKING
from dataclasses import dataclass, field

# Forward references for type hints - avoid circular import
if TYPE_CHECKING:
    from ..config.settings import RenderSettings
    from .render import RenderResult


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the render pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as the render progresses.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, inputFile, settingsFile,
          outputSubdir, dryRunWidgets
        - env_check: inputSourceFile, htmlOutputdir, renderSettings, envOK
        - source_parse: sourceText, blockCount
        - document_build: renderResult, rasterRequests
        - results_write: outputFiles
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory containing the source markdown file
        outputdir: Base output directory for rendered files
        verbosity: Logging verbosity level (1-3)
        inputFile: Input markdown filename (relative to inputdir)
        settingsFile: Optional YAML settings profile
        outputSubdir: Subdirectory within outputdir for output
        dryRunWidgets: Record rasterization requests instead of skipping them
        envOK: Environment validation passed
        inputSourceFile: Resolved path to the input file
        htmlOutputdir: Final output directory (outputdir + outputSubdir)
        renderSettings: Settings in effect for this run
        sourceText: Document text as read from disk
        blockCount: Number of blocks the document segmented into
        renderResult: Output of the Renderer
        rasterRequests: Asset paths a rasterizer was asked for (dry runs)
        outputFiles: Files written, keyed by role
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    inputFile: str = field(default="")
    settingsFile: Optional[str] = field(default=None)
    outputSubdir: str = field(default=".")
    dryRunWidgets: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    htmlOutputdir: Path = field(default=Path("/"))
    renderSettings: Optional["RenderSettings"] = field(default=None)
    sourceText: Optional[str] = field(default=None)
    blockCount: int = field(default=0)
    renderResult: Optional["RenderResult"] = field(default=None)
    rasterRequests: List[str] = field(default_factory=list)
    outputFiles: Dict[str, Path] = field(default_factory=dict)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Merges CLI options with explicitly provided directories to create
        the initial program state for the render pipeline.

        Args:
            options: Parsed CLI arguments (inputFile, settingsFile, etc.)
            inputdir: Directory containing source files
            outputdir: Directory for render output

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        import dataclasses

        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered_options = {k: v for k, v in vars(options).items() if k in valid_fields}

        # CLI options override the dataclass defaults
        merged_args: Dict[str, Any] = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}
        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProgramState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            source_parse,
            document_build,
            results_write,
            results_report
        )
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
