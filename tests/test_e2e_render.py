"""
End-to-end render tests

Tests the full pipeline: markdown file → env_check → source_parse →
document_build → results_write, validating the files written to the output
directory.
"""

import json
import tempfile
from pathlib import Path

import pytest

from mdpress.__main__ import document_build, env_check, results_report, results_write, source_parse
from mdpress.models import ProgramState, pipeline


DOCUMENT = """# Field Notes
## A subtitle

Intro with a reference[^src] and **bold** text.

## Method

$$
a^2 + b^2 = c^2
$$

```python
print("hi")
```

[^src]: The source.
"""


def state_make(tmpdir, **fields):
    inputdir = Path(tmpdir) / "in"
    inputdir.mkdir(exist_ok=True)
    (inputdir / "notes.md").write_text(DOCUMENT, encoding="utf-8")
    return ProgramState(inputdir=inputdir, outputdir=Path(tmpdir) / "out", inputFile="notes.md", **fields)


class TestPipeline:
    """Test the complete render pipeline"""

    def test_outputs_written(self):
        """index.html, document.md and toc.md are written"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = pipeline(
                state_make(tmpdir), env_check, source_parse, document_build, results_write, results_report
            )

            assert state.envOK is True
            assert state.blockCount > 0
            assert set(state.outputFiles) == {"html", "markdown", "toc"}

            html = state.outputFiles["html"].read_text(encoding="utf-8")
            assert "<title>Field Notes</title>" in html
            assert '<h1 class="md-title" id="field-notes" name="field-notes">Field Notes</h1>' in html
            assert '<pre class="toc"' in html
            assert 'href="#fn-1"' in html

            markdown = state.outputFiles["markdown"].read_text(encoding="utf-8")
            assert markdown.startswith("# Field Notes\n## A subtitle\n")
            assert "[^1]: The source." in markdown

            toc = state.outputFiles["toc"].read_text(encoding="utf-8")
            assert toc == "# Table of Contents\n1. [Method](#1-method)\n"

    def test_dry_run_widgets(self):
        """--dryRunWidgets records the math widget request"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = pipeline(
                state_make(tmpdir, dryRunWidgets=True), env_check, source_parse, document_build, results_write
            )

            requests = json.loads(state.outputFiles["widgets"].read_text(encoding="utf-8"))
            assert requests == ["/assets/math-widget-7-9.png"]
            assert "![Code Block Widget](/assets/math-widget-7-9.png)" in state.renderResult.canonical_markdown

    def test_output_subdir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            state = pipeline(
                state_make(tmpdir, outputSubdir="site"), env_check, source_parse, document_build, results_write
            )

            assert state.htmlOutputdir == Path(tmpdir) / "out" / "site"
            assert (state.htmlOutputdir / "index.html").exists()

    def test_settings_profile_relative_to_inputdir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            state = state_make(tmpdir, settingsFile="profile.yaml")
            (state.inputdir / "profile.yaml").write_text("create_toc: false\n", encoding="utf-8")

            state = pipeline(state, env_check, source_parse, document_build, results_write)

            assert state.renderSettings.create_toc is False
            assert "toc" not in state.outputFiles


class TestEnvironmentErrors:
    """Test that environment problems stop the pipeline"""

    def test_missing_input(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            state = ProgramState(inputdir=Path(tmpdir), outputdir=Path(tmpdir), inputFile="missing.md")

            with pytest.raises(SystemExit) as excinfo:
                env_check(state)
            assert excinfo.value.code == 1

    def test_invalid_profile(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            state = state_make(tmpdir, settingsFile="bad.yaml")
            (state.inputdir / "bad.yaml").write_text("toc_numbering: roman\n", encoding="utf-8")

            with pytest.raises(SystemExit):
                env_check(state)
