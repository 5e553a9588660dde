"""
EPUB assembly via pandoc.

Provides:
- Single-document packaging (one NormalizedDocument, or raw HTML)
- Multi-chapter book packaging (ordered Chapters, split at <h1>)

Every body is run through the markup repairs before it reaches pandoc.
Pandoc is invoked with an argument list, never through a shell.
"""

from __future__ import annotations

import shutil
import subprocess
from html import escape as _html_escape
from pathlib import Path
from typing import Optional, Union

from kindlepost.config import Config
from kindlepost.extractors.models import Chapter, NormalizedDocument
from kindlepost.utils import get_logger, repair_markup, sanitize_filename
from kindlepost.utils.errors import ConversionError
from kindlepost.utils.file_utils import ensure_dir, format_file_size
from kindlepost.utils.html_utils import build_document_html

DEFAULT_TITLE = "Article"
LANGUAGE = "en-US"

PANDOC_INSTALL_HINT = (
    "pandoc is not installed. Install with your package manager:\n"
    "  Ubuntu/Debian: sudo apt install pandoc\n"
    "  macOS: brew install pandoc\n"
    "  Fedora: sudo dnf install pandoc"
)


def escape_yaml(value: Optional[str]) -> str:
    """
    Render a string as a double-quoted YAML scalar.

    Backslashes and quotes are escaped, newlines and tabs become a single
    space and carriage returns are dropped. Empty input yields ``""``.
    """
    if not value:
        return '""'
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\r", "")
        .replace("\n", " ")
        .replace("\t", " ")
    )
    return f'"{escaped}"'


def command_exists(command: str) -> bool:
    """Check whether an executable is available on PATH."""
    return shutil.which(command) is not None


def build_metadata_yaml(title: str, author: Optional[str] = None) -> str:
    """Build the pandoc metadata block for a title and optional author."""
    escaped_title = escape_yaml(title)
    lines = ["---", f"title: {escaped_title}"]
    if author:
        lines.append(f"author: {escape_yaml(author)}")
    lines.append(f"lang: {LANGUAGE}")
    lines.append(f"subject: {escaped_title}")
    lines.append("---")
    return "\n".join(lines) + "\n"


def assemble_chapters(chapters: list[Chapter]) -> str:
    """Concatenate chapters in list order, each under its own <h1>."""
    return "\n".join(
        f"<h1>{_html_escape(chapter.title)}</h1>\n{repair_markup(chapter.html_content)}"
        for chapter in chapters
    )


class EpubConverter:
    """Packages normalized documents into EPUB files with pandoc."""

    def __init__(
        self,
        pandoc_path: Optional[str] = None,
        output_dir: Optional[Path] = None,
    ) -> None:
        self.pandoc_path = pandoc_path or Config.PANDOC_PATH
        self.output_dir = Path(output_dir) if output_dir else Config.OUTPUT_DIR
        self.logger = get_logger("epub.converter")

    def convert(
        self,
        content: Union[NormalizedDocument, str],
        title: Optional[str] = None,
        author: Optional[str] = None,
        debug_mode: bool = False,
    ) -> Path:
        """
        Convert one document to EPUB.

        Args:
            content: A NormalizedDocument or an HTML body fragment
            title: Title override (defaults to the document title, else "Article")
            author: Author override (defaults to the document's byline or site name)
            debug_mode: Write artifacts to the current directory and keep them

        Returns:
            Path to the created EPUB file

        Raises:
            ConversionError: pandoc missing or failed
        """
        if isinstance(content, NormalizedDocument):
            body_html = content.content_html
            title = title or content.title
            author = author or content.author
        else:
            body_html = content

        title = title or DEFAULT_TITLE
        self.logger.info("Converting to EPUB format...")

        html = build_document_html(repair_markup(body_html), title=title, author=author)
        return self._run_pandoc(html, title, author, debug_mode=debug_mode)

    def convert_book(
        self,
        chapters: list[Chapter],
        title: str,
        author: Optional[str] = None,
        debug_mode: bool = False,
    ) -> Path:
        """
        Convert an ordered list of chapters into one EPUB.

        Chapters are split by pandoc at top-level headings, so every chapter
        starts with an ``<h1>`` carrying its title and the book title itself
        gets no heading. The author falls back to the first chapter's byline.

        Raises:
            ConversionError: No chapters, pandoc missing or failed
        """
        if not chapters:
            raise ConversionError("Cannot build a book without chapters", source="pandoc")

        title = title or DEFAULT_TITLE
        author = author or chapters[0].byline
        self.logger.info(f"Building book \"{title}\" from {len(chapters)} chapters")

        html = build_document_html(
            assemble_chapters(chapters),
            title=title,
            author=author,
            include_heading=False,
        )
        return self._run_pandoc(html, title, author, debug_mode=debug_mode, book=True)

    def _run_pandoc(
        self,
        html: str,
        title: str,
        author: Optional[str],
        debug_mode: bool = False,
        book: bool = False,
    ) -> Path:
        if not command_exists(self.pandoc_path):
            raise ConversionError(PANDOC_INSTALL_HINT, source="pandoc")

        out_dir = ensure_dir(Path.cwd() if debug_mode else self.output_dir)

        safe_title = sanitize_filename(title)
        html_path = out_dir / f"{safe_title}.html"
        epub_path = out_dir / f"{safe_title}.epub"
        metadata_path = out_dir / f"{safe_title}.yaml"

        html_path.write_text(html, encoding="utf-8")
        metadata_path.write_text(build_metadata_yaml(title, author), encoding="utf-8")

        cmd = [
            self.pandoc_path,
            str(html_path),
            "-V",
            "lang=en",
            "-o",
            str(epub_path),
            f"--metadata-file={metadata_path}",
        ]
        if book:
            cmd.append("--epub-chapter-level=1")

        self.logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise ConversionError(
                f"Failed to run pandoc: {exc}",
                source="pandoc",
                context={"html": str(html_path)},
            ) from exc

        if result.returncode != 0:
            raise ConversionError(
                f"pandoc failed with exit code {result.returncode}: {result.stderr.strip()}",
                source="pandoc",
                context={"html": str(html_path)},
            )

        if not epub_path.exists():
            raise ConversionError("EPUB file was not created", source="pandoc")

        self.logger.info(
            f"EPUB created successfully ({format_file_size(epub_path.stat().st_size)})"
        )
        if debug_mode:
            self.logger.info(f"HTML file saved to: {html_path}")
            self.logger.info(f"EPUB file saved to: {epub_path}")
            self.logger.info(f"Metadata file saved to: {metadata_path}")

        return epub_path
