"""
Command-line entry point: send web articles, posts and documents to a Kindle.

Exit codes:
    0 - Success
    1 - Failure
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from kindlepost.config import Config
from kindlepost.extractors import extract
from kindlepost.services import EpubConverter, KindleMailer
from kindlepost.utils import KindlePostError, get_input_type, get_logger, setup_logging

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kindlepost",
        description="Send articles, posts and PDFs to your Kindle device",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s https://example.com/article
    %(prog)s /path/to/document.pdf
    %(prog)s --debug https://x.com/user/status/123
    %(prog)s --book "Weekend Reading" https://a.example/1 https://b.example/2

Required environment variables:
    KINDLE_EMAIL  - Your Kindle email address
    SMTP_USER     - Your email address
    SMTP_PASSWORD - Your email password (or app password)

Optional environment variables:
    SMTP_SERVER   - SMTP server (default: smtp.gmail.com)
    SMTP_PORT     - SMTP port (default: 587)
    FROM_EMAIL    - From email (default: SMTP_USER)
        """,
    )

    parser.add_argument(
        "inputs",
        nargs="*",
        metavar="url-or-path",
        help="URL to extract, or a PDF/file to send as-is",
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Save the EPUB in the current directory instead of sending it",
    )
    parser.add_argument(
        "--book", "-b",
        metavar="TITLE",
        help="Combine several URLs into one book with this title",
    )
    parser.add_argument(
        "--author", "-a",
        metavar="NAME",
        help="Author to record in the EPUB metadata",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def run_single(value: str, author: Optional[str] = None, debug: bool = False) -> Path:
    """Handle one input. Returns the path of the file sent (or kept, in debug mode)."""
    input_type = get_input_type(value)

    if input_type == "url":
        logger.info("Input detected: URL")
        document = extract(value)
        file_to_send = EpubConverter().convert(
            document,
            author=author or document.author,
            debug_mode=debug,
        )
        if debug:
            logger.info("Debug mode: EPUB created but NOT sent to Kindle")
            return file_to_send

    elif input_type == "pdf":
        logger.info("Input detected: PDF file")
        file_to_send = Path(value).resolve()
        if not file_to_send.exists():
            raise ValueError(f"PDF file not found: {value}")
        if debug:
            logger.info("Debug mode only applies to URL-based articles; sending PDF as-is")

    elif input_type == "file":
        logger.info("Input detected: File")
        file_to_send = Path(value).resolve()
        if debug:
            logger.info("Debug mode only applies to URL-based articles; sending file as-is")

    else:
        raise ValueError(
            "Could not determine input type. "
            "Input should be a URL (http:// or https://) or a file path."
        )

    KindleMailer().send(file_to_send)
    return file_to_send


def run_book(
    urls: list[str], title: str, author: Optional[str] = None, debug: bool = False
) -> Path:
    """Extract every URL in order and package them as chapters of one book."""
    if any(get_input_type(url) != "url" for url in urls):
        raise ValueError("Book mode only supports URLs")
    if len(urls) < 2:
        raise ValueError("Book mode requires at least 2 URLs")

    chapters = []
    for index, url in enumerate(urls, start=1):
        logger.info(f"[{index}/{len(urls)}] Extracting {url}")
        chapters.append(extract(url).to_chapter())

    epub_path = EpubConverter().convert_book(chapters, title, author=author, debug_mode=debug)
    if debug:
        logger.info("Debug mode: EPUB created but NOT sent to Kindle")
        return epub_path

    KindleMailer().send(epub_path)
    return epub_path


def run(args: argparse.Namespace) -> Path:
    """Dispatch parsed arguments to single-input or book mode."""
    if args.debug:
        logger.info("DEBUG MODE: EPUB will be saved to current directory")

    if args.book is not None:
        return run_book(args.inputs, args.book, author=args.author, debug=args.debug)

    if len(args.inputs) > 1:
        raise ValueError("Multiple inputs require --book")

    return run_single(args.inputs[0], author=args.author, debug=args.debug)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.inputs:
        parser.print_help()
        return 1

    setup_logging(level="DEBUG" if args.verbose else Config.LOG_LEVEL)

    try:
        Config.validate()
        run(args)
    except (KindlePostError, ValueError) as e:
        logger.debug("Run failed", exc_info=True)
        print(f"Error: {getattr(e, 'message', e)}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
