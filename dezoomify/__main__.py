"""
Console entry point: runs the CLI and turns escaping errors into exit codes.
"""

import logging
import sys

from rich.console import Console

from dezoomify.cli.app import app
from dezoomify.cli.formatters import format_error_with_suggestions
from dezoomify.exceptions import DezoomifyError

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _use_utf8_streams() -> None:
    # Windows consoles default to a legacy code page
    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(encoding="utf-8")


def main() -> None:
    if sys.platform == "win32":
        _use_utf8_streams()

    stderr = Console(stderr=True)
    try:
        app()
    except KeyboardInterrupt:
        stderr.print("\n[yellow]Interrupted, no image was saved.[/yellow]")
        sys.exit(EXIT_INTERRUPTED)
    except DezoomifyError as e:
        stderr.print(format_error_with_suggestions(e))
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        stderr.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        logging.getLogger("dezoomify").debug("Full traceback:", exc_info=True)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
