"""
xpath-to-json CLI

Process an HTML file with an XPath rule configuration and print or save
the extracted JSON.

Usage:
    xpath-to-json --xpath-config rules.json --html page.html
    xpath-to-json --xpath-config rules.json --html page.html --output out.json
    xpath-to-json --xpath-config rules.json --html page.html --verbose --log-format json
"""

import logging
import sys
from pathlib import Path

import click
import structlog
from bs4 import FeatureNotFound
from rich.console import Console

from . import __version__
from .config import load_config

console = Console()


def setup_logging(level: str = "INFO", log_format: str = "console"):
    """Configure structured logging on stderr."""
    if log_format == "json":
        # JSON output for parsing and storage
        processors = [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.CallsiteParameterAdder(
                [structlog.processors.CallsiteParameter.FILENAME]
            ),
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Console output for human readability
        processors = [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.CallsiteParameterAdder(
                [structlog.processors.CallsiteParameter.FILENAME]
            ),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


@click.command()
@click.version_option(version=__version__)
@click.option(
    "--xpath-config",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to the JSON rule configuration",
)
@click.option(
    "--html",
    "html_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to the HTML file to process",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write results to this file instead of stdout",
)
@click.option(
    "--config",
    "-c",
    "settings_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Settings file (default: bundled settings.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Log output format (default: from settings)",
)
def main(xpath_config, html_path, output, settings_path, verbose, log_format):
    """Extract JSON from an HTML document using XPath rules."""
    settings = load_config(settings_path)
    level = "DEBUG" if verbose else settings["logging"].get("level", "INFO")
    setup_logging(level, log_format or settings["logging"].get("format", "console"))

    # Package modules bind their loggers on import
    from .errors import ConfigurationInvalid
    from .extractor import XPathExtractor
    from .loader import load_configuration, read_html_file

    logger = structlog.get_logger()

    try:
        config = load_configuration(xpath_config)
        html = read_html_file(html_path, settings["parser"].get("default_encoding", "utf-8"))

        extractor = XPathExtractor(parser_backend=settings["parser"].get("backend", "lxml"))
        result = extractor.extract_html(config, html)
    except ConfigurationInvalid as e:
        logger.error("configuration_invalid", path=str(xpath_config), error=str(e))
        sys.exit(1)
    except FeatureNotFound as e:
        logger.error("parser_backend_unavailable", error=str(e))
        sys.exit(1)
    except OSError as e:
        logger.error("file_read_failed", error=str(e))
        sys.exit(1)

    output_json = result.to_json(indent=settings["output"].get("indent", 2))

    if output:
        try:
            output.write_text(output_json, encoding="utf-8")
        except OSError as e:
            logger.error("output_write_failed", path=str(output), error=str(e))
            sys.exit(1)
        console.print(f"[green]Results written to[/green] {output}")
        if result.errors:
            console.print(f"[yellow]{len(result.errors)} rule error(s) recorded[/yellow]")
    else:
        click.echo(output_json)


if __name__ == "__main__":
    main()
