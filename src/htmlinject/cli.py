"""Command-line interface: render an HTML template with JSON data."""

import argparse
import codecs
import json
import logging
import sys

from . import __version__
from .selector import SelectorError
from .template import Template, TemplateOpts

GENERIC_ERROR_EXIT_CODE = 1
COMMAND_LINE_ERROR_EXIT_CODE = 2

DESCRIPTION = """
    Render an HTML template by injecting JSON data keyed by CSS selectors.
"""
TEMPLATE_HELP = """
    HTML file to render
"""
DATA_HELP = """
    JSON file mapping selectors to values (`-` reads standard input;
    omitted means the template is copied unchanged)
"""
OUTPUT_HELP = """
    write the result to this file instead of standard output
"""
ENCODING_HELP = """
    encoding of the template, the data and the output (default: utf-8)
"""
VERBOSE_HELP = """
    log debug information to standard error
"""


def build_argument_parser():
    argument_parser = argparse.ArgumentParser(prog="htmlinject", description=DESCRIPTION)
    argument_parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s version {__version__}",
    )
    argument_parser.add_argument("template", help=TEMPLATE_HELP, metavar="template.html")
    argument_parser.add_argument("data", nargs="?", default=None, help=DATA_HELP, metavar="data.json")
    argument_parser.add_argument("-o", "--output", default=None, help=OUTPUT_HELP)
    argument_parser.add_argument("--encoding", default="utf-8", help=ENCODING_HELP)
    argument_parser.add_argument("-v", "--verbose", dest="verbose_mode_enabled", action="store_true", help=VERBOSE_HELP)
    return argument_parser


def load_data(data_argument, encoding):
    """Read the JSON data mapping; None means no data."""
    if data_argument is None:
        return {}
    if data_argument == "-":
        return json.load(sys.stdin)
    with open(data_argument, encoding=encoding) as data_file:
        return json.load(data_file)


def main(argv=None):
    parsed_arguments = build_argument_parser().parse_args(argv)
    if parsed_arguments.verbose_mode_enabled:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        codecs.lookup(parsed_arguments.encoding)
    except LookupError:
        print(f"error: unknown encoding `{parsed_arguments.encoding}`", file=sys.stderr)
        return COMMAND_LINE_ERROR_EXIT_CODE

    try:
        data = load_data(parsed_arguments.data, parsed_arguments.encoding)
    except json.JSONDecodeError as error:
        print(f"error: invalid JSON in `{parsed_arguments.data}`: {error}", file=sys.stderr)
        return COMMAND_LINE_ERROR_EXIT_CODE
    except (OSError, UnicodeDecodeError) as error:
        print(f"error: cannot read `{parsed_arguments.data}`: {error}", file=sys.stderr)
        return GENERIC_ERROR_EXIT_CODE

    if not isinstance(data, dict):
        print("error: data must be a JSON object mapping selectors to values", file=sys.stderr)
        return COMMAND_LINE_ERROR_EXIT_CODE

    template = Template(parsed_arguments.template, opts=TemplateOpts(encoding=parsed_arguments.encoding))
    if not template.is_file:
        print(f"error: template file `{parsed_arguments.template}` not found", file=sys.stderr)
        return COMMAND_LINE_ERROR_EXIT_CODE

    try:
        html = template.render(data)
    except SelectorError as error:
        print(f"error: {error}", file=sys.stderr)
        return COMMAND_LINE_ERROR_EXIT_CODE
    except (OSError, UnicodeDecodeError) as error:
        print(f"error: cannot read `{parsed_arguments.template}`: {error}", file=sys.stderr)
        return GENERIC_ERROR_EXIT_CODE

    if parsed_arguments.output is None:
        sys.stdout.write(html)
        return 0

    try:
        with open(parsed_arguments.output, "w", encoding=parsed_arguments.encoding) as output_file:
            output_file.write(html)
    except (OSError, UnicodeEncodeError):
        print(f"error: cannot write to `{parsed_arguments.output}`", file=sys.stderr)
        return GENERIC_ERROR_EXIT_CODE
    return 0


if __name__ == "__main__":
    sys.exit(main())
