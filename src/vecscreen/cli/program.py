import argparse
import logging

root_parser = argparse.ArgumentParser(prog="vecscreen")
root_parser.add_argument(
    "--verbose", "-v",
    action="count",
    dest="verbosity",
    default=0,
    help="Increase logging output. Repeat for debug messages."
)
subparsers = root_parser.add_subparsers(required=True)


def configure_logging(verbosity: int):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run():
    args = root_parser.parse_args()
    configure_logging(args.verbosity)
    args.func(args)


if __name__ == "__main__":
    run()
