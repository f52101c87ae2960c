import sys
import os
import curses

from logging_utils import configure_logging, set_verbose

# Make ESC snappy
os.environ.setdefault("ESCDELAY", "25")

from _version import __version__

USAGE = (
    "vgrid - terminal grid editor\n\n"
    "Usage:\n"
    "  vgrid [path]\n"
    "  vgrid --verbose [path]\n"
    "  vgrid -v\n"
)

DEFAULT_SCHEMA = {
    "col_a": {"type": "text"},
    "col_b": {"type": "text"},
    "col_c": {"type": "text"},
}


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)

    if "-v" in args or "-V" in args:
        print(__version__)
        return 0

    if "-h" in args or "--help" in args:
        print(USAGE)
        return 0

    verbose = "--verbose" in args
    args = [a for a in args if a != "--verbose"]
    if len(args) > 1:
        print(USAGE, file=sys.stderr)
        return 2

    configure_logging(debug=verbose)
    set_verbose(verbose)

    path = args[0] if args else None
    handler = None
    if path:
        from file_type_handler import FileTypeHandler

        try:
            handler = FileTypeHandler(path)
        except ValueError as e:
            print(e, file=sys.stderr)
            return 1
        schema, rows = handler.load_rows()
    else:
        schema, rows = DEFAULT_SCHEMA, [{} for _ in range(3)]

    def curses_main(stdscr):
        from grid_app import GridApp

        GridApp(stdscr, schema, rows, handler=handler, path=path).run()

    curses.wrapper(curses_main)
    return 0


if __name__ == "__main__":
    sys.exit(main())
