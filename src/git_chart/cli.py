from __future__ import annotations

import sys

from . import analysis_cli


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if argv and argv[0] in ("-h", "--help"):
        p = analysis_cli._build_parser()
        p.prog = "git-chart"
        p.print_help()
        print("")
        print("Month tokens are YYYYMM; the range is inclusive on both ends.")
        print("Example: git-chart -r . -s 202401 -e 202412 -o activity.html")
        return 0
    return analysis_cli.main(argv)


if __name__ == "__main__":
    raise SystemExit(main())
