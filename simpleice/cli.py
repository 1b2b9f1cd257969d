import sys
from pathlib import Path

import fncli

from .core.errors import IceError


def main():
    fncli.autodiscover(Path(__file__).parent, "simpleice")

    user_args = sys.argv[1:]
    if not user_args:
        user_args = ["list"]
    argv = ["simpleice", *user_args]
    try:
        code = fncli.dispatch(argv)
    except IceError as e:
        sys.stderr.write(f"{e.kind}: {e}\n")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
