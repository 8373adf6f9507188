# aibuddy: CLI entrypoint (console_script target). Arguments are handed to AIBuddy.run; every AIBuddyError is reported on stderr and turned into exit status 1.

import pathlib
import sys
from typing import List, Optional

from .buddy import USAGE, AIBuddy
from .context import Context
from .errors import AIBuddyError


def main(argv: Optional[List[str]] = None) -> int:
    """
    aibuddy CLI entrypoint.

    Usage:
        aibuddy install | re | reload | plan <request> | apply | <request>

    The current working directory is the project root.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] in ("-h", "--help"):
        print(USAGE)
        return 0

    ctx = Context()
    try:
        AIBuddy(pathlib.Path.cwd()).run(ctx, args)
    except AIBuddyError as e:
        ctx.error_message(str(e))
        return 1
    except KeyboardInterrupt:
        ctx.error_message("Interrupted.")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
