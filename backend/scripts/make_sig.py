#!/usr/bin/env python3
"""Print the x-polar-signature value for a webhook body.

    make_sig.py <secret> payload.json
    cat payload.json | make_sig.py <secret>

The body is signed byte for byte, so pass curl the same file with
``--data-binary @payload.json``.
"""

import argparse
import sys

from payment_receiver.services.signature import compute_signature


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Sign a webhook body with HMAC-SHA256")
    parser.add_argument("secret", help="webhook signing secret")
    parser.add_argument(
        "body",
        nargs="?",
        type=argparse.FileType("rb"),
        help="file holding the request body (default: stdin)",
    )
    args = parser.parse_args(argv)

    if args.body is None:
        body = sys.stdin.buffer.read()
    else:
        with args.body:
            body = args.body.read()
    print(compute_signature(body, args.secret))
    return 0


if __name__ == "__main__":
    sys.exit(main())
