#!/usr/bin/env python3
"""
Encode a playbook for sharing, or decode a shared payload.

    share_playbook.py encode playbook.json [--redirector out.html] [--app-url URL]
    share_playbook.py decode <payload | share link | redirector.html> [-o out.json]
"""

import sys
import argparse
import json
import logging
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from playbook_share.codec.transport import coerce_playbook
from playbook_share.config import load_settings
from playbook_share.core.errors import DecodeError
from playbook_share.share.export import ShareExporter, redirector_filename
from playbook_share.share.session import load_shared_playbook

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("share_playbook")


def encode(args) -> int:
    """Print the payload and share link; optionally write a redirector file."""
    settings = load_settings()
    if args.app_url:
        settings = settings.model_copy(update={"app_url": args.app_url})
    exporter = ShareExporter(settings)

    with open(args.playbook) as f:
        playbook = coerce_playbook(json.load(f))

    encoded = exporter.encode(playbook)
    print(f"Playbook: {playbook.name} ({len(playbook.plays)} plays)")
    print(f"Payload length: {len(encoded)}")
    print(f"Share link: {exporter.share_url(playbook, encoded)}")

    if args.redirector is not None:
        target = Path(args.redirector)
        if target.is_dir():
            target = target / redirector_filename(playbook.name)
        target.write_text(exporter.redirector(playbook, encoded), encoding="utf-8")
        print(f"Redirector written to {target}")
    return 0


def decode(args) -> int:
    """Decode a payload, link or redirector file into a playbook document."""
    source = args.source
    try:
        if Path(source).is_file():
            source = Path(source).read_text(encoding="utf-8")
    except OSError:
        # Long payloads are not valid file names.
        pass

    try:
        playbook = load_shared_playbook(source)
    except DecodeError as e:
        logger.error(f"Could not decode payload: {e}")
        print(f"Error: {DecodeError.user_message}")
        return 1

    document = json.dumps(playbook.to_document(), indent=2)
    if args.output:
        Path(args.output).write_text(document, encoding="utf-8")
        print(f"Decoded '{playbook.name}' ({len(playbook.plays)} plays) to {args.output}")
    else:
        print(document)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Encode or decode shared playbooks")
    sub = parser.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Encode a playbook JSON document")
    enc.add_argument("playbook", help="Playbook JSON file (full document or legacy list of plays)")
    enc.add_argument("--redirector", help="Write a redirector HTML file (path or directory)")
    enc.add_argument("--app-url", help="Override the application URL")
    enc.set_defaults(func=encode)

    dec = sub.add_parser("decode", help="Decode a payload, share link or redirector file")
    dec.add_argument("source", help="Payload text, share URL, or path to a redirector/payload file")
    dec.add_argument("-o", "--output", help="Write the playbook JSON here instead of stdout")
    dec.set_defaults(func=decode)

    args = parser.parse_args()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
