"""
CLI entry point for docsummary.

Usage:
  docsummary serve [--port N]          # Run the API (plus watcher/poller in development)
  docsummary sync                      # One-shot: pull new Drive files and process them
  docsummary process-file <path>       # Process a single local PDF
  docsummary process-url <url>         # Process a single web page
"""

import argparse
import json
import sys
from pathlib import Path

from docsummary import EXTENSION_KEY, create_app
from docsummary.config import Config
from docsummary.services.triggers import run_in_background
from docsummary.state import setup_logging


def build_parser():
    parser = argparse.ArgumentParser(
        prog="docsummary",
        description="Summarize PDFs and web pages with Claude, mirrored to Google Drive.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--port", type=int, default=None, help="Port (overrides PORT env var).")
    serve.add_argument("--host", default="127.0.0.1")

    sub.add_parser("sync", help="Pull new files from Drive and process them.")

    process_file = sub.add_parser("process-file", help="Process a single local PDF.")
    process_file.add_argument("file", type=Path, help="Path to the PDF.")

    process_url = sub.add_parser("process-url", help="Process a single web page.")
    process_url.add_argument("url", help="Page URL.")
    return parser


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)

    app = create_app()
    state = app.extensions[EXTENSION_KEY]

    if args.command == "serve":
        port = args.port or app.config["PORT"]
        run_in_background(state.start, name="startup")
        print(f"Server running at http://{args.host}:{port}")
        try:
            app.run(host=args.host, port=port, threaded=True)
        finally:
            state.stop()

    elif args.command == "sync":
        if not state.folder_id:
            print("Error: DRIVE_FOLDER_ID is not set.", file=sys.stderr)
            sys.exit(1)
        result = state.drive.sync(state.folder_id, state.data_dir)
        processed = state.processor.scan_directory()
        print(json.dumps(result.to_dict(), indent=2))
        print(f"Processed {len(processed)} document(s).")
        if result.error:
            sys.exit(1)

    elif args.command == "process-file":
        path = args.file
        if not path.exists():
            print(f"Error: file not found: {path}", file=sys.stderr)
            sys.exit(1)
        result = state.processor.process_file(path)
        if not result.ok:
            print(f"Processing failed: {result.error}", file=sys.stderr)
            sys.exit(1)
        print(f"{result.name} ({result.status})\n")
        print(result.record.analysis)

    elif args.command == "process-url":
        try:
            record = state.processor.process_url(args.url)
        except Exception as e:
            print(f"Processing failed: {e}", file=sys.stderr)
            sys.exit(1)
        print(record.analysis)


if __name__ == "__main__":
    main()
