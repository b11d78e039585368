from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from server.citerel.cli import add_runtime_args, apply_runtime_overrides
from server.citerel.config import Settings
from server.citerel.errors import ConnectivityError, ServiceError
from server.citerel.relations import CitationRelationFetcher
from server.citerel.types import BibEntry, Direction


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="List the works a DOI cites, or the works citing it.")
    parser.add_argument("doi", help="DOI of the seed record.")
    parser.add_argument(
        "--direction",
        choices=["citing", "cited-by"],
        default="citing",
        help="'citing' follows the seed's references, 'cited-by' its citations.",
    )
    parser.add_argument("--format", choices=["json", "bibtex"], default="json", dest="output_format")
    add_runtime_args(parser)
    args = parser.parse_args(argv)

    load_dotenv()
    apply_runtime_overrides(args)
    settings = Settings.from_env()

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    log = logging.getLogger("citerel.fetch_relations")

    def progress(message: str, fraction: float) -> None:
        log.info("%s (%.0f%%)", message, fraction * 100)

    fetcher = CitationRelationFetcher.from_settings(settings)
    seed = BibEntry(fields={"doi": args.doi})
    try:
        result = fetcher.expand(seed, Direction.parse(args.direction), progress=progress)
    except ConnectivityError as e:
        print(str(e), file=sys.stderr)
        return 2
    except ServiceError as e:
        print(str(e), file=sys.stderr)
        return 1

    for doi, reason in result.failures:
        log.warning("No information for DOI %s: %s", doi, reason)

    if args.output_format == "bibtex":
        print("\n\n".join(record.to_bibtex() for record in result.records))
    else:
        print(json.dumps([record.to_dict() for record in result.records], indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
