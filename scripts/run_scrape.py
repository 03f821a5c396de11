"""
Run scrape jobs for configured sites from the CLI.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from pricescout.scraping.config import get_scraper_settings, load_site_configs
from pricescout.services.scrape_job_service import get_scrape_job_service


def main() -> int:
    parser = argparse.ArgumentParser(description="Run competitor listing scrapes.")
    parser.add_argument(
        "--site",
        dest="sites",
        action="append",
        default=None,
        help="Site name from the config file; repeat for several. Defaults to all enabled sites.",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Scrape only the first page (at most ten items) of each selected site.",
    )
    parser.add_argument(
        "--promotions",
        metavar="URL",
        default=None,
        help="Scrape the hero/promotional carousel of URL instead of product listings.",
    )
    parser.add_argument("--log-level", default="WARNING", help="Root log level.")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.strip().upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    service = get_scrape_job_service()

    if args.promotions:
        promo = asyncio.run(service.scrape_promotions(args.promotions))
        print(json.dumps(promo.to_dict(), indent=2))
        return 0 if promo.success else 1

    if args.preview:
        configs = load_site_configs(config_path=get_scraper_settings().site_config_path)
        if args.sites:
            wanted = {item.strip().lower() for item in args.sites}
            configs = [config for config in configs if (config.name or "").lower() in wanted]
        results = asyncio.run(service.run_many(configs, preview=True))
        payload = [
            {"competitor": config.name, **result.to_dict()}
            for config, result in zip(configs, results)
        ]
        print(json.dumps(payload, indent=2))
        return 0

    summaries = asyncio.run(service.run_configured_sites(sites=args.sites))
    payload = [
        {
            "competitor": summary.competitor,
            "status": summary.status,
            "snapshots_recorded": summary.snapshots_recorded,
            "errors": summary.errors,
            **{key: value for key, value in summary.result.to_dict().items() if key != "errors"},
        }
        for summary in summaries
    ]
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
