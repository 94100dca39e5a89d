#!/usr/bin/env python3
"""
Anime review BFF - gateway server and command-line client.

  python main.py --serve                 # run the gateway
  python main.py --recent                # recent reviews via a running gateway
  python main.py --list --page 2
  python main.py --search "frieren"
  python main.py --anime 12345
"""

import argparse
import logging
import sys
from datetime import datetime
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

#
# NOTE: Keep bff imports lazy (inside functions) so `--serve` doesn't pay for client-only
# modules and vice versa.
#


def format_date_for_display(value: Optional[datetime]) -> str:
    """Format a timestamp as YYYY-MM-DD (or N/A)."""
    if value is None:
        return "N/A"
    return value.strftime("%Y-%m-%d")


def _print_reviews(reviews) -> None:  # type: ignore[no-untyped-def]
    if not reviews:
        print("No reviews yet.")
        return
    for r in reviews:
        title = getattr(r, "anime_title", "") or f"anime #{r.anime_id}"
        print(f"- {title}: {r.score} pts ({format_date_for_display(r.created_at)})")
        if r.comment:
            print(f"    {r.comment}")


def show_recent(base_url: Optional[str]) -> int:
    from bff.client.api import ApiClient
    from bff.client.views import load_recent_reviews

    view = load_recent_reviews(ApiClient(base_url))
    if view.error:
        print(view.error, file=sys.stderr)
        return 1
    _print_reviews(view.reviews)
    return 0


def show_anime_page(base_url: Optional[str], page: int) -> int:
    from bff.client.api import ApiClient
    from bff.client.views import load_anime_page

    view = load_anime_page(ApiClient(base_url), page)
    if view.error:
        print(view.error, file=sys.stderr)
        return 1
    for a in view.animes:
        score = f"{a.avg_score:.1f}" if a.review_count else "-"
        print(f"[{a.annict_id}] {a.title} ({a.year or '?'})  avg={score} reviews={a.review_count}")
    print(f"page {view.page} / {view.total_page}")
    return 0


def show_search(base_url: Optional[str], keyword: str) -> int:
    from bff.client.api import ApiClient
    from bff.client.views import run_search

    view = run_search(ApiClient(base_url), keyword)
    if not view.searched:
        print("Enter a keyword to search.", file=sys.stderr)
        return 2
    if view.error:
        print(view.error, file=sys.stderr)
        return 1
    for w in view.results:
        print(f"[{w.annict_id}] {w.title} ({w.season_year or '?'})")
    if view.next_cursor:
        print("(more results available)")
    return 0


def show_anime(base_url: Optional[str], annict_id: int) -> int:
    from bff.client.api import ApiClient
    from bff.client.views import load_anime_detail

    view = load_anime_detail(ApiClient(base_url), annict_id)
    if view.error or view.anime is None:
        print(view.error or "Anime not found.", file=sys.stderr)
        return 1
    print(f"{view.anime.title} ({view.anime.year or '?'})")
    if view.stats is not None:
        print(f"avg score: {view.stats.avg_score:.1f} ({view.stats.review_count} reviews)")
    _print_reviews(view.reviews)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Anime review gateway and client")
    parser.add_argument("--serve", action="store_true", help="Run the gateway HTTP server")
    parser.add_argument("--host", default="0.0.0.0", help="Gateway bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=3000, help="Gateway listen port (default: 3000)")
    parser.add_argument("--base-url", default=None, help="Gateway base URL for client commands (default: API_BASE_URL)")
    parser.add_argument("--recent", action="store_true", help="Show recent reviews")
    parser.add_argument("--list", action="store_true", help="List cached anime with scores")
    parser.add_argument("--page", type=int, default=1, help="Page for --list (default: 1)")
    parser.add_argument("--search", metavar="KEYWORD", help="Search the external catalog")
    parser.add_argument("--anime", type=int, metavar="ANNICT_ID", help="Show an anime and its reviews")

    args = parser.parse_args()

    if args.serve:
        from bff.gateway.proxy import run as run_gateway

        run_gateway(host=args.host, port=args.port)
        return

    if args.recent:
        sys.exit(show_recent(args.base_url))
    if args.list:
        sys.exit(show_anime_page(args.base_url, args.page))
    if args.search is not None:
        sys.exit(show_search(args.base_url, args.search))
    if args.anime is not None:
        sys.exit(show_anime(args.base_url, args.anime))

    parser.print_help()
    sys.exit(2)


if __name__ == "__main__":
    main()
