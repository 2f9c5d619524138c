#!/usr/bin/env python3
"""
trackscout CLI for similarity queries and serving the API.
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from .config import configure_logging, scout_config
from .errors import DiscoveryError
from .search import InMemoryEmbeddingStore, SimilarityEngine, SimilarityQuery

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    configure_logging('DEBUG' if verbose else scout_config.LOG_LEVEL)


def find_similar(args) -> int:
    """Rank stored tracks against one query track and print the results."""
    setup_logging(args.verbose)

    embeddings_dir = Path(args.embeddings) if args.embeddings else scout_config.embeddings_dir
    if not embeddings_dir.exists():
        print(f"Error: Embeddings directory not found: {embeddings_dir}", file=sys.stderr)
        return 1

    try:
        scout_config.validate_config()
        store = InMemoryEmbeddingStore.from_directory(embeddings_dir, show_progress=not args.json)
        query = SimilarityQuery.from_params(
            args.track,
            limit=args.limit,
            threshold=args.threshold,
            metric=args.metric,
        )
        results = SimilarityEngine(store).find_similar(query)
    except (DiscoveryError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({
            "trackId": query.query_track_id,
            "metric": query.metric.value,
            "threshold": query.threshold,
            "limit": query.limit,
            "results": [result.to_dict() for result in results],
        }, indent=2))
        return 0

    label = "similarity" if query.metric.higher_is_better else "distance"
    print(f"Tracks similar to {query.query_track_id} ({query.metric.value}, threshold {query.threshold}):")
    if not results:
        print("  (no tracks passed the threshold)")
    for i, result in enumerate(results, 1):
        print(f"  {i:>3}. {result.track_id}  {label}={result.score:.4f}")
    return 0


def serve(args) -> int:
    """Run the API server with uvicorn."""
    import uvicorn

    from .api import create_app

    setup_logging(args.verbose)
    if args.embeddings:
        scout_config.SCOUT_EMBEDDINGS_DIR = args.embeddings
    if args.catalog_url:
        scout_config.SCOUT_CATALOG_URL = args.catalog_url

    uvicorn.run(
        create_app(config=scout_config),
        host=args.host or scout_config.HOST,
        port=args.port or scout_config.PORT,
        log_level=scout_config.LOG_LEVEL.lower(),
    )
    return 0


def validate_config(args) -> int:
    """Validate current configuration."""
    setup_logging(args.verbose)

    try:
        scout_config.validate_config()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    print("Configuration is valid")
    if args.verbose:
        print(json.dumps(scout_config.get_cache_info(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trackscout",
        description="trackscout: similar-track discovery over audio embeddings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s similar --embeddings data/embeddings --track t1          # Cosine, default threshold
  %(prog)s similar --track t1 --metric euclidean --threshold 1.5    # Distance cutoff
  %(prog)s serve --port 8080                                        # Run the API
  %(prog)s validate --verbose                                       # Validate configuration
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Similar command
    similar_parser = subparsers.add_parser('similar', help='Find similar tracks')
    similar_parser.add_argument('--embeddings', type=str, help='Directory of <track_id>.npy files')
    similar_parser.add_argument('--track', type=str, required=True, help='Query track ID')
    similar_parser.add_argument('--limit', type=str, help='Maximum number of results')
    similar_parser.add_argument('--threshold', type=str, help='Similarity floor (cosine) or distance ceiling')
    similar_parser.add_argument('--metric', type=str, help='cosine, euclidean or manhattan')
    similar_parser.add_argument('--json', action='store_true', help='Print results as JSON')
    similar_parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    similar_parser.set_defaults(func=find_similar)

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', type=str, help='Bind address')
    serve_parser.add_argument('--port', type=int, help='Port')
    serve_parser.add_argument('--embeddings', type=str, help='Directory of <track_id>.npy files')
    serve_parser.add_argument('--catalog-url', type=str, help='Base URL of the catalog service')
    serve_parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    serve_parser.set_defaults(func=serve)

    # Validate command
    validate_parser = subparsers.add_parser('validate', help='Validate configuration')
    validate_parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    validate_parser.set_defaults(func=validate_config)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
