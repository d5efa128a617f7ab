import argparse, asyncio, logging, sys
from typing import List, Optional

from .models import ConfigError, build_target
from .wordlists import load_list, parse_headers
from .scanner import ProbeScheduler

log = logging.getLogger("dirprobe.cli")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dirprobe", description="Enumerate web directories and files")
    p.add_argument("-u", "--url", default="", help="Target URL")
    p.add_argument("-f", "--wordlist", default="", help="Path to the wordlist")
    p.add_argument("-e", "--extensions", default="", help="Path to a list of extensions")
    p.add_argument("-t", "--threads", type=int, default=1, help="Number of concurrent requests")
    p.add_argument(
        "-H", "--headers", default="",
        help="Headers, with '|' as the delimiter (e.g. 'User-Agent : BLAH | Referer : AAAAA')",
    )
    p.add_argument("--skip-trailing-blank", action="store_true",
                   help="Drop the empty entry produced by a trailing newline in the list files")
    p.add_argument("--verify-tls", action="store_true", help="Validate TLS certificates (off by default)")
    p.add_argument("--no-follow-redirects", action="store_true", help="Report the first response, not the final one")
    p.add_argument("-v", "--verbose", action="store_true", help="Also log non-matching responses")
    return p


def load_target(args: argparse.Namespace):
    if not args.wordlist:
        raise ConfigError("Dictionary path not defined")
    if not args.extensions:
        raise ConfigError("Extension path not defined")
    if not args.url:
        raise ConfigError("Target url not defined")
    if args.threads < 1:
        raise ConfigError("Invalid thread number, must be at least 1")

    if args.threads == 1:
        log.info("Default to 1 thread")
    else:
        log.info("Using %d threads", args.threads)

    headers = parse_headers(args.headers)
    log.info("Headers are set to: %s", headers)

    target = build_target(
        args.url,
        load_list(args.wordlist, args.skip_trailing_blank),
        load_list(args.extensions, args.skip_trailing_blank),
        headers=headers,
        concurrency=args.threads,
        verify_tls=args.verify_tls,
        follow_redirects=not args.no_follow_redirects,
    )
    log.info("Target: %s", target.base_url)
    return target


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        target = load_target(args)
    except ConfigError as e:
        parser.print_help(sys.stderr)
        log.error("%s", e)
        return 2

    asyncio.run(ProbeScheduler(target).run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
