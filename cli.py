#!/usr/bin/env python3
"""CLI for the WET Test Analyzer."""

import argparse
import json
import logging
import sys
from pathlib import Path

import core
from wet_results.result_collector import NoResultsError
from wet_results.result_parser import ResultParseError


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)s: %(message)s'
    )


def _collect(args):
    root = Path(args.root) if args.root else None
    return core.collect_results(pattern=args.pattern, report_pattern=getattr(args, 'report_pattern', None),
                                root=root)


def _format_duration(millis: int) -> str:
    return f"{millis / 1000:.1f}s"


def cmd_summary(args):
    """Summarize all result files."""
    result_set = _collect(args)
    summary = core.get_summary(result_set)

    if args.format == 'json':
        print(json.dumps(summary, indent=2, default=str))
    else:
        _print_summary(summary, quiet=args.quiet)

    return 0 if result_set.fail_count == 0 else 1


def _print_summary(summary: dict, quiet: bool = False):
    """Print human-readable summary."""
    print(f"\n{'='*60}")
    print(f"Suites: {len(summary.get('suites', []))}")
    print(f"Duration: {_format_duration(summary.get('duration', 0))}")

    print(f"\nBrowser Runs:")
    print(f"  Total:   {summary.get('total', 0)}")
    print(f"  Passed:  {summary.get('passed', 0)}")
    print(f"  Failed:  {summary.get('failed', 0)}")
    print(f"  Skipped: {summary.get('skipped', 0)}")
    print(f"  Pass Rate: {summary.get('pass_rate', 0):.1f}%")

    test_files = summary.get("test_files", [])
    if test_files and not quiet:
        width = max(len(f['name']) for f in test_files)
        print(f"\n{'Test file':<{width}}  {'Pass':>6}  {'Fail':>6}  {'Skip':>6}  {'Total':>6}  {'Duration':>9}")
        print(f"{'-'*width}  {'-'*6}  {'-'*6}  {'-'*6}  {'-'*6}  {'-'*9}")
        for f in test_files:
            icon = '❌' if f['failed'] else '✅'
            print(f"{f['name']:<{width}}  {f['passed']:>6}  {f['failed']:>6}  {f['skipped']:>6}  "
                  f"{f['total']:>6}  {_format_duration(f['duration']):>9}  {icon}")

    report_files = summary.get("report_files", [])
    if report_files:
        print(f"\nReports:")
        for r in report_files:
            print(f"  - {r}")
    print(f"{'='*60}\n")


def cmd_failures(args):
    """List failed browser runs."""
    result_set = _collect(args)
    failures = core.get_failures(result_set, limit=args.limit)

    if args.format == 'json':
        print(json.dumps(failures, indent=2, default=str))
        return 0

    print(f"Failed runs: {failures['total_failed']}")
    for run in failures["failed_runs"]:
        print(f"\n  ❌ {run['full_name']}")
        _print_error(run.get("error"), indent="     ")
    if args.limit is not None and failures['total_failed'] > args.limit:
        print(f"\n  ... and {failures['total_failed'] - args.limit} more")
    return 0


def _print_error(error: dict, indent: str = "  "):
    if not error:
        return
    if error["kind"] == "step":
        params = ", ".join(error.get("parameters", []))
        print(f"{indent}{error['cause']} in {error['file']}:{error['line']} "
              f"{error.get('command') or ''}({params})")
    else:
        print(f"{indent}error in {error['file']}")
    print(f"{indent}{error['message']}")


def cmd_show(args):
    """Show a single result by qualified name."""
    result_set = _collect(args)
    result = core.lookup(result_set, args.name)

    if "type" not in result:
        print(f"Error: {result['error']}", file=sys.stderr)
        return 1

    if args.format == 'json':
        print(json.dumps(result, indent=2, default=str))
        return 0

    if result["type"] == "browser_run":
        print(f"{result['full_name']}: {result['status']} ({_format_duration(result['duration'])})")
        _print_error(result.get("error"))
    elif result["type"] == "test_file":
        print(f"{result['name']} ({result['full_name']})")
        print(f"  Passed: {result['passed']}  Failed: {result['failed']}  "
              f"Skipped: {result['skipped']}  Total: {result['total']}")
        for run in result["browser_runs"]:
            print(f"  - {run['name']}: {run['status']} ({_format_duration(run['duration'])})")
    else:
        _print_summary(result)
    return 0


def cmd_files(args):
    """List test file names."""
    result_set = _collect(args)
    listing = core.list_test_files(result_set)

    if args.format == 'json':
        print(json.dumps(listing, indent=2))
        return 0

    print(f"Test files ({listing['total']}):")
    for f in listing["test_files"]:
        print(f"  - {f['name']}")
    return 0


def cmd_fetch(args):
    """Download result files from a URL and summarize them."""
    patterns = [p.strip() for p in args.pattern.split(',')] if args.pattern else None
    summary = core.fetch_remote_results(args.url, patterns=patterns, force=args.force)

    if args.format == 'json':
        print(json.dumps(summary, indent=2, default=str))
    else:
        _print_summary(summary)

    return 0 if summary.get("failed", 0) == 0 else 1


def main():
    parser = argparse.ArgumentParser(description='WET Test Result Analyzer')
    parser.add_argument('-v', '--verbose', action='store_true')
    parser.add_argument('--root', help='Directory to search for result files (default: RESULTS_ROOT)')

    sub = parser.add_subparsers(dest='command')

    p = sub.add_parser('summary', help='Summarize all result files')
    p.add_argument('--pattern', '-p', help='Result file glob pattern(s), comma-separated')
    p.add_argument('--report-pattern', help='HTML report glob pattern(s), comma-separated')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')
    p.add_argument('--quiet', '-q', action='store_true', help='Only show counts, not test files')

    p = sub.add_parser('failures', help='List failed browser runs')
    p.add_argument('--pattern', '-p', help='Result file glob pattern(s), comma-separated')
    p.add_argument('--limit', type=int, help='Max runs to list')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    p = sub.add_parser('show', help='Show a test file or browser run')
    p.add_argument('name', help='Qualified name, e.g. "login" or "login[chrome]"')
    p.add_argument('--pattern', '-p', help='Result file glob pattern(s), comma-separated')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    p = sub.add_parser('files', help='List test files')
    p.add_argument('--pattern', '-p', help='Result file glob pattern(s), comma-separated')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    p = sub.add_parser('fetch', help='Download result files from a URL and summarize them')
    p.add_argument('--url', '-u', required=True, help='Artifact directory or result file URL')
    p.add_argument('--pattern', '-p', help='File name glob pattern(s), comma-separated (default: *.xml)')
    p.add_argument('--force', action='store_true', help='Re-download cached files')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    cmds = {
        'summary': cmd_summary,
        'failures': cmd_failures,
        'show': cmd_show,
        'files': cmd_files,
        'fetch': cmd_fetch,
    }
    try:
        return cmds[args.command](args)
    except (NoResultsError, ResultParseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
