#!/usr/bin/env python3
"""
Core operations shared between MCP server and CLI.
Contains the business logic for collecting, summarizing and looking up results.
"""

import logging
from pathlib import Path
from typing import Optional

from wet_results.models import BrowserRun, ResultSet, TestFile
from wet_results.resolver import resolve
from wet_results.result_collector import ResultCollector

logger = logging.getLogger(__name__)

# Global result collector (singleton)
_collector = None


def get_collector() -> ResultCollector:
    """Get or create the ResultCollector singleton."""
    global _collector
    if _collector is None:
        _collector = ResultCollector()
    return _collector


def collect_results(pattern: str = None, report_pattern: str = None,
                    root: Optional[Path] = None) -> ResultSet:
    """
    Parse and combine the result files below the results root.

    Args:
        pattern: Comma separated glob patterns (uses RESULT_PATTERN if not specified)
        report_pattern: Glob patterns of HTML reports (uses REPORT_PATTERN if not specified)
        root: Directory to search (uses RESULTS_ROOT if not specified)

    Returns:
        Tallied ResultSet
    """
    collector = ResultCollector(results_root=root) if root else get_collector()
    return collector.collect(pattern, report_pattern)


def get_summary(result_set: ResultSet) -> dict:
    """Overall counts plus one line per test file."""
    executed = result_set.total_count - result_set.skip_count
    pass_rate = (result_set.pass_count / executed) * 100 if executed > 0 else 0.0
    summary = result_set.to_dict()
    summary["pass_rate"] = pass_rate
    summary["test_files"] = [f.to_dict(include_runs=False) for f in result_set.test_files.values()]
    return summary


def get_failures(result_set: ResultSet, limit: int = None) -> dict:
    """Failed browser runs with the error that failed them."""
    failed = result_set.failed_runs
    shown = failed[:limit] if limit is not None else failed
    return {
        "total_failed": len(failed),
        "failed_runs": [_run_details(r) for r in shown],
    }


def _run_details(run: BrowserRun) -> dict:
    details = run.to_dict()
    if run.parent is not None:
        details["test_file"] = run.parent.name
        details["test_file_path"] = run.parent.full_name
    return details


def lookup(result_set: ResultSet, name: str) -> dict:
    """
    Look up a result by qualified name ("file" or "file[browser]").

    Returns:
        dict describing the result, with its kind under "type", or only
        {"error": ...} if there is none. Browser runs carry their own
        "error" entry, so check "type" to tell the two apart.
    """
    result = resolve(result_set, name)
    if result is None:
        logger.info(f"No result named {name!r}")
        return {"error": f"No result named '{name}'"}
    if isinstance(result, BrowserRun):
        return {"type": "browser_run", **_run_details(result)}
    if isinstance(result, TestFile):
        return {"type": "test_file", **result.to_dict()}
    return {"type": "result_set", **get_summary(result)}


def list_test_files(result_set: ResultSet) -> dict:
    """Names of all test files, with their URL-safe form."""
    return {
        "total": len(result_set.test_files),
        "test_files": [{"name": name, "url_name": f.safe_name, "full_name": f.full_name}
                       for name, f in result_set.test_files.items()],
    }


def fetch_remote_results(url: str, patterns: list[str] = None, force: bool = False) -> dict:
    """
    Download result files published at a URL and summarize them.

    Args:
        url: Directory listing URL, or the URL of a single result file
        patterns: File name glob patterns (default: ["*.xml"])
        force: Re-download files that are already cached

    Returns:
        Summary dict as returned by get_summary, plus the source URL
    """
    result_set = get_collector().collect_from_url(url, patterns, force=force)
    summary = get_summary(result_set)
    summary["source"] = {"url": url, "patterns": patterns}
    return summary
