#!/usr/bin/env python3
"""
MCP Server for wet-test-analyzer.
Provides tools for summarizing WET acceptance-test results and looking up single runs.
"""

import logging
import json
import asyncio
from fastmcp import FastMCP

import core
from wet_results.result_collector import load_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# FastMCP server
mcp = FastMCP("wet-test-analyzer")


@mcp.tool(
    name="get_result_summary",
    description="""Get pass/fail/skip counts for all WET result files below the results root.

    Result files are parsed fresh on every call, merged, and tallied. When two
    result files contain a test file of the same name, the later file wins.

    Args:
        pattern: Comma-separated glob patterns for result files (default: RESULT_PATTERN)
    """
)
async def get_result_summary(pattern: str = None) -> str:
    try:
        result_set = core.collect_results(pattern)
        return json.dumps(core.get_summary(result_set), indent=2, default=str)
    except Exception as e:
        logger.error(f"Error in get_result_summary: {str(e)}")
        return json.dumps({"error": str(e)})


@mcp.tool(
    name="get_failed_runs",
    description="""List failed browser runs with the error that failed them.

    Step errors carry the test file, line, command and parameters of the first
    failing step of the run. Run errors carry the test file and message only.

    DEBUGGING TIP: This should be your FIRST tool when investigating test failures.

    Args:
        pattern: Comma-separated glob patterns for result files (default: RESULT_PATTERN)
        limit: Maximum number of runs to return (default: all)
    """
)
async def get_failed_runs(pattern: str = None, limit: int = None) -> str:
    try:
        result_set = core.collect_results(pattern)
        return json.dumps(core.get_failures(result_set, limit), indent=2, default=str)
    except Exception as e:
        logger.error(f"Error in get_failed_runs: {str(e)}")
        return json.dumps({"error": str(e)})


@mcp.tool(
    name="lookup_result",
    description="""Look up one result by qualified name.

    Found results carry a "type" key (test_file, browser_run or result_set). An
    unknown name returns only {"error": ...}; a browser run's own "error" entry
    is null when the run did not fail.

    Args:
        name: "<test file>" for a test file or "<test file>[<browser>]" for a single browser run
        pattern: Comma-separated glob patterns for result files (default: RESULT_PATTERN)
    """
)
async def lookup_result(name: str, pattern: str = None) -> str:
    try:
        result_set = core.collect_results(pattern)
        return json.dumps(core.lookup(result_set, name), indent=2, default=str)
    except Exception as e:
        logger.error(f"Error in lookup_result: {str(e)}")
        return json.dumps({"error": str(e)})


@mcp.tool(
    name="list_test_files",
    description="""List the names of all test files found in the result files.

    Args:
        pattern: Comma-separated glob patterns for result files (default: RESULT_PATTERN)
    """
)
async def list_test_files(pattern: str = None) -> str:
    try:
        result_set = core.collect_results(pattern)
        return json.dumps(core.list_test_files(result_set), indent=2)
    except Exception as e:
        logger.error(f"Error in list_test_files: {str(e)}")
        return json.dumps({"error": str(e)})


@mcp.tool(
    name="fetch_remote_results",
    description="""Download WET result files from a CI artifact directory and summarize them.

    Downloaded files are cached in CACHE_DIR; use force to download them again.

    Args:
        url: URL of an artifact directory listing or of a single result file
        patterns: Comma-separated file name glob patterns (default: "*.xml")
        force: Re-download files that are already cached (default: false)
    """
)
async def fetch_remote_results(url: str, patterns: str = None, force: bool = False) -> str:
    try:
        pattern_list = [p.strip() for p in patterns.split(',')] if patterns else None
        result = core.fetch_remote_results(url, pattern_list, force)
        return json.dumps(result, indent=2, default=str)
    except Exception as e:
        logger.error(f"Error in fetch_remote_results: {str(e)}")
        return json.dumps({"error": str(e)})


async def main():
    port = int(load_config().get("FASTMCP_PORT", "8979"))
    logger.info(f"Starting wet-test-analyzer MCP server on port {port}")
    await mcp.run_async(transport="sse", host="0.0.0.0", port=port)


if __name__ == "__main__":
    asyncio.run(main())
