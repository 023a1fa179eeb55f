"""
Merging and aggregation ("tally") of result trees.

tally() recomputes every derived field from the owned lists, bottom-up:
browser runs -> test files -> suites -> result set. It can be called any
number of times. merge() only concatenates; call tally() once after merging
all inputs.
"""

import uuid
from typing import Iterable, Optional

from .models import ResultSet, RunStatus, Suite, TestFile, safe_name


def tally_test_file(test_file: TestFile) -> TestFile:
    """Recompute counts, duration and run buckets of one test file."""
    buckets = {status: [] for status in RunStatus}
    duration = 0
    for run in test_file.browser_runs:
        buckets[run.status].append(run)
        duration += run.duration
        run.parent = test_file

    test_file.passed_runs = buckets[RunStatus.PASSED]
    test_file.skipped_runs = buckets[RunStatus.SKIPPED]
    test_file.failed_runs = buckets[RunStatus.FAILED]
    test_file.total_count = len(test_file.browser_runs)
    test_file.skip_count = len(test_file.skipped_runs)
    test_file.fail_count = len(test_file.failed_runs)
    test_file.pass_count = test_file.total_count - test_file.skip_count - test_file.fail_count
    test_file.duration = duration
    return test_file


def tally_suite(suite: Suite) -> Suite:
    """Tally the suite's test files; its duration is the sum of theirs."""
    suite.duration = sum(tally_test_file(f).duration for f in suite.test_files)
    return suite


def tally(result_set: ResultSet) -> ResultSet:
    """
    Recompute all derived fields of a result set in place.

    The name index is rebuilt from the suites in order, so a test file from a
    later suite replaces an earlier one of the same name. The run buckets and
    counts come from the indexed test files only.

    Returns:
        The same result set, for chaining
    """
    test_files: dict[str, TestFile] = {}
    test_files_by_url: dict[str, TestFile] = {}
    duration = 0
    for suite in result_set.suites:
        duration += tally_suite(suite).duration
        for test_file in suite.test_files:
            test_files[test_file.name] = test_file
            test_files_by_url[safe_name(test_file.name)] = test_file

    passed, skipped, failed = [], [], []
    for test_file in test_files.values():
        passed.extend(test_file.passed_runs)
        skipped.extend(test_file.skipped_runs)
        failed.extend(test_file.failed_runs)

    result_set.duration = duration
    result_set.test_files = test_files
    result_set.test_files_by_url = test_files_by_url
    result_set.passed_runs = passed
    result_set.skipped_runs = skipped
    result_set.failed_runs = failed
    result_set.pass_count = len(passed)
    result_set.skip_count = len(skipped)
    result_set.fail_count = len(failed)
    result_set.total_count = result_set.pass_count + result_set.skip_count + result_set.fail_count
    return result_set


def merge(target: ResultSet, other: ResultSet) -> ResultSet:
    """Append other's suites and run buckets to target. Does not tally."""
    target.suites.extend(other.suites)
    target.passed_runs.extend(other.passed_runs)
    target.skipped_runs.extend(other.skipped_runs)
    target.failed_runs.extend(other.failed_runs)
    return target


def merge_all(result_sets: Iterable[ResultSet], name: Optional[str] = None) -> ResultSet:
    """Merge result sets, in order, into a new untallied result set."""
    merged = ResultSet(name=name or str(uuid.uuid4()))
    for result_set in result_sets:
        merge(merged, result_set)
    return merged
