"""
Data models for acceptance-test results.

A ResultSet holds one Suite per parsed result file. Each Suite lists the
TestFiles it executed and each TestFile the BrowserRuns it was executed in.
Counts, durations, indexes and the passed/skipped/failed lists are derived
fields: they are only meaningful after aggregator.tally() has run.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

UNSAFE_URL_CHARS = '/\\:?#%<>'


def safe_name(name: str) -> str:
    """Make a name usable as a single URL path segment."""
    for char in UNSAFE_URL_CHARS:
        name = name.replace(char, '_')
    return name


def _generated_name() -> str:
    return str(uuid.uuid4())


class CauseType(Enum):
    """Why a step failed."""
    ERROR = "error"
    FAILURE = "failure"


class RunStatus(Enum):
    """Outcome of one browser run."""
    PASSED = "passed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RunError:
    """A failure that aborted a whole run before its steps were executed."""
    file: str
    message: str

    def to_dict(self) -> dict:
        return {"kind": "run", "file": self.file, "message": self.message}


@dataclass
class StepError:
    """A failure reported by a single command of a test file."""
    file: str
    line: int
    command: Optional[str]
    cause: CauseType
    message: str
    parameters: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "kind": "step",
            "file": self.file,
            "line": self.line,
            "command": self.command,
            "parameters": list(self.parameters),
            "cause": self.cause.value,
            "message": self.message,
        }


Error = Union[RunError, StepError]


@dataclass(eq=False)
class BrowserRun:
    """One execution of a test file in one browser."""
    name: str
    full_name: str
    duration: int = 0
    skipped: bool = False
    error: Optional[Error] = None
    # set by tally, never owned
    parent: Optional["TestFile"] = field(default=None, repr=False)

    @property
    def status(self) -> RunStatus:
        if self.skipped:
            return RunStatus.SKIPPED
        if self.error is not None:
            return RunStatus.FAILED
        return RunStatus.PASSED

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "full_name": self.full_name,
            "status": self.status.value,
            "duration": self.duration,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass(eq=False)
class TestFile:
    """All browser runs of one test file within one execution."""
    __test__ = False  # not a pytest test class

    name: str
    full_name: str
    browser_runs: list[BrowserRun] = field(default_factory=list)

    # derived
    duration: int = 0
    total_count: int = 0
    pass_count: int = 0
    skip_count: int = 0
    fail_count: int = 0
    passed_runs: list[BrowserRun] = field(default_factory=list, repr=False)
    skipped_runs: list[BrowserRun] = field(default_factory=list, repr=False)
    failed_runs: list[BrowserRun] = field(default_factory=list, repr=False)

    @property
    def safe_name(self) -> str:
        return safe_name(self.name)

    def get_browser_run(self, name: str) -> Optional[BrowserRun]:
        """Return the first run executed in the named browser, or None."""
        for run in self.browser_runs:
            if run.name == name:
                return run
        return None

    def to_dict(self, include_runs: bool = True) -> dict:
        data = {
            "name": self.name,
            "full_name": self.full_name,
            "duration": self.duration,
            "total": self.total_count,
            "passed": self.pass_count,
            "skipped": self.skip_count,
            "failed": self.fail_count,
        }
        if include_runs:
            data["browser_runs"] = [r.to_dict() for r in self.browser_runs]
        return data


@dataclass(eq=False)
class Suite:
    """The test files run by one execution, i.e. one parsed result file."""
    name: str = field(default_factory=_generated_name)
    duration: int = 0
    test_files: list[TestFile] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "duration": self.duration,
            "test_files": [f.name for f in self.test_files],
        }


@dataclass(eq=False)
class ResultSet:
    """The combined results of one or more parsed result files."""
    name: str = field(default_factory=_generated_name)
    suites: list[Suite] = field(default_factory=list)
    report_files: list[str] = field(default_factory=list)

    # derived
    duration: int = 0
    total_count: int = 0
    pass_count: int = 0
    skip_count: int = 0
    fail_count: int = 0
    test_files: dict[str, TestFile] = field(default_factory=dict, repr=False)
    test_files_by_url: dict[str, TestFile] = field(default_factory=dict, repr=False)
    passed_runs: list[BrowserRun] = field(default_factory=list, repr=False)
    skipped_runs: list[BrowserRun] = field(default_factory=list, repr=False)
    failed_runs: list[BrowserRun] = field(default_factory=list, repr=False)

    @property
    def test_file_names(self) -> list[str]:
        return list(self.test_files)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "duration": self.duration,
            "total": self.total_count,
            "passed": self.pass_count,
            "skipped": self.skip_count,
            "failed": self.fail_count,
            "suites": [s.to_dict() for s in self.suites],
            "report_files": list(self.report_files),
        }
