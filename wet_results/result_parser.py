"""
Streaming parser for WET acceptance-test result files.

The parser walks the document's start/end events once and builds the result
tree on the fly. Which entity an element belongs to is decided from its path
from the root (see ElementPath). Test files can include other test files to
any depth, so the names of the test files currently open are kept on a
separate stack; an error is always attributed to the innermost one.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .aggregator import tally
from .element_path import ElementPath
from .models import BrowserRun, CauseType, ResultSet, RunError, StepError, Suite, TestFile

logger = logging.getLogger(__name__)

PATH_ROOT = "/wet"
PATH_TEST_CASE = PATH_ROOT + "/testcase"
PATH_TEST_RUN = PATH_TEST_CASE + "/testrun"
PATH_TEST_FILE = PATH_TEST_RUN + "/testfile"

MAX_PARAMETERS = 4


class ResultParseError(Exception):
    """Raised when a result file is not well-formed or cannot be interpreted."""

    pass


class MissingAttributeError(ResultParseError):
    """Raised when an element lacks an attribute the result tree needs."""

    def __init__(self, element: str, attribute: str, path: str):
        super().__init__(f"<{element}> at {path} has no '{attribute}' attribute")
        self.element = element
        self.attribute = attribute


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def _required(elem: ET.Element, attribute: str, path: ElementPath) -> str:
    value = elem.get(attribute)
    if value is None:
        raise MissingAttributeError(_local_name(elem.tag), attribute, str(path))
    return value


def _text(elem: ET.Element, path: ElementPath) -> str:
    if len(elem):
        raise ResultParseError(f"Unexpected <{_local_name(elem[0].tag)}> inside text element at {path}")
    return elem.text or ""


def _to_int(text: Optional[str], what: str, path: ElementPath) -> int:
    try:
        return int((text or "").strip())
    except ValueError as e:
        raise ResultParseError(f"Invalid {what} {text!r} at {path}") from e


class _ParseState:
    """Everything the parser knows about the document read so far."""

    def __init__(self):
        self.path = ElementPath()
        self.test_file_names: list[str] = []
        self.result_set = ResultSet()
        self.suite: Optional[Suite] = None
        self.test_file: Optional[TestFile] = None
        self.browser_runs: Optional[list[BrowserRun]] = None
        self.browser_run: Optional[BrowserRun] = None
        self.duration = 0
        self.line = 0
        self.command: Optional[str] = None
        self.parameters: list[Optional[str]] = [None] * MAX_PARAMETERS

    def attach_error(self, error):
        # the first error of a run wins, later ones are dropped
        if self.browser_run.error is None:
            self.browser_run.error = error

    def start(self, elem: ET.Element):
        path = self.path
        path.push(_local_name(elem.tag))

        if path.matches(PATH_ROOT):
            self.suite = Suite()
        elif path.matches(PATH_TEST_CASE):
            name = _required(elem, "name", path)
            self.test_file = TestFile(name=name, full_name=elem.get("file") or name)
            self.browser_runs = []
        elif path.matches(PATH_TEST_RUN):
            browser = _required(elem, "browser", path)
            self.browser_run = BrowserRun(name=browser, full_name=f"{self.test_file.name}[{browser}]")
            self.duration = 0
        elif path.matches(PATH_TEST_RUN + "/ignored"):
            self.browser_run.skipped = True
        elif path.starts_with(PATH_TEST_RUN) and path.ends_with("/testfile"):
            file_name = _required(elem, "file", path)
            self.test_file_names.append(file_name)
            if path.matches(PATH_TEST_FILE):
                self.test_file.full_name = file_name
        elif path.starts_with(PATH_TEST_FILE) and path.ends_with("/command"):
            self.line = _to_int(_required(elem, "line", path), "line number", path)
            self.command = elem.get("name")
            self.parameters = [None] * MAX_PARAMETERS

    def end(self, elem: ET.Element):
        path = self.path
        param = self._param_index(path) if path.starts_with(PATH_TEST_FILE) else None

        if path.matches(PATH_ROOT + "/startTime"):
            self.suite.name = _text(elem, path)
        elif path.matches(PATH_ROOT + "/executionTime"):
            self.suite.duration = _to_int(_text(elem, path), "execution time", path)
        elif path.matches(PATH_TEST_RUN + "/error/message"):
            self.attach_error(RunError(file=self.test_file.full_name, message=_text(elem, path)))
        elif path.starts_with(PATH_TEST_RUN) and path.ends_with("/testfile/error/message"):
            self.attach_error(RunError(file=self.test_file_names[-1], message=_text(elem, path)))
        elif param is not None:
            self.parameters[param] = _text(elem, path)
        elif path.starts_with(PATH_TEST_FILE) and path.ends_with("/command/executionTime"):
            self.duration += _to_int(_text(elem, path), "execution time", path)
        elif path.starts_with(PATH_TEST_FILE) and path.ends_with("/command/error/message"):
            self._step_error(CauseType.ERROR, _text(elem, path))
        elif path.starts_with(PATH_TEST_FILE) and path.ends_with("/command/failure/message"):
            self._step_error(CauseType.FAILURE, _text(elem, path))
        elif path.starts_with(PATH_TEST_RUN) and path.ends_with("/testfile"):
            self.test_file_names.pop()
        elif path.matches(PATH_TEST_RUN):
            self._close_browser_run()
        elif path.matches(PATH_TEST_CASE):
            self.test_file.browser_runs = self.browser_runs
            self.suite.test_files.append(self.test_file)
            self.browser_runs = None
            self.test_file = None
        elif path.matches(PATH_ROOT):
            self.result_set.suites.append(self.suite)
            self.suite = None

        path.pop()

    @staticmethod
    def _param_index(path: ElementPath) -> Optional[int]:
        for index in range(MAX_PARAMETERS):
            if path.ends_with(f"/command/param{index}"):
                return index
        return None

    def _step_error(self, cause: CauseType, message: str):
        # empty parameters are left out, not kept as blanks
        self.attach_error(StepError(
            file=self.test_file_names[-1],
            line=self.line,
            command=self.command,
            cause=cause,
            message=message,
            parameters=[p for p in self.parameters if p],
        ))

    def _close_browser_run(self):
        run = self.browser_run
        run.duration = self.duration
        self.browser_runs.append(run)
        # provisional buckets, tally() computes the real ones
        if run.error is None:
            self.result_set.passed_runs.append(run)
        else:
            self.result_set.failed_runs.append(run)
        self.browser_run = None


class ResultParser:
    """Parses WET XML result files into ResultSets."""

    def parse(self, stream: BinaryIO) -> ResultSet:
        """
        Parse one result document.

        Args:
            stream: Binary stream positioned at the start of the document. It is
                closed when parsing ends, whether or not parsing succeeded.

        Returns:
            A tallied ResultSet holding one Suite per root element found

        Raises:
            ResultParseError: if the document is malformed or lacks required data
        """
        state = _ParseState()
        try:
            for event, elem in ET.iterparse(stream, events=("start", "end")):
                if event == "start":
                    state.start(elem)
                else:
                    state.end(elem)
                    elem.clear()
        except ET.ParseError as e:
            raise ResultParseError(f"Malformed result XML: {e}") from e
        finally:
            stream.close()

        result_set = state.result_set
        if not result_set.suites:
            logger.warning(f"No <{PATH_ROOT.lstrip('/')}> root element found, result is empty")
        tally(result_set)
        logger.debug(f"Parsed {result_set.total_count} browser runs in "
                     f"{len(result_set.test_files)} test files")
        return result_set

    def parse_file(self, path: Union[str, Path]) -> ResultSet:
        """Parse the result file at the given path."""
        path = Path(path)
        logger.debug(f"Parsing {path}")
        try:
            return self.parse(path.open('rb'))
        except ResultParseError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise
