"""Shared fixtures: small WET result documents."""

import io

import pytest

from wet_results.result_parser import ResultParser

PASSED_LOGIN = b"""<?xml version="1.0" encoding="UTF-8"?>
<wet>
  <startTime>2024-05-01T10:00:00</startTime>
  <executionTime>120</executionTime>
  <testcase name="login">
    <testrun browser="chrome">
      <testfile file="tests/login.wet">
        <command name="open-url" line="1">
          <param0>/login.html</param0>
          <executionTime>120</executionTime>
        </command>
      </testfile>
    </testrun>
  </testcase>
</wet>
"""

FAILED_LOGIN = b"""<?xml version="1.0" encoding="UTF-8"?>
<wet>
  <startTime>2024-05-01T11:00:00</startTime>
  <testcase name="login">
    <testrun browser="chrome">
      <testfile file="included.wet">
        <command name="click" line="5">
          <param0>Login</param0>
          <executionTime>30</executionTime>
          <failure>
            <message>element not found</message>
          </failure>
        </command>
      </testfile>
    </testrun>
  </testcase>
</wet>
"""


def smoke_result(browser: str, failing: bool = False, start: str = "run") -> bytes:
    """A result document with one test case 'smoke' run in one browser."""
    failure = b"<error><message>boom</message></error>" if failing else b""
    return (b'<wet><startTime>' + start.encode() + b'</startTime>'
            b'<testcase name="smoke"><testrun browser="' + browser.encode() + b'">'
            b'<testfile file="smoke.wet"><command name="assert-text" line="3">'
            b'<executionTime>10</executionTime>' + failure +
            b'</command></testfile></testrun></testcase></wet>')


@pytest.fixture
def parse():
    """Parse a bytes document into a ResultSet."""
    parser = ResultParser()

    def _parse(document: bytes):
        return parser.parse(io.BytesIO(document))

    return _parse


@pytest.fixture
def passed_login() -> bytes:
    return PASSED_LOGIN


@pytest.fixture
def failed_login() -> bytes:
    return FAILED_LOGIN


@pytest.fixture
def smoke():
    return smoke_result


@pytest.fixture
def results_dir(tmp_path):
    """Factory writing result documents below tmp_path, returning the root."""

    def _write(files: dict):
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        return tmp_path

    return _write
