"""Lookup of results by qualified name ("file" or "file[browser]")."""

from typing import Optional, Union

from .models import BrowserRun, ResultSet, TestFile

Result = Union[ResultSet, TestFile, BrowserRun]


def split_qualified_name(name: str) -> tuple[str, Optional[str]]:
    """
    Split a qualified name into test file name and browser name.

    "login" -> ("login", None), "login[chrome]" -> ("login", "chrome").
    The closing bracket is optional.
    """
    bracket = name.find('[')
    if bracket < 0:
        return name, None
    browser = name[bracket + 1:]
    if browser.endswith(']'):
        browser = browser[:-1]
    return name[:bracket], browser


def resolve(result_set: ResultSet, name: Optional[str]) -> Optional[Result]:
    """
    Find the result addressed by a qualified name.

    An empty name or the result set's own name addresses the result set.
    Only tallied result sets can be searched, the lookup uses their name index.

    Returns:
        The ResultSet, TestFile or BrowserRun, or None if nothing matches
    """
    if not name or name == result_set.name:
        return result_set

    file_name, browser = split_qualified_name(name)
    test_file = result_set.test_files.get(file_name)
    if test_file is None or browser is None:
        return test_file
    return test_file.get_browser_run(browser)


def resolve_url_token(result_set: ResultSet, token: str) -> Optional[TestFile]:
    """Find a test file by its URL-safe name."""
    return result_set.test_files_by_url.get(token)
