"""Result collector - finds WET result files, parses them and combines the results."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .aggregator import merge, tally
from .artifact_client import ArtifactClient
from .models import ResultSet
from .result_parser import ResultParseError, ResultParser

logger = logging.getLogger(__name__)

DEFAULT_RESULTS_ROOT = "."
DEFAULT_RESULT_PATTERN = "**/wetresult.xml"
DEFAULT_CACHE_DIR = "~/.wet-test-analyzer/cache"

CONFIG_KEYS = ['RESULTS_ROOT', 'RESULT_PATTERN', 'REPORT_PATTERN', 'ALLOW_EMPTY_RESULTS',
               'SKIP_INVALID_RESULTS', 'PARSE_WORKERS', 'CACHE_DIR', 'FASTMCP_PORT']


class NoResultsError(Exception):
    """Raised when no result files were found and empty results are not allowed."""

    pass


def load_config() -> dict:
    """Load config from environment variables and .env file.

    Environment variables take precedence over .env file values.
    """
    paths = [
        os.environ.get('WET_ANALYZER_CONFIG'),
        Path.cwd() / '.env',
        Path(__file__).parent.parent / '.env',
    ]
    config = {}
    for p in paths:
        if p and Path(p).is_file():
            try:
                for line in Path(p).read_text().splitlines():
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        config[key.strip()] = value.strip()
                break
            except OSError as e:
                logger.warning(f"Could not read config file {p}: {e}")

    for key in CONFIG_KEYS:
        env_value = os.environ.get(key)
        if env_value is not None:
            config[key] = env_value

    return config


def get_bool(key: str, default: bool = False) -> bool:
    value = load_config().get(key)
    if value is None or value == '':
        return default
    return value.lower() in ('1', 'true', 'yes', 'on')


def get_results_root() -> Path:
    return Path(load_config().get('RESULTS_ROOT', DEFAULT_RESULTS_ROOT)).expanduser()


def get_result_pattern() -> str:
    return load_config().get('RESULT_PATTERN') or DEFAULT_RESULT_PATTERN


def get_report_pattern() -> str:
    return load_config().get('REPORT_PATTERN', '')


def get_parse_workers() -> int:
    try:
        return max(1, int(load_config().get('PARSE_WORKERS', 1)))
    except ValueError:
        logger.warning("PARSE_WORKERS is not a number, parsing sequentially")
        return 1


def get_cache_dir() -> Path:
    return Path(load_config().get('CACHE_DIR', DEFAULT_CACHE_DIR)).expanduser()


def _split_patterns(pattern: str) -> list[str]:
    return [p.strip() for p in pattern.split(',') if p.strip()]


class ResultCollector:
    """Collects the results of all result files below a root directory."""

    def __init__(self, results_root: Optional[Path] = None, allow_empty: Optional[bool] = None,
                 skip_invalid: Optional[bool] = None, workers: Optional[int] = None,
                 cache_dir: Optional[Path] = None):
        self.results_root = Path(results_root) if results_root else get_results_root()
        self.allow_empty = get_bool('ALLOW_EMPTY_RESULTS') if allow_empty is None else allow_empty
        self.skip_invalid = get_bool('SKIP_INVALID_RESULTS') if skip_invalid is None else skip_invalid
        self.workers = workers or get_parse_workers()
        self._cache_dir = cache_dir
        self._artifacts = None
        self.parser = ResultParser()

    @property
    def artifacts(self) -> ArtifactClient:
        """The artifact client, created on first use."""
        if self._artifacts is None:
            self._artifacts = ArtifactClient(cache_dir=self._cache_dir or get_cache_dir())
        return self._artifacts

    def find_files(self, pattern: Optional[str] = None) -> list[Path]:
        """Find the files matching a comma separated list of glob patterns, sorted by path."""
        pattern = pattern or get_result_pattern()
        found = set()
        for p in _split_patterns(pattern):
            found.update(f for f in self.results_root.glob(p) if f.is_file())
        return sorted(found)

    def find_report_files(self, pattern: Optional[str] = None) -> list[str]:
        """Report files matching the pattern, relative to the root, with forward slashes."""
        pattern = get_report_pattern() if pattern is None else pattern
        if not pattern.strip():
            return []
        return [f.relative_to(self.results_root).as_posix()
                for f in self.find_files(pattern)]

    def collect(self, pattern: Optional[str] = None, report_pattern: Optional[str] = None) -> ResultSet:
        """
        Parse all result files matching the pattern into one tallied result set.

        Args:
            pattern: Comma separated glob patterns relative to the results root
            report_pattern: Comma separated glob patterns of HTML reports to record

        Raises:
            NoResultsError: if nothing matched and empty results are not allowed
            ResultParseError: if a file could not be parsed and skip_invalid is off
        """
        pattern = pattern or get_result_pattern()
        files = self.find_files(pattern)
        logger.info(f"Found {len(files)} result files matching '{pattern}' in {self.results_root}")

        if not files and not self.allow_empty:
            raise NoResultsError(f"No test result files found matching '{pattern}' in {self.results_root}")

        result_set = self._combine(files)
        result_set.report_files = self.find_report_files(report_pattern)
        return result_set

    def collect_from_url(self, url: str, patterns: Optional[list[str]] = None,
                         force: bool = False) -> ResultSet:
        """Download result files published below a URL and combine them."""
        files = self.artifacts.download_results(url, patterns, force=force)
        logger.info(f"Downloaded {len(files)} result files from {url}")

        if not files and not self.allow_empty:
            raise NoResultsError(f"No test result files found at {url}")

        return self._combine(files)

    def _combine(self, files: list[Path]) -> ResultSet:
        result_set = ResultSet()
        for parsed in self._parse_all(files):
            merge(result_set, parsed)
        return tally(result_set)

    def _parse_all(self, files: list[Path]) -> Iterator[ResultSet]:
        """Parse files, in a thread pool if configured; results keep the file order."""
        if self.workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                yield from self._skip_none(pool.map(self._parse_one, files))
        else:
            yield from self._skip_none(map(self._parse_one, files))

    @staticmethod
    def _skip_none(results: Iterable[Optional[ResultSet]]) -> Iterator[ResultSet]:
        return (r for r in results if r is not None)

    def _parse_one(self, path: Path) -> Optional[ResultSet]:
        try:
            return self.parser.parse_file(path)
        except ResultParseError:
            if not self.skip_invalid:
                raise
            logger.warning(f"Skipping invalid result file {path}")
            return None
