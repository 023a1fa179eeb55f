"""
HTTP client for result files published as CI build artifacts.

Works against any web server that serves an HTML directory index
(Jenkins artifact pages, nginx autoindex, gcsweb, ...).
"""

import fnmatch
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DEFAULT_RESULT_PATTERNS = ["*.xml"]


class ArtifactClient:
    """Client for downloading result files from an artifact directory listing."""

    def __init__(self, cache_dir: Optional[Path] = None):
        """
        Initialize the artifact client.

        Args:
            cache_dir: Directory to cache downloaded files. Defaults to ~/.wet-test-analyzer/cache
        """
        self.cache_dir = cache_dir or Path.home() / ".wet-test-analyzer" / "cache"
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": "wet-test-analyzer/0.1.0"
        })

    def list_artifacts(self, url: str) -> list[dict]:
        """
        List the entries of a directory index page.

        Args:
            url: URL of the directory; a trailing slash is added if missing

        Returns:
            List of dicts with 'name', 'type' ('file' or 'dir') and 'url'
        """
        if not url.endswith('/'):
            url += '/'
        logger.debug(f"Listing artifacts at {url}")

        try:
            response = self.session.get(url, timeout=30)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to list artifacts: {e}")
            return []

        soup = BeautifulSoup(response.text, 'html.parser')
        items = []

        for link in soup.find_all('a'):
            href = link.get('href', '')
            name = link.get_text().strip()

            if not href or name in ['..', ''] or href.startswith(('?', '#')) or href.rstrip('/').endswith('..'):
                continue

            absolute = urljoin(url, href)
            # links leaving the listed directory are navigation, not artifacts
            if not absolute.startswith(url) or absolute == url:
                continue

            is_dir = href.endswith('/')
            items.append({
                'name': name.rstrip('/'),
                'type': 'dir' if is_dir else 'file',
                'url': absolute
            })

        return items

    def _cache_path(self, url: str) -> Path:
        parsed = urlparse(url)
        parts = [p for p in parsed.path.split('/') if p and p not in ('.', '..')]
        return self.cache_dir.joinpath(parsed.netloc or "local", *parts)

    def download_file(self, url: str, force: bool = False) -> Optional[Path]:
        """
        Download a file, with caching.

        Args:
            url: URL of the file
            force: If True, re-download even if cached

        Returns:
            Path to downloaded file, or None if download failed
        """
        cache_path = self._cache_path(url)

        if cache_path.exists() and not force:
            logger.debug(f"Using cached file: {cache_path}")
            return cache_path

        logger.info(f"Downloading {url}")

        try:
            response = self.session.get(url, timeout=60, stream=True)
            response.raise_for_status()

            cache_path.parent.mkdir(parents=True, exist_ok=True)

            # download to a temp file and rename, so the cache never holds partial files
            temp_fd, temp_path = tempfile.mkstemp(dir=cache_path.parent, suffix='.tmp')
            try:
                with os.fdopen(temp_fd, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=8192):
                        f.write(chunk)

                os.replace(temp_path, cache_path)
                logger.debug(f"Saved to {cache_path}")
                return cache_path
            except Exception:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise

        except requests.RequestException as e:
            logger.error(f"Failed to download {url}: {e}")
            return None

    def download_results(self, url: str, patterns: Optional[list[str]] = None,
                         force: bool = False) -> list[Path]:
        """
        Download every file below a directory URL whose name matches a pattern.

        Args:
            url: Directory URL, or the URL of a single result file
            patterns: Glob patterns matched against file names (default: ["*.xml"])
            force: If True, re-download cached files

        Returns:
            Local paths of the downloaded files, in listing order
        """
        if patterns is None:
            patterns = DEFAULT_RESULT_PATTERNS

        if not url.endswith('/') and self._matches_any(url.rsplit('/', 1)[-1], patterns):
            local_path = self.download_file(url, force=force)
            return [local_path] if local_path else []

        downloaded: list[Path] = []
        self._download_recursive(url, patterns, force, downloaded, set())
        return downloaded

    def _download_recursive(self, url: str, patterns: list[str], force: bool,
                            downloaded: list[Path], visited: set[str]):
        """Recursively download matching files from a directory."""
        if url in visited:
            return
        visited.add(url)

        for item in self.list_artifacts(url):
            if item['type'] == 'file':
                if self._matches_any(item['name'], patterns):
                    local_path = self.download_file(item['url'], force=force)
                    if local_path:
                        downloaded.append(local_path)
            else:
                self._download_recursive(item['url'], patterns, force, downloaded, visited)

    @staticmethod
    def _matches_any(filename: str, patterns: list[str]) -> bool:
        return any(fnmatch.fnmatch(filename.lower(), p.lower()) for p in patterns)

    def clear_cache(self, url: Optional[str] = None):
        """
        Clear cached files.

        Args:
            url: If provided, only clear the cache below this URL
        """
        path = self._cache_path(url) if url else self.cache_dir

        if path.is_dir():
            shutil.rmtree(path)
            logger.info(f"Cleared cache: {path}")
        elif path.exists():
            path.unlink()
            logger.info(f"Cleared cache: {path}")
