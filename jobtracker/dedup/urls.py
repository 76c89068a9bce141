"""Site-aware url canonicalization.

Two postings of the same job often differ only in tracking parameters,
fragments or slugs. A canonical url strips those so urls can be compared:

- query-id sites keep only the id parameter: ``indeed.com/viewjob?jk=<id>``
- slug-in-path sites keep only the job slug: ``welcometothejungle.com/jobs/<slug>``
- everything else drops query and fragment, trailing slashes, and is lower-cased
"""

import re
from typing import Dict, Mapping, Optional
from urllib.parse import urlsplit

DEFAULT_QUERY_ID_SITES: Dict[str, str] = {"indeed.com": "jk"}
DEFAULT_SLUG_SITES: Dict[str, str] = {"welcometothejungle.com": r"/jobs?/([a-zA-Z0-9_-]+)"}

# Host suffix -> source tag stored on the listing.
SOURCE_TAGS: Dict[str, str] = {
    "linkedin.com": "LinkedIn",
    "indeed.com": "Indeed",
    "s1jobs.com": "S1Jobs",
    "welcometothejungle.com": "WTTJ",
    "energyjobsearch.com": "EnergyJobSearch",
}


def _host(url: str) -> str:
    if "://" not in url and not url.startswith("//"):
        url = "//" + url
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def _host_matches(host: str, site: str) -> bool:
    return host == site or host.endswith("." + site)


class UrlCanonicalizer:
    """Canonicalizes listing urls using configurable site tables.

    Args:
        query_id_sites: Host -> query parameter holding a hex job id
        slug_sites: Host -> regex whose first group captures the job slug
    """

    def __init__(
        self,
        query_id_sites: Optional[Mapping[str, str]] = None,
        slug_sites: Optional[Mapping[str, str]] = None,
    ):
        query_id_sites = DEFAULT_QUERY_ID_SITES if query_id_sites is None else query_id_sites
        slug_sites = DEFAULT_SLUG_SITES if slug_sites is None else slug_sites

        self._query_id_sites = {
            site.lower(): re.compile(r"[?&]" + re.escape(param) + r"=([a-f0-9]+)", re.IGNORECASE)
            for site, param in query_id_sites.items()
        }
        self._query_params = {site.lower(): param for site, param in query_id_sites.items()}
        self._slug_sites = {
            site.lower(): re.compile(pattern, re.IGNORECASE) for site, pattern in slug_sites.items()
        }

    def canonicalize(self, url: Optional[str]) -> str:
        """Return the canonical form of ``url``; blank input gives ""."""
        if url is None or not url.strip():
            return ""

        url = url.strip()
        host = _host(url)

        if host:
            for site, pattern in self._query_id_sites.items():
                if _host_matches(host, site):
                    match = pattern.search(url)
                    if match:
                        return f"{site}/viewjob?{self._query_params[site]}={match.group(1).lower()}"
                    break

            for site, pattern in self._slug_sites.items():
                if _host_matches(host, site):
                    match = pattern.search(url)
                    if match:
                        return f"{site}/jobs/{match.group(1).lower()}"
                    break

        return url.split("?", 1)[0].split("#", 1)[0].rstrip("/").lower()


_default_canonicalizer = UrlCanonicalizer()


def canonicalize_url(url: Optional[str]) -> str:
    """Canonicalize with the default site tables."""
    return _default_canonicalizer.canonicalize(url)


def infer_source_from_url(url: Optional[str]) -> str:
    """Map a url's host to a source tag, or "" when the site is unknown.

    Example:
        >>> infer_source_from_url("https://uk.linkedin.com/jobs/view/123")
        'LinkedIn'
    """
    if not url or not url.strip():
        return ""
    host = _host(url.strip())
    for site, tag in SOURCE_TAGS.items():
        if _host_matches(host, site):
            return tag
    return ""
