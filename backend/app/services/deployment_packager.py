"""
Deployment Packager

Turns a project's generated code into a static-hosting file set
(index.html, robots.txt, sitemap.xml and any extra files) and serialises a
file set into a ZIP archive for download.
"""
import io
import logging
import re
import zipfile
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from xml.sax.saxutils import escape

from app.core.config import settings
from app.core.errors import EncodingError, InvalidInputError

logger = logging.getLogger(__name__)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"

# Read-only view of path -> content
DeploymentFileSet = Mapping[str, str]

REQUIRED_FILES = ("index.html", "robots.txt", "sitemap.xml")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


@dataclass(frozen=True)
class DeploymentArchive:
    filename: str
    content: bytes
    media_type: str = "application/zip"

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


def validate_file_path(path: Any) -> str:
    """
    Reject paths that could escape the bundle root.

    Raises:
        InvalidInputError: For empty, absolute or traversal paths.
    """
    if not isinstance(path, str) or not path.strip():
        raise InvalidInputError("File path must be a non-empty string")
    if path.startswith(("/", "\\")) or re.match(r"^[A-Za-z]:", path):
        raise InvalidInputError(f"File path must be relative: {path!r}")
    if path.endswith(("/", "\\")):
        raise InvalidInputError(f"File path must name a file, not a directory: {path!r}")
    if _CONTROL_CHARS.search(path):
        raise InvalidInputError(f"File path must not contain control characters: {path!r}")
    segments = re.split(r"[\\/]", path)
    if ".." in segments:
        raise InvalidInputError(f"File path must not contain '..': {path!r}")
    return path


def generate_robots_txt(disallow_paths: Sequence[str], domain: Optional[str] = None) -> str:
    """
    Build a robots.txt body. Every line, including the last, ends with a newline.

    >>> generate_robots_txt([])
    'User-agent: *\\nAllow: /\\n'

    Raises:
        InvalidInputError: If a path or the domain contains a control character,
            which would let it inject extra directives.
    """
    for value in [*disallow_paths, domain or ""]:
        if _CONTROL_CHARS.search(value):
            raise InvalidInputError(f"robots.txt values must be single-line: {value!r}")

    lines = ["User-agent: *"]
    if disallow_paths:
        lines.extend(f"Disallow: {path}" for path in disallow_paths)
    else:
        lines.append("Allow: /")
    if domain:
        lines.append("")
        lines.append(f"Sitemap: https://{domain}/sitemap.xml")
    return "\n".join(lines) + "\n"


def generate_sitemap(
    domain: str,
    pages: Sequence[str],
    priority: str = "0.8",
    today: Optional[date] = None,
) -> str:
    """
    Build a sitemap.xml body with one <url> entry per page.

    Pages keep their input order; duplicates are emitted as given.
    """
    lastmod = (today or date.today()).isoformat()
    entries = []
    for page in pages:
        entries.append(
            "  <url>\n"
            f"    <loc>{escape(f'https://{domain}{page}')}</loc>\n"
            f"    <lastmod>{lastmod}</lastmod>\n"
            "    <changefreq>weekly</changefreq>\n"
            f"    <priority>{priority}</priority>\n"
            "  </url>\n"
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">\n'
        + "".join(entries)
        + "</urlset>\n"
    )


def generate_project_sitemap(domain: str, today: Optional[date] = None) -> str:
    """Single-page sitemap used in deployment bundles; the root page gets priority 1.0."""
    return generate_sitemap(domain, ["/"], priority="1.0", today=today)


def render_index_html(html: str = "", css: str = "", js: str = "", title: str = "VirtuBuild Project") -> str:
    # Plain concatenation: the project owner deploys their own code
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <meta name="description" content="Built with VirtuBuild.ai">
  <title>{title}</title>
  <style>{css}</style>
</head>
<body>
  {html}
  <script>{js}</script>
</body>
</html>
"""


def build_file_set(
    code: Mapping[str, Any],
    project_id: str,
    domain: Optional[str] = None,
    title: Optional[str] = None,
) -> DeploymentFileSet:
    """
    Assemble the static-hosting file set for a project.

    Args:
        code: Mapping with optional "html", "css", "js" strings and an optional
            "files" mapping of extra relative path -> text content.
        project_id: Project the bundle belongs to (used for logging).
        domain: Domain for robots.txt / sitemap.xml; defaults to DEFAULT_SITE_DOMAIN.
        title: <title> of the generated index.html.

    Returns:
        An immutable mapping. Caller-supplied files override generated ones.

    Raises:
        InvalidInputError: If an extra file path or content is invalid.
    """
    extra_files = code.get("files") or {}
    if not isinstance(extra_files, Mapping):
        raise InvalidInputError("'files' must be an object mapping paths to contents")

    for path, content in extra_files.items():
        validate_file_path(path)
        if not isinstance(content, str):
            raise InvalidInputError(f"Content of {path!r} must be text")

    for part in ("html", "css", "js"):
        if code.get(part) is not None and not isinstance(code.get(part), str):
            raise InvalidInputError(f"'{part}' must be text")

    site_domain = domain or settings.DEFAULT_SITE_DOMAIN

    files: Dict[str, str] = {
        "index.html": render_index_html(
            html=code.get("html") or "",
            css=code.get("css") or "",
            js=code.get("js") or "",
            title=title or "VirtuBuild Project",
        ),
        "robots.txt": generate_robots_txt([], site_domain),
        "sitemap.xml": generate_project_sitemap(site_domain),
    }
    files.update(extra_files)

    logger.debug(f"Built file set for project {project_id}: {sorted(files)}")
    return MappingProxyType(files)


def archive_filename(archive_name: str) -> str:
    slug = re.sub(r"[^a-z0-9._-]+", "-", archive_name.strip().lower()).strip("-.")
    return f"{slug or 'project'}.zip"


def archive(file_set: DeploymentFileSet, archive_name: str) -> DeploymentArchive:
    """
    Serialise a file set into a ZIP archive.

    Entries keep their relative paths and UTF-8 content. Archive metadata
    carries timestamps, so identical inputs do not give identical bytes.

    Raises:
        EncodingError: If any content cannot be encoded as UTF-8.
    """
    encoded: List[tuple[str, bytes]] = []
    for path, content in file_set.items():
        validate_file_path(path)
        try:
            encoded.append((path, content.encode("utf-8")))
        except UnicodeEncodeError as e:
            raise EncodingError(f"Content of {path!r} is not valid UTF-8: {e.reason}")

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for path, data in encoded:
            zf.writestr(path, data)

    return DeploymentArchive(filename=archive_filename(archive_name), content=buffer.getvalue())


def extract_project_code(content: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Pick the deployable code out of a project's JSON content."""
    content = content or {}
    return {
        "html": content.get("html"),
        "css": content.get("css"),
        "js": content.get("js"),
        "files": content.get("files") or {},
    }
