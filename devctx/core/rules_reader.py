"""Reader for the static CRAC rule documents (*.mdc).

Documents are read from disk once per process and served from memory.
"""

from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

from devctx.core.config import get_settings

RULES_URI_SCHEME = "crac-rules"
RULE_DOCUMENTS = ("crac-config", "endpoints")
ALL_DOCUMENTS = "all"

PACKAGED_RULES_DIR = Path(__file__).resolve().parent.parent / "resources" / "rules"

DOCUMENT_SEPARATOR = "\n\n---\n\n"


def resolve_rules_dir() -> Path:
    """Configured rules directory, or the one shipped with the package."""
    try:
        configured = get_settings().RULES_DIR
    except Exception:
        configured = None
    return Path(configured) if configured else PACKAGED_RULES_DIR


@lru_cache(maxsize=None)
def read_rule_document(name: str, rules_dir: Path) -> str:
    """
    Read one rule document.

    Raises:
        FileNotFoundError: If the document does not exist
    """
    path = rules_dir / f"{name}.mdc"
    if not path.is_file():
        raise FileNotFoundError(f"File {name}.mdc not found in rules directory {rules_dir}")
    return path.read_text(encoding="utf-8")


def parse_rules_uri(uri: str) -> list[str]:
    """
    Map a rules URI to document names.

    Accepts ``crac-rules://<name>`` or a bare name.

    Raises:
        ValueError: For unknown names
    """
    parsed = urlparse(uri)
    if parsed.scheme and parsed.scheme != RULES_URI_SCHEME:
        raise ValueError(f"Unsupported URI scheme: {parsed.scheme}")
    name = (parsed.netloc or parsed.path).strip("/") if parsed.scheme else uri.strip("/")

    if name == ALL_DOCUMENTS:
        return list(RULE_DOCUMENTS)
    if name in RULE_DOCUMENTS:
        return [name]

    raise ValueError(
        f"Invalid URI path: {name}. Valid paths are: {', '.join(RULE_DOCUMENTS)}, {ALL_DOCUMENTS}"
    )


def format_rule_document(name: str, content: str) -> str:
    return f"# Agent Rules: {name}{DOCUMENT_SEPARATOR}{content}"


class RulesReader:
    """Serves rule documents by URI."""

    def __init__(self, rules_dir: Path | None = None):
        self.rules_dir = rules_dir or resolve_rules_dir()

    def read(self, uri: str) -> str:
        """
        Read and format the documents a URI refers to.

        Raises:
            ValueError: For unknown names
            FileNotFoundError: If a document is missing
        """
        names = parse_rules_uri(uri)
        return DOCUMENT_SEPARATOR.join(
            format_rule_document(name, read_rule_document(name, self.rules_dir)) for name in names
        )
