"""Application and site configuration.

Both are frozen dataclasses, immutable after creation and IDE-autocompletable.
``SiteConfig`` is threaded explicitly through every compile pass instead of
living in module-level registries.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from arbor._internal.types import ContentProcessor, HandlerGenerator


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(root_dir="site", port=3000, secret="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    log_level: str = "info"

    # Content
    root_dir: str | Path = "."

    # Reload endpoints
    secret: str = ""  # Empty = generate a temporary secret at startup
    git_reload: bool = False  # Enable /git-reload (root_dir must be a git working copy)
    reload_interval: float = 60.0
    reload_capacity: int = 2


@dataclass(frozen=True, slots=True)
class SiteConfig:
    """Compiler configuration: which files become templates and which become handlers.

    ``content`` maps a file extension (``".md"``) to a content processor.
    ``handlers`` maps a full filename (``"redirect"``) or an extension to a
    handler generator. Filename matches win over extension matches, which
    win over content processors.
    """

    content: Mapping[str, ContentProcessor] = field(default_factory=dict)
    handlers: Mapping[str, HandlerGenerator] = field(default_factory=dict)
    hidden_prefix: str = "."
    root_template: str = "html"

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", MappingProxyType(dict(self.content)))
        object.__setattr__(self, "handlers", MappingProxyType(dict(self.handlers)))


def default_site_config() -> SiteConfig:
    """Site configuration with every bundled processor and handler wired up."""
    from arbor.content.countdown import countdown
    from arbor.content.html import html
    from arbor.content.markdown import MarkdownProcessor
    from arbor.handlers.miniblog import latest, miniblog_handler
    from arbor.handlers.redirect import redirect_handler

    return SiteConfig(
        content={
            ".countdown": countdown,
            ".html": html,
            ".latest": latest,
            ".md": MarkdownProcessor(),
        },
        handlers={
            "miniblog": miniblog_handler,
            "redirect": redirect_handler,
        },
    )
