"""Tree compiler: filesystem subtree -> ``Dir`` tree plus error records.

Construction order per directory:

1. Enumerate entries (sorted, hidden names skipped).
2. Dispatch each file: a handler generator keyed by the exact filename
   wins over one keyed by extension, which wins over a content processor
   keyed by extension. Anything else is a static file.
3. Clone the parent namespace once and run every content processor
   against the clone; each contributes the template named after the
   file stem.
4. Recurse into subdirectories with the post-content namespace.
5. Create the directory's handler last, once the subtree is complete.

A single broken file never aborts the pass. It becomes an inline error
notice and an ``ErrorRecord``. Enumeration failures abort only the
subtree they occur in, except at the root, where ``CompileError``
propagates to the caller.
"""

from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass, field

from arbor._internal.types import HandlerGenerator
from arbor.broker import Broker
from arbor.config import SiteConfig
from arbor.dir import Dir
from arbor.errors import CompileError, ContentError
from arbor.fs import FileSystem, join
from arbor.handlers.template import check_render, template_handler
from arbor.namespace import TemplateNamespace

logger = logging.getLogger("arbor.compiler")

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


def _fields(parts: tuple[str, ...]) -> list[str]:
    return [word for part in parts for word in _NON_ALNUM.split(part) if word]


def slugify(*parts: str) -> str:
    """URL segment for a name: lowercase alphanumeric runs joined by dashes.

    >>> slugify("My Post!")
    'my-post'
    """
    return "-".join(_fields(parts)).lower()


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """One non-fatal problem found during a compile pass."""

    url_path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"urlpath": self.url_path, "message": self.message}

    def __str__(self) -> str:
        return f"{self.url_path}: {self.message}"


@dataclass(frozen=True, slots=True)
class CompileResult:
    """A finished compile pass."""

    root: Dir
    errors: tuple[ErrorRecord, ...] = ()


@dataclass(slots=True)
class _PendingHandler:
    generator: HandlerGenerator
    filename: str
    stem: str
    content: bytes
    by_name: bool


@dataclass(slots=True)
class _Compiler:
    config: SiteConfig
    fs: FileSystem
    broker: Broker
    errors: list[ErrorRecord] = field(default_factory=list)

    def record(self, url_path: str, message: str) -> None:
        error = ErrorRecord(url_path, message)
        logger.warning("%s", error)
        self.errors.append(error)

    def hidden(self, name: str) -> bool:
        prefix = self.config.hidden_prefix
        return bool(prefix) and name.startswith(prefix)

    def compile_dir(self, fs_path: str, url_path: str, parent: TemplateNamespace) -> Dir:
        try:
            entries = self.fs.list_dir(fs_path)
        except OSError as exc:
            msg = f"reading directory {fs_path!r}: {exc}"
            raise CompileError(msg) from exc

        namespace = parent.clone()
        pending: _PendingHandler | None = None
        static: set[str] = set()
        own: list[str] = []
        has_content = False

        for entry in entries:
            if entry.is_dir or self.hidden(entry.name):
                continue

            stem, ext = posixpath.splitext(entry.name)
            generator = self.config.handlers.get(entry.name)
            by_name = generator is not None
            if generator is None and ext:
                generator = self.config.handlers.get(ext)
            processor = self.config.content.get(ext) if ext else None

            if generator is None and processor is None:
                static.add(entry.name)
                continue

            path = join(fs_path, entry.name)
            try:
                content = self.fs.read_bytes(path)
            except OSError as exc:
                self.record(url_path, f"{entry.name}: {exc}")
                continue

            if generator is not None:
                # Filename matches outrank extension matches; ties go to the later file
                if pending is None or by_name or not pending.by_name:
                    if pending is not None:
                        logger.debug(
                            "%s: handler file %s overrides %s",
                            url_path, entry.name, pending.filename,
                        )
                    pending = _PendingHandler(
                        generator, entry.name, "" if by_name else stem, content, by_name
                    )
                continue

            if content.strip():
                has_content = True
            if stem not in own:
                own.append(stem)
            try:
                contribution = processor(url_path, stem, content, self.broker)
                namespace.contribute(stem, contribution)
            except ContentError as exc:
                namespace.define_error(stem, str(exc))
                self.record(url_path, f"{entry.name}: {exc}")
            except Exception as exc:
                logger.exception("%s: processing %s", url_path, entry.name)
                namespace.define_error(stem, str(exc))
                self.record(url_path, f"{entry.name}: {exc}")

        subdirs: dict[str, Dir] = {}
        for entry in entries:
            if not entry.is_dir or self.hidden(entry.name):
                continue
            slug = slugify(entry.name)
            if not slug:
                self.record(url_path, f"directory {entry.name!r} has no URL-safe name, skipped")
                continue
            if slug in subdirs:
                logger.warning(
                    "%s: directory %r overrides an earlier directory with slug %r",
                    url_path, entry.name, slug,
                )
            child_url = posixpath.join(url_path, slug)
            try:
                subdirs[slug] = self.compile_dir(
                    join(fs_path, entry.name), child_url, namespace
                )
            except CompileError as exc:
                self.record(child_url, str(exc))

        directory = Dir(
            url_path=url_path,
            fs=self.fs,
            fs_path=fs_path,
            template=namespace,
            subdirs=subdirs,
            files=frozenset(static),
            own_templates=tuple(own),
            root_template=self.config.root_template,
            broker=self.broker,
        )

        if pending is not None:
            try:
                directory.handler = pending.generator(directory, pending.stem, pending.content)
            except Exception as exc:
                if not isinstance(exc, ContentError):
                    logger.exception("%s: generating handler from %s", url_path, pending.filename)
                self.record(url_path, f"{pending.filename}: {exc}")
        elif has_content:
            directory.handler = template_handler(directory)
            problem = check_render(directory)
            if problem is not None:
                self.record(url_path, problem)

        return directory


def compile_tree(
    config: SiteConfig,
    fs: FileSystem,
    broker: Broker,
    *,
    parent: TemplateNamespace | None = None,
    fs_path: str = ".",
    url_path: str = "/",
) -> CompileResult:
    """Compile the directory *fs_path* of *fs* into a ``Dir`` tree.

    The caller owns *broker* and calls ``broker.ready()`` once every tree
    sharing it has been compiled.

    Raises:
        CompileError: If the top directory itself cannot be enumerated.
    """
    compiler = _Compiler(config, fs, broker)
    root = compiler.compile_dir(fs_path, url_path, parent or TemplateNamespace())
    return CompileResult(root, tuple(compiler.errors))
