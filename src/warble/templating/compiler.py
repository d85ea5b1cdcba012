"""Template compilation — filesystem tree in, immutable ``TemplateSet`` out.

Algorithm:
    1. Walk the filesystem from its root, depth first.
    2. Directories are descended and never parsed, even when their name
       ends in a template extension (``users.tmpl/`` is a directory).
    3. Files are matched against the configured extensions in order; the
       first one the file name ends with wins. Unmatched files are skipped.
    4. The template name is the path minus that extension, slash-separated.
    5. Every template shares one Jinja2 environment: delimiters applied,
       user helper bundles installed in order, built-in helpers last.
    6. Read and parse failures are collected per file and the walk carries
       on. If anything failed, ``CompilationError`` lists every failure.
       A listed file that can no longer be opened (a dangling symlink such
       as an editor lock file, or a file deleted mid-walk) is skipped with
       a warning.

A missing root directory compiles to an empty set, so renderers that only
emit JSON or XML need no template directory at all. Any other error while
listing directories propagates unchanged.
"""

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined, Template, TemplateError, Undefined

from warble.config import DEFAULT_DELIMS, Delims
from warble.errors import CompilationError, TemplateFailure, TemplateNotFound
from warble.fs.base import FileInfo, FileSystem, read_file, stat, walk
from warble.templating.helpers import BUILTIN_HELPERS

logger = logging.getLogger("warble.templates")


class TemplateSet(Mapping[str, Template]):
    """Compiled templates from one compilation pass, keyed by name.

    Immutable: recompilation builds a new set rather than patching this one.
    The Jinja2 environment is kept alongside so ``include`` and ``extends``
    resolve against the same templates.
    """

    __slots__ = ("_env", "_templates")

    def __init__(self, env: Environment, templates: Mapping[str, Template]) -> None:
        self._env = env
        self._templates = dict(templates)

    @property
    def env(self) -> Environment:
        return self._env

    def lookup(self, name: str) -> Template | None:
        return self._templates.get(name)

    def require(self, name: str) -> Template:
        template = self._templates.get(name)
        if template is None:
            raise TemplateNotFound(name)
        return template

    def __getitem__(self, name: str) -> Template:
        return self._templates[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def __repr__(self) -> str:
        return f"TemplateSet({sorted(self._templates)!r})"


def create_environment(
    sources: Mapping[str, str],
    *,
    delims: Delims = DEFAULT_DELIMS,
    funcs: Sequence[Mapping[str, Any]] = (),
    autoescape: bool = True,
    trim_blocks: bool = True,
    lstrip_blocks: bool = True,
    strict_undefined: bool = True,
) -> Environment:
    """Create the shared Jinja2 environment for one compilation pass."""
    env = Environment(
        loader=DictLoader(dict(sources)),
        autoescape=autoescape,
        undefined=StrictUndefined if strict_undefined else Undefined,
        variable_start_string=delims.left,
        variable_end_string=delims.right,
        trim_blocks=trim_blocks,
        lstrip_blocks=lstrip_blocks,
        keep_trailing_newline=True,
        auto_reload=False,
        cache_size=-1,
    )

    # Later bundles override earlier ones
    for bundle in funcs:
        env.globals.update(bundle)

    # Built-ins last: they always win
    env.globals.update(BUILTIN_HELPERS)

    return env


def match_extension(path: str, extensions: Sequence[str]) -> str | None:
    """Return the first extension *path* ends with, or ``None``."""
    basename = path.rsplit("/", 1)[-1]
    for extension in extensions:
        if basename.endswith(extension) and len(basename) > len(extension):
            return extension
    return None


def _template_entries(fs: FileSystem) -> Iterator[tuple[str, FileInfo]]:
    try:
        stat(fs, ".")
    except FileNotFoundError:
        logger.debug("template root of %r does not exist, compiling an empty set", fs)
        return
    yield from walk(fs)


def compile_templates(
    fs: FileSystem,
    *,
    extensions: Sequence[str] = (".tmpl",),
    delims: Delims = DEFAULT_DELIMS,
    funcs: Sequence[Mapping[str, Any]] = (),
    autoescape: bool = True,
    trim_blocks: bool = True,
    lstrip_blocks: bool = True,
    strict_undefined: bool = True,
) -> TemplateSet:
    """Compile every template under *fs* into a new ``TemplateSet``.

    Raises:
        CompilationError: One or more files could not be read or parsed.
        OSError: Listing a directory failed; the walk stops immediately.
    """
    sources: dict[str, str] = {}
    paths: dict[str, str] = {}
    failures: list[TemplateFailure] = []

    for path, info in _template_entries(fs):
        if info.is_dir:
            continue

        extension = match_extension(path, extensions)
        if extension is None:
            continue

        name = path[: -len(extension)]
        try:
            sources[name] = read_file(fs, path).decode("utf-8")
        except FileNotFoundError:
            # Listed but unreadable: a dangling symlink or a file removed mid-walk
            logger.warning("skipping %s: listed but no longer readable", path)
            continue
        except Exception as exc:  # noqa: BLE001
            failures.append(TemplateFailure(path, exc))
            continue
        paths[name] = path

    env = create_environment(
        sources,
        delims=delims,
        funcs=funcs,
        autoescape=autoescape,
        trim_blocks=trim_blocks,
        lstrip_blocks=lstrip_blocks,
        strict_undefined=strict_undefined,
    )

    templates: dict[str, Template] = {}
    for name in sources:
        try:
            templates[name] = env.get_template(name)
        except TemplateError as exc:
            failures.append(TemplateFailure(paths[name], exc))

    if failures:
        raise CompilationError(tuple(failures))

    logger.debug("compiled %d templates from %r", len(templates), fs)
    return TemplateSet(env, templates)
