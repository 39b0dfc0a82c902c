"""Storage root discovery.

The storage directory is looked up through an ordered list of named
sources. Each source is queried in turn and the first one that yields a
non-empty value wins:

    context      mapping handed to ``create_app`` (deployment parameters)
    environment  process environment, ``simplestore.directory`` or
                 ``SIMPLESTORE_DIRECTORY``
    properties   ``simplestore.properties`` shipped with the package
"""
import configparser
import os
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Sequence

from simple_store import config
from simple_store.logger_config import setup_logger

logger = setup_logger()

_PROPERTIES_SECTION = "properties"


class StartupConfigMissing(Exception):
    """Raised when no source provides a required configuration value."""


def env_name(name: str) -> str:
    """Environment form of a dotted parameter name."""
    return name.upper().replace(".", "_").replace("-", "_")


def read_properties(path: Path) -> Dict[str, str]:
    """Parse a Java-style properties file. A missing file yields no entries."""
    if not path.is_file():
        logger.debug(f"Properties file not found: {path}")
        return {}

    parser = configparser.ConfigParser(
        delimiters=("=", ":"),
        comment_prefixes=("#", "!"),
        interpolation=None,
        strict=False,
    )
    parser.optionxform = str  # keys are case sensitive
    with open(path, "r", encoding="utf-8") as f:
        parser.read_string(f"[{_PROPERTIES_SECTION}]\n" + f.read(), source=str(path))
    return dict(parser.items(_PROPERTIES_SECTION))


def _from_context(name: str, context: Optional[Mapping[str, str]], **_) -> Optional[str]:
    if not context:
        return None
    return context.get(name)


def _from_environment(name: str, environ: Optional[Mapping[str, str]] = None, **_) -> Optional[str]:
    environ = os.environ if environ is None else environ
    return environ.get(name) or environ.get(env_name(name))


def _from_properties(name: str, properties_file: Optional[Path] = None, **_) -> Optional[str]:
    path = Path(properties_file) if properties_file is not None else config.PROPERTIES_FILE
    logger.debug(f"Searching {name} in {path}")
    return read_properties(path).get(name)


SOURCES: Dict[str, Callable[..., Optional[str]]] = {
    "context": _from_context,
    "environment": _from_environment,
    "properties": _from_properties,
}


def get_config(
    name: str,
    context: Optional[Mapping[str, str]] = None,
    sources: Sequence[str] = config.CONFIG_SOURCES,
    default: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    properties_file: Optional[Path] = None,
) -> str:
    """Return the first value found for ``name`` across ``sources``."""
    for source in sources:
        lookup = SOURCES.get(source)
        if lookup is None:
            raise ValueError(f"Unknown configuration source: {source}")
        value = lookup(name, context=context, environ=environ, properties_file=properties_file)
        if value:
            logger.debug(f"Found {name} in {source}")
            return value

    if default is not None:
        return default
    raise StartupConfigMissing(f"Invalid param for: {name}")


def resolve_storage_root(
    context: Optional[Mapping[str, str]] = None,
    sources: Sequence[str] = config.CONFIG_SOURCES,
    environ: Optional[Mapping[str, str]] = None,
    properties_file: Optional[Path] = None,
) -> Path:
    """Look up the storage directory, create it if needed and canonicalize it."""
    value = get_config(
        config.STORAGE_PARAM,
        context=context,
        sources=sources,
        environ=environ,
        properties_file=properties_file,
    )
    root = Path(value).expanduser()
    root.mkdir(parents=True, exist_ok=True)
    return root.resolve(strict=True)
