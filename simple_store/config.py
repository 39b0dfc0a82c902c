"""Configuration settings for the Simple Store server."""
from pathlib import Path

PACKAGE_DIR = Path(__file__).parent

# Storage root lookup
STORAGE_PARAM = "simplestore.directory"
PROPERTIES_FILE = PACKAGE_DIR / "simplestore.properties"
# Sources are queried in this order until one yields a value
CONFIG_SOURCES = ("context", "environment", "properties")

# Streaming
CHUNK_SIZE = 4096  # 4KB chunks

# Cache directives
NO_CACHE = "private, no-cache, no-store"
LIGHT_CACHE = "must-revalidate, max-age=1"

# Fallback content types for extensions the MIME registry may not know
FALLBACK_MIME_TYPES = {
    ".properties": "text/x-java-properties",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
    ".json": "application/json",
    ".md": "text/markdown",
}

# Content types for compressed files, keyed by the encoding mimetypes reports
ENCODING_MIME_TYPES = {
    "gzip": "application/gzip",
    "bzip2": "application/x-bzip2",
    "xz": "application/x-xz",
    "compress": "application/x-compress",
    "br": "application/x-brotli",
}

# Server
HOST = "0.0.0.0"
PORT = 8000
URL_PREFIX = ""

# Logging
LOGGER_NAME = "simple_store"
LOGS_DIR = "logs"
LOG_FILE = "simple_store.log"
FILE_LOG_LEVEL = "DEBUG"
CONSOLE_LOG_LEVEL = "INFO"
