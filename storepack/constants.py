"""Filesystem layout and naming shared by the bundler and the deployer."""

# Deployed static content, relative to the project root
STATIC_FRONTEND = "pub/static/frontend"
FRONTEND = "frontend"
LOCALES_GLOB = "*/*/*"
SKIPPED_THEMES = ("Magento/blank",)

# Output directories, relative to a locale root
BUNDLE_DIR = "magepack"
STAGING_DIR = "magepack.staging"
BACKUP_DIR = "magepack.backup"

REQUIREJS_CONFIG = "requirejs-config.js"
REQUIREJS_CONFIG_MIN = "requirejs-config.min.js"
REQUIREJS_MAP = "requirejs-map.js"
REQUIREJS_MAP_MIN = "requirejs-map.min.js"
SRI_HASHES = "sri-hashes.json"

DEFAULT_DEFINITION_FILE = "magepack.config.js"

MARKER_START = "/* storepack:start */"
MARKER_END = "/* storepack:end */"

VENDOR_BUNDLE = "vendor"
COMMON_BUNDLE = "common"
RESERVED_BUNDLES = (VENDOR_BUNDLE, COMMON_BUNDLE)

# Bounds concurrently open module files within one bundle
READ_BATCH_SIZE = 16


def bundle_filename(name: str, minified: bool) -> str:
    return f"bundle-{name}{'.min.js' if minified else '.js'}"


def bundle_id(name: str) -> str:
    """Logical RequireJS id of a bundle, stable across minification states."""
    return f"{BUNDLE_DIR}/bundle-{name}"
