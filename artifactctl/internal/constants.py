APP_NAME = "artifactctl"

# ---------------------------------------------------------------------
# Install destinations
# ---------------------------------------------------------------------

DEFAULT_PLUGINS_DIR = "/usr/share/falco/plugins"
DEFAULT_RULESFILES_DIR = "/etc/falco"

# ---------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------

INDEXES_FILE_NAME = "indexes.yaml"
INDEX_FILE_SUFFIX = ".yaml"

# Tag used when a bare name is resolved through an index
DEFAULT_TAG = "latest"

# ---------------------------------------------------------------------
# Registry / OCI
# ---------------------------------------------------------------------

REGISTRY_TIMEOUT_SECONDS = 30.0
DOWNLOAD_CHUNK_SIZE = 1024 * 1024

OCI_INDEX_MEDIA_TYPE = "application/vnd.oci.image.index.v1+json"
OCI_MANIFEST_MEDIA_TYPE = "application/vnd.oci.image.manifest.v1+json"

PLUGIN_CONFIG_MEDIA_TYPE = "application/vnd.cncf.falco.plugin.config.v1+json"
RULESFILE_CONFIG_MEDIA_TYPE = "application/vnd.cncf.falco.rulesfile.config.v1+json"

TITLE_ANNOTATION = "org.opencontainers.image.title"
