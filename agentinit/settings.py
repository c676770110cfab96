# This file is part of agentinit. See LICENSE file for license information.

# Set and read for determining the config file location
CFG_ENV_NAME = "AGENTINIT_CFG"
AGENTINIT_CONFIG = "/etc/agentinit/agentinit.cfg"

DEFAULT_METADATA_URL = "http://169.254.169.254"

# Default configuration, values in the config file override these
CFG_BUILTIN = {
    "infrastructure": {
        "Aws": {
            "metadata_url": DEFAULT_METADATA_URL,
            # seconds, applied to every metadata and registry request
            "timeout": 5,
            "max_bytes": 1024 * 1024,
            "dns_timeout": 5,
            "dns_port": 53,
        },
    },
}
