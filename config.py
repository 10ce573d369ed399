"""
Configuration Constants and Settings
===================================

This module centralizes all configuration values used throughout the application.
Rule discovery, tag classification, the reference matrix fetch and the layer
document format all read their constants from here.
"""

# Version information - used for tracking and compatibility
VERSION = "1.2.0"
APPLICATION_NAME = "S2AN - Detection Rules to ATT&CK Navigator"
REPO_URL = "https://github.com/3CORESec/S2AN"

# Rule formats understood by the scanner
RULE_FORMAT_SIGMA = "sigma"
RULE_FORMAT_SURICATA = "suricata"
RULE_FORMATS = (RULE_FORMAT_SIGMA, RULE_FORMAT_SURICATA)

# File processing settings
SIGMA_EXTENSIONS = {'.yml', '.yaml'}
SURICATA_EXTENSIONS = {'.rules'}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB per rule file
ENCODING = 'utf-8'

# Pseudo filesystems that must never be scanned or written to
FORBIDDEN_PATH_PATTERNS = [
    '/proc/',
    '/sys/',
    '/dev/',
]

# MITRE ATT&CK reference matrix - official CTI repository URL
MITRE_ATTACK_URL = "https://raw.githubusercontent.com/mitre/cti/master/enterprise-attack/enterprise-attack.json"
MITRE_REQUEST_TIMEOUT = 30        # seconds
MITRE_SOURCE_NAME = "mitre-attack"
HTTP_USER_AGENT = f"S2AN/{VERSION} (ATT&CK Navigator layer generator)"

# Tag classification
ATTACK_NAMESPACE = "attack."
TECHNIQUE_TAG_PREFIX = "attack.t"

# Suricata inline references (trailing space in the marker is significant)
SURICATA_TECHNIQUE_MARKER = "mitre_technique_id "
SURICATA_SID_MARKER = "sid:"
SURICATA_MSG_MARKER = 'msg:"'
SURICATA_FIELD_TERMINATORS = (',', ';')

# Navigator layer format constants
LAYER_DOMAIN = "mitre-enterprise"
LAYER_VERSION = "4.2"
GRADIENT_COLORS = ["#a0eab5", "#0f480f"]
GRADIENT_MIN_VALUE = 0
LAYER_NAMES = {
    RULE_FORMAT_SIGMA: "Sigma signatures coverage",
    RULE_FORMAT_SURICATA: "Suricata rules coverage",
}
DEFAULT_OUTPUT_FILES = {
    RULE_FORMAT_SIGMA: "sigma-coverage.json",
    RULE_FORMAT_SURICATA: "suricata-coverage.json",
}
OUTPUT_EXTENSION = ".json"

# Gradient ceiling strategies
CEILING_MAX_SCORE = "max-score"
CEILING_TECHNIQUE_COUNT = "technique-count"
GRADIENT_CEILINGS = (CEILING_MAX_SCORE, CEILING_TECHNIQUE_COUNT)
DEFAULT_GRADIENT_CEILING = CEILING_MAX_SCORE

# Logging configuration
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

MISMATCH_HEADER = "Attention - mismatch between technique and tactic has been detected!"


def get_banner() -> str:
    """
    Returns the application banner for CLI display.
    """
    banner = f"""
{'='*60}
{APPLICATION_NAME} v{VERSION}
{REPO_URL}
{'='*60}
Sigma and Suricata rule coverage layers for MITRE ATT&CK Navigator.
{'='*60}
"""
    return banner


def get_file_size_limit_mb() -> int:
    """
    Returns the file size limit in megabytes for easy reading.

    Returns:
        int: Maximum file size in MB
    """
    return MAX_FILE_SIZE // (1024 * 1024)
