"""
Validation Package
=================

This package provides file system safety checks and the MITRE ATT&CK
reference matrix used for technique/tactic mismatch checking.

Available Validators:
- SecurityValidator: File system security and input validation
- ReferenceMatrix: Technique -> tactic lookup built from the ATT&CK bundle
- ReferenceMatrixLoader: Retrieves the bundle over HTTP or from a local file
"""

from .security_validator import SecurityValidator
from .mitre_validator import (
    MatrixFetchError,
    MatrixLookupError,
    ReferenceMatrix,
    ReferenceMatrixLoader
)

__all__ = [
    'SecurityValidator',
    'MatrixFetchError',
    'MatrixLookupError',
    'ReferenceMatrix',
    'ReferenceMatrixLoader'
]
