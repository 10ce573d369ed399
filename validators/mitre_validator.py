"""
MITRE ATT&CK Reference Matrix
=============================

This module builds the technique -> tactics lookup used to check the tactic
tags of Sigma rules against the official MITRE ATT&CK framework.

The ATT&CK STIX bundle lists every technique as an ``attack-pattern`` object
whose ``external_references`` carry the technique ID and whose
``kill_chain_phases`` name the tactics it belongs to. A technique can appear in
more than one object (revoked and current copies, for instance), so tactics
from every object that defines it are unioned together.

The loader can read the bundle from the official CTI repository or from a
local copy of the JSON file, which keeps the tool usable on hosts without
outbound network access.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Set

import requests

from config import (
    ENCODING,
    HTTP_USER_AGENT,
    MITRE_ATTACK_URL,
    MITRE_REQUEST_TIMEOUT,
    MITRE_SOURCE_NAME
)

logger = logging.getLogger(__name__)


class MatrixLookupError(LookupError):
    """Raised when a selected matrix record has no ``mitre-attack`` reference."""

    def __init__(self, record: Mapping[str, Any]):
        self.record_id = record.get('id', '<unknown>') if isinstance(record, Mapping) else '<unknown>'
        super().__init__(
            f"No '{MITRE_SOURCE_NAME}' external reference with an external_id "
            f"in matrix record {self.record_id}"
        )


class MatrixFetchError(RuntimeError):
    """Raised when the reference matrix document cannot be retrieved or decoded."""


def is_selectable(record: Any) -> bool:
    """
    Check whether a matrix record contributes technique/tactic pairs.

    A record is selected when it has external references, at least one of them
    names a source, and the record carries kill chain phases.
    """
    if not isinstance(record, Mapping):
        return False
    references = record.get('external_references')
    if not references or record.get('kill_chain_phases') is None:
        return False
    return any(isinstance(ref, Mapping) and ref.get('source_name') is not None
               for ref in references)


def find_technique_id(record: Mapping[str, Any]) -> str:
    """
    Return the external ID of the record's first ``mitre-attack`` reference.

    Raises:
        MatrixLookupError: If no such reference exists
    """
    for ref in record.get('external_references', []):
        if isinstance(ref, Mapping) and ref.get('source_name') == MITRE_SOURCE_NAME:
            external_id = ref.get('external_id')
            if external_id is None:
                break
            return str(external_id)
    raise MatrixLookupError(record)


def iter_phase_names(record: Mapping[str, Any]) -> Iterator[str]:
    for phase in record.get('kill_chain_phases') or []:
        if isinstance(phase, Mapping) and phase.get('phase_name') is not None:
            yield str(phase['phase_name'])


class ReferenceMatrix:
    """
    Technique -> set of tactic names, built from an ATT&CK bundle.

    Technique IDs are used exactly as they appear in the bundle. The matrix is
    built once per run and only read afterwards.

    Attributes:
        records_selected: Number of bundle records that contributed tactics
        records_skipped: Number of selected records skipped for missing attribution
    """

    def __init__(self, entries: Optional[Mapping[str, Iterable[str]]] = None):
        self._tactics: Dict[str, Set[str]] = {}
        self.records_selected = 0
        self.records_skipped = 0

        for technique_id, tactics in (entries or {}).items():
            self.add(technique_id, tactics)

    @classmethod
    def from_document(cls, document: Mapping[str, Any],
                      skip_unattributed: bool = False) -> "ReferenceMatrix":
        """
        Build the matrix from a parsed ATT&CK bundle.

        Args:
            document: Parsed JSON document with a top-level ``objects`` list
            skip_unattributed: Skip selected records that lack a ``mitre-attack``
                reference instead of failing

        Returns:
            ReferenceMatrix: The populated matrix

        Raises:
            MatrixLookupError: If a selected record lacks a ``mitre-attack``
                reference and skip_unattributed is False
        """
        matrix = cls()

        for record in document.get('objects') or []:
            if not is_selectable(record):
                continue

            try:
                technique_id = find_technique_id(record)
            except MatrixLookupError as e:
                if not skip_unattributed:
                    raise
                matrix.records_skipped += 1
                logger.warning(f"Skipping matrix record: {str(e)}")
                continue

            matrix.records_selected += 1
            matrix.add(technique_id, iter_phase_names(record))

        logger.debug(f"Reference matrix built from {matrix.records_selected} records "
                     f"({matrix.records_skipped} skipped)")
        return matrix

    def add(self, technique_id: str, tactics: Iterable[str]) -> None:
        """Union tactics into the entry for technique_id, creating it if absent."""
        self._tactics.setdefault(technique_id, set()).update(tactics)

    def tactics_for(self, technique_id: str) -> Set[str]:
        return set(self._tactics.get(technique_id, ()))

    def knows(self, technique_id: str, tactic: str) -> bool:
        """Check whether the matrix lists tactic among the technique's tactics."""
        return tactic in self._tactics.get(technique_id, ())

    @property
    def techniques(self) -> Set[str]:
        return set(self._tactics)

    @property
    def tactic_names(self) -> Set[str]:
        names = set()
        for tactics in self._tactics.values():
            names.update(tactics)
        return names

    def get_summary(self) -> Dict[str, Any]:
        return {
            'technique_count': len(self._tactics),
            'tactic_count': len(self.tactic_names),
            'records_selected': self.records_selected,
            'records_skipped': self.records_skipped
        }

    def __contains__(self, technique_id: object) -> bool:
        return technique_id in self._tactics

    def __len__(self) -> int:
        return len(self._tactics)

    def __str__(self) -> str:
        return f"ReferenceMatrix(techniques={len(self._tactics)}, tactics={len(self.tactic_names)})"


class ReferenceMatrixLoader:
    """
    Retrieves the ATT&CK bundle and turns it into a ReferenceMatrix.

    The source may be an HTTP(S) URL or a path to a local JSON file. Network
    requests go through a requests Session with a bounded timeout; there is no
    retry policy.

    Attributes:
        source: URL or local path of the ATT&CK bundle
        timeout: Request timeout in seconds
    """

    def __init__(self, source: str = MITRE_ATTACK_URL,
                 timeout: float = MITRE_REQUEST_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.source = source
        self.timeout = timeout
        self._session = session or self._configure_http_session()

    @staticmethod
    def _configure_http_session() -> requests.Session:
        session = requests.Session()
        session.headers.update({
            'User-Agent': HTTP_USER_AGENT,
            'Accept': 'application/json',
            'Accept-Encoding': 'gzip, deflate'
        })
        return session

    def _is_local_source(self) -> bool:
        if self.source.startswith('file://'):
            return True
        if '://' in self.source:
            return False
        return Path(self.source).is_file()

    def fetch_document(self) -> Dict[str, Any]:
        """
        Retrieve and decode the ATT&CK bundle.

        Returns:
            Dict[str, Any]: The parsed bundle

        Raises:
            MatrixFetchError: If the bundle cannot be read, the request fails,
                or the payload is not a JSON object with an ``objects`` field
        """
        if self._is_local_source():
            document = self._read_local_document()
        else:
            document = self._download_document()

        if not isinstance(document, dict) or 'objects' not in document:
            raise MatrixFetchError(
                f"Invalid MITRE ATT&CK data from {self.source}: missing 'objects' field"
            )
        return document

    def _read_local_document(self) -> Any:
        path = Path(self.source[len('file://'):] if self.source.startswith('file://') else self.source)
        logger.info(f"Loading MITRE ATT&CK data from local file: {path}")
        try:
            with open(path, 'r', encoding=ENCODING) as f:
                return json.load(f)
        except OSError as e:
            raise MatrixFetchError(f"Cannot read MITRE ATT&CK data from {path}: {str(e)}") from e
        except json.JSONDecodeError as e:
            raise MatrixFetchError(f"Invalid JSON in MITRE ATT&CK data: {str(e)}") from e

    def _download_document(self) -> Any:
        logger.info(f"Fetching MITRE ATT&CK data from {self.source}")
        try:
            response = self._session.get(self.source, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise MatrixFetchError(
                f"Timeout fetching MITRE ATT&CK data (>{self.timeout}s)"
            ) from e
        except requests.exceptions.HTTPError as e:
            raise MatrixFetchError(f"Failed to fetch MITRE ATT&CK data: {str(e)}") from e
        except requests.exceptions.RequestException as e:
            raise MatrixFetchError(f"Request error fetching MITRE ATT&CK data: {str(e)}") from e

        try:
            return response.json()
        except ValueError as e:
            raise MatrixFetchError(f"Invalid JSON in MITRE ATT&CK data: {str(e)}") from e

    def load(self, skip_unattributed: bool = False) -> ReferenceMatrix:
        """
        Fetch the bundle and build the reference matrix.

        Raises:
            MatrixFetchError: If the bundle cannot be retrieved
            MatrixLookupError: If a record lacks attribution and
                skip_unattributed is False
        """
        document = self.fetch_document()
        matrix = ReferenceMatrix.from_document(document, skip_unattributed=skip_unattributed)

        summary = matrix.get_summary()
        logger.info("Loaded MITRE ATT&CK reference matrix:")
        logger.info(f"  - {summary['technique_count']} techniques")
        logger.info(f"  - {summary['tactic_count']} tactics")
        return matrix
