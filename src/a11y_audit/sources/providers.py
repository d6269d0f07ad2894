"""Audit sources: where audit and violation rows come from."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx

from ..config import DEFAULT_AUDIT_LIMIT, load_settings
from ..errors import (
    AuditNotFoundError,
    InvalidInputError,
    SourceError,
    SourceNotConfiguredError,
)
from ..models import AggregatedViolation, AuditSnapshot


logger = logging.getLogger(__name__)

COMPLETED = "COMPLETED"

AUDIT_COLUMNS = (
    "id,project_id,status,created_at,completed_at,summary,health_score,"
    "processed_pages,broken_pages_count,previous_audit_id,wcag_levels,include_emag"
)
VIOLATION_COLUMNS = "rule_id,fingerprint,impact,occurrences,page_count,help,description"


class AuditSource(ABC):
    """Base class for audit sources."""

    name: str

    @abstractmethod
    def get_audit(self, audit_id: str) -> AuditSnapshot:
        """Fetch one audit; raises AuditNotFoundError if it does not exist."""
        pass

    @abstractmethod
    def get_violations(self, audit_id: str) -> list[AggregatedViolation]:
        """Fetch the aggregated violations of an audit."""
        pass

    @abstractmethod
    def list_completed_audits(
        self,
        project_id: str,
        since: datetime | None = None,
        limit: int = DEFAULT_AUDIT_LIMIT,
        exclude_id: str | None = None,
    ) -> list[AuditSnapshot]:
        """Completed audits of a project, newest first."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the source can be queried."""
        pass


class SupabaseSource(AuditSource):
    """Reads audits through the Supabase PostgREST API."""

    name = "Supabase"

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        settings = load_settings()
        self.url = (url or settings.supabase_url or "").rstrip("/")
        self.key = key or settings.supabase_key
        self.timeout = timeout if timeout is not None else settings.timeout
        self.transport = transport

    def is_configured(self) -> bool:
        return bool(self.url and self.key)

    def get_audit(self, audit_id: str) -> AuditSnapshot:
        rows = self._select("audits", {"select": AUDIT_COLUMNS, "id": f"eq.{audit_id}", "limit": "1"})
        if not rows:
            raise AuditNotFoundError(audit_id)
        return AuditSnapshot.from_dict(rows[0])

    def get_violations(self, audit_id: str) -> list[AggregatedViolation]:
        rows = self._select(
            "aggregated_violations",
            {"select": VIOLATION_COLUMNS, "audit_id": f"eq.{audit_id}"},
        )
        return [AggregatedViolation.from_dict(row) for row in rows]

    def list_completed_audits(
        self,
        project_id: str,
        since: datetime | None = None,
        limit: int = DEFAULT_AUDIT_LIMIT,
        exclude_id: str | None = None,
    ) -> list[AuditSnapshot]:
        params: list[tuple[str, str]] = [
            ("select", AUDIT_COLUMNS),
            ("project_id", f"eq.{project_id}"),
            ("status", f"eq.{COMPLETED}"),
            ("order", "created_at.desc"),
            ("limit", str(limit)),
        ]
        if exclude_id:
            params.append(("id", f"neq.{exclude_id}"))
        if since is not None:
            params.append(("created_at", f"gte.{since.isoformat()}"))

        return [AuditSnapshot.from_dict(row) for row in self._select("audits", params)]

    def _select(self, table: str, params) -> list[dict[str, Any]]:
        if not self.is_configured():
            raise SourceNotConfiguredError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        logger.debug("GET %s/rest/v1/%s", self.url, table)
        try:
            with httpx.Client(
                timeout=self.timeout,
                transport=self.transport,
                headers={
                    "apikey": self.key,
                    "Authorization": f"Bearer {self.key}",
                    "Accept": "application/json",
                },
            ) as client:
                resp = client.get(f"{self.url}/rest/v1/{table}", params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException:
            raise SourceError(f"Timeout after {self.timeout}s querying {table}") from None
        except httpx.HTTPStatusError as e:
            raise SourceError(f"HTTP {e.response.status_code} querying {table}") from e
        except httpx.RequestError as e:
            raise SourceError(f"Request failed: {e}") from e
        except ValueError as e:
            raise SourceError(f"Invalid JSON from {table}: {e}") from e

        if not isinstance(data, list):
            raise SourceError(f"Unexpected response from {table}")
        return data


class JsonFileSource(AuditSource):
    """Reads an export file of audit and violation rows.

    Expected layout: {"audits": [...], "violations": [...]}, where each
    violation row carries its `audit_id`.
    """

    name = "JSON file"

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._audits: dict[str, dict[str, Any]] | None = None
        self._violations: list[dict[str, Any]] = []

    def is_configured(self) -> bool:
        return self.path.is_file()

    def get_audit(self, audit_id: str) -> AuditSnapshot:
        row = self._load().get(audit_id)
        if row is None:
            raise AuditNotFoundError(audit_id)
        return AuditSnapshot.from_dict(row)

    def get_violations(self, audit_id: str) -> list[AggregatedViolation]:
        self._load()
        return [
            AggregatedViolation.from_dict(row)
            for row in self._violations
            if str(row.get("audit_id")) == audit_id
        ]

    def list_completed_audits(
        self,
        project_id: str,
        since: datetime | None = None,
        limit: int = DEFAULT_AUDIT_LIMIT,
        exclude_id: str | None = None,
    ) -> list[AuditSnapshot]:
        audits = []
        for row in self._load().values():
            if str(row.get("project_id")) != project_id:
                continue
            if (row.get("status") or COMPLETED) != COMPLETED or row.get("id") == exclude_id:
                continue
            audit = AuditSnapshot.from_dict(row)
            if since is not None and audit.created_at < since:
                continue
            audits.append(audit)

        audits.sort(key=lambda a: a.created_at, reverse=True)
        return audits[:limit]

    def _load(self) -> dict[str, dict[str, Any]]:
        if self._audits is not None:
            return self._audits

        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            raise SourceError(f"Export file not found: {self.path}") from None
        except json.JSONDecodeError as e:
            raise SourceError(f"Invalid JSON in {self.path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("audits"), list):
            raise InvalidInputError(f"{self.path} must contain an 'audits' list")

        if any(not isinstance(row, dict) or "id" not in row for row in data["audits"]):
            raise InvalidInputError(f"Every audit in {self.path} needs an 'id'")

        self._audits = {str(row["id"]): row for row in data["audits"]}
        self._violations = list(data.get("violations") or [])
        logger.debug("Loaded %d audits from %s", len(self._audits), self.path)
        return self._audits


def get_configured_source(path: str | Path | None = None, timeout: float | None = None) -> AuditSource:
    """Pick the export file when given, else Supabase from the environment."""
    if path is not None:
        return JsonFileSource(path)

    source = SupabaseSource(timeout=timeout)
    if source.is_configured():
        return source

    raise SourceNotConfiguredError(
        "No audit source: pass an export file or set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"
    )
