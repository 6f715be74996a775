"""Job store interface and the in-process implementation."""

from __future__ import annotations

import asyncio
import copy
import dataclasses
from typing import Any, Optional

from ..domain.models import ScrapeJob


class JobStore:
    """Key-value persistence for ScrapeJob records.

    Reads return copies; callers never hold a live reference to stored state.
    """

    async def create(self, job: ScrapeJob) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    async def get(self, job_id: str) -> Optional[ScrapeJob]:  # pragma: no cover - interface
        raise NotImplementedError

    async def update(self, job_id: str, **fields: Any) -> Optional[ScrapeJob]:  # pragma: no cover - interface
        raise NotImplementedError

    async def list_recent(self, limit: int) -> list[ScrapeJob]:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryJobStore(JobStore):
    """Process-local store. Jobs are kept for the life of the process (no eviction)."""

    def __init__(self) -> None:
        self._jobs: dict[str, ScrapeJob] = {}
        self._lock = asyncio.Lock()

    async def create(self, job: ScrapeJob) -> str:
        async with self._lock:
            if job.id in self._jobs:
                raise ValueError(f"job id already exists: {job.id}")
            self._jobs[job.id] = copy.deepcopy(job)
            return job.id

    async def get(self, job_id: str) -> Optional[ScrapeJob]:
        async with self._lock:
            job = self._jobs.get(job_id)
            return copy.deepcopy(job) if job is not None else None

    async def update(self, job_id: str, **fields: Any) -> Optional[ScrapeJob]:
        async with self._lock:
            existing = self._jobs.get(job_id)
            if existing is None:
                return None
            updated = dataclasses.replace(existing, **copy.deepcopy(fields))
            self._jobs[job_id] = updated
            return copy.deepcopy(updated)

    async def list_recent(self, limit: int) -> list[ScrapeJob]:
        async with self._lock:
            jobs = sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)
            return [copy.deepcopy(j) for j in jobs[: max(0, limit)]]
