"""
Code-set resolution for a module's fields.

Fetches each distinct code set referenced by a module exactly once, fanning
out the fetches concurrently with asyncio.gather, and maps the items to
field options. Fetch failures are non-fatal and reported as warnings.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence

from formlogic.core.config import Settings, get_settings
from formlogic.core.errors import (
    BuildCancelledError,
    IssueCategory,
    IssueCode,
    ValidationIssue,
)
from formlogic.core.ontology import FieldDefinition, FieldOption

from .provider import CodeSetProvider

logger = logging.getLogger(__name__)


def raise_if_cancelled(cancel_event: asyncio.Event | None) -> None:
    """Abort with BuildCancelledError once the caller has set the event."""
    if cancel_event is not None and cancel_event.is_set():
        raise BuildCancelledError("Build cancelled")


def _ordered(options: Sequence[FieldOption]) -> tuple[FieldOption, ...]:
    return tuple(sorted(options, key=lambda option: option.order))


class CodeSetResolver:
    """Resolves option lists for fields, inline or from a code-set provider."""

    def __init__(
        self,
        provider: CodeSetProvider | None = None,
        settings: Settings | None = None,
    ):
        self.provider = provider
        self.settings = settings or get_settings()

    async def resolve(
        self,
        fields: Sequence[FieldDefinition],
        cancel_event: asyncio.Event | None = None,
    ) -> tuple[dict[str, tuple[FieldOption, ...]], list[ValidationIssue]]:
        """Resolve options for every field that has a data source.

        Args:
            fields: Field definitions of one module
            cancel_event: Optional event; when set, resolution stops and
                BuildCancelledError is raised

        Returns:
            (options by field id, resolution warnings)

        Raises:
            BuildCancelledError: If ``cancel_event`` was set
        """
        resolved: dict[str, tuple[FieldOption, ...]] = {}
        warnings: list[ValidationIssue] = []

        # Distinct code-set ids in first-reference order
        pending: dict[int, list[str]] = {}
        for field in fields:
            if field.options:
                resolved[field.id] = _ordered(field.options)
            elif field.code_set_id is not None:
                pending.setdefault(field.code_set_id, []).append(field.id)

        if not pending:
            return resolved, warnings

        if self.provider is None:
            for code_set_id, field_ids in pending.items():
                for field_id in field_ids:
                    warnings.append(ValidationIssue(
                        code=IssueCode.CODE_SET_PROVIDER_MISSING,
                        category=IssueCategory.RESOLUTION,
                        message=f"No code-set provider configured to resolve code set {code_set_id}",
                        field_id=field_id,
                    ))
            return resolved, warnings

        outcomes = await self._fetch_all(list(pending), cancel_event)

        for code_set_id, field_ids in pending.items():
            options, error = outcomes[code_set_id]
            for field_id in field_ids:
                if options is not None:
                    resolved[field_id] = options
                elif error is None:
                    warnings.append(ValidationIssue(
                        code=IssueCode.CODE_SET_NOT_FOUND,
                        category=IssueCategory.RESOLUTION,
                        message=f"Code set {code_set_id} not found",
                        field_id=field_id,
                    ))
                else:
                    warnings.append(ValidationIssue(
                        code=IssueCode.CODE_SET_FETCH_FAILED,
                        category=IssueCategory.RESOLUTION,
                        message=f"Failed to fetch code set {code_set_id}: {error}",
                        field_id=field_id,
                    ))

        return resolved, warnings

    async def _fetch_all(
        self,
        code_set_ids: list[int],
        cancel_event: asyncio.Event | None,
    ) -> dict[int, tuple[tuple[FieldOption, ...] | None, str | None]]:
        """Fetch distinct code sets concurrently (fan-out / fan-in)."""
        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrent_code_set_fetches))
        tasks: list[asyncio.Task] = []

        try:
            for code_set_id in code_set_ids:
                raise_if_cancelled(cancel_event)
                tasks.append(asyncio.create_task(self._fetch(code_set_id, semaphore)))
        except BuildCancelledError:
            await self._cancel(tasks)
            raise

        gathered = asyncio.gather(*tasks)

        if cancel_event is None:
            results = await gathered
        else:
            waiter = asyncio.create_task(cancel_event.wait())
            try:
                done, _ = await asyncio.wait(
                    {gathered, waiter}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                # Also reached when the calling task itself is cancelled
                await self._cancel([waiter, gathered])
            if gathered not in done:
                raise BuildCancelledError("Build cancelled while fetching code sets")
            results = gathered.result()

        raise_if_cancelled(cancel_event)
        return dict(zip(code_set_ids, results))

    async def _fetch(
        self, code_set_id: int, semaphore: asyncio.Semaphore
    ) -> tuple[tuple[FieldOption, ...] | None, str | None]:
        """Fetch one code set; never raises except on task cancellation."""
        timeout = self.settings.code_set_fetch_timeout_seconds
        async with semaphore:
            try:
                code_set = await asyncio.wait_for(
                    self.provider.get_code_set(code_set_id), timeout=timeout
                )
            except asyncio.TimeoutError:
                logger.warning("Code set %s fetch timed out after %ss", code_set_id, timeout)
                return None, f"timed out after {timeout}s"
            except Exception as e:
                logger.warning("Code set %s fetch failed: %s", code_set_id, e)
                return None, f"{type(e).__name__}: {e}"

        if code_set is None:
            logger.warning("Code set %s not found", code_set_id)
            return None, None
        return _ordered(code_set.to_options()), None

    @staticmethod
    async def _cancel(tasks: list[asyncio.Future]) -> None:
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
