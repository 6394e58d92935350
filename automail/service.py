from __future__ import annotations

import asyncio
import functools
import logging
import random
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple

from .catalog import RecipientDirectory, TemplateRegistry, code_catalog, load_catalog
from .channels import send_email
from .collectors import DataProvider, build_data_provider
from .config import ADDENDUM_LABEL, MailSettings
from .errors import DataError, DataUnavailable, GenerationError, ValidationError
from .models import CatalogEntry, DataResponse, DispatchRequest, DispatchResult, MailContent, normalize_code
from .rendering import render

LOGGER = logging.getLogger(__name__)

Deliver = Callable[[MailContent], None]

MISSING_CODE_MESSAGE = "Please provide a valid code"
MISSING_DATE_MESSAGE = "Please provide a valid date"
SENT_MESSAGE = "Mail sent successfully"


class ContentGenerator:
    """Turns a (code, date) pair into a fully rendered ``MailContent``."""

    def __init__(
        self,
        directory: RecipientDirectory,
        registry: TemplateRegistry,
        provider: DataProvider,
        settings: Optional[MailSettings] = None,
    ) -> None:
        self.directory = directory
        self.registry = registry
        self.provider = provider
        self.settings = settings or MailSettings()

    async def generate(self, code: str, target_date: date) -> MailContent:
        recipient = self.directory.resolve(code)
        template = self.registry.resolve(code)
        try:
            data = await self.provider.fetch(code, target_date)
        except DataError as exc:
            raise DataUnavailable(normalize_code(code), exc.reason) from exc

        subject, body = render(template, data, target_date, recipient)
        return MailContent(
            subject=subject,
            body=body,
            recipient_email=recipient.email,
            recipient_name=recipient.name,
            sender_email=self.settings.sender_email,
            sender_name=self.settings.sender_name,
        )


def append_addendum(body: str, additional_message: Optional[str]) -> str:
    if not additional_message:
        return body
    return f"{body}\n\n{ADDENDUM_LABEL}\n{additional_message}"


def validate(code: object, target_date: Optional[date]) -> Tuple[str, date]:
    """Return the normalized code and date or raise ``ValidationError``."""
    if not isinstance(code, str):
        raise ValidationError(MISSING_CODE_MESSAGE)
    normalized = normalize_code(code)
    if not normalized:
        raise ValidationError(MISSING_CODE_MESSAGE)
    if target_date is None:
        raise ValidationError(MISSING_DATE_MESSAGE)
    return normalized, target_date


class MailDispatcher:
    """Entry point for previewing and sending generated mail.

    ``dispatch`` never raises: every validation, generation and delivery
    failure comes back as an unsuccessful ``DispatchResult``. Delivery is
    attempted at most once per call.
    """

    def __init__(
        self,
        generator: ContentGenerator,
        deliver: Deliver,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.generator = generator
        self.deliver = deliver
        self.clock = clock

    async def preview(self, code: object, target_date: Optional[date]) -> MailContent:
        normalized, target_date = validate(code, target_date)
        return await self.generator.generate(normalized, target_date)

    async def dispatch(self, request: DispatchRequest) -> DispatchResult:
        try:
            content = await self.preview(request.code, request.date)
        except ValidationError as exc:
            return DispatchResult(success=False, message=str(exc))
        except GenerationError as exc:
            LOGGER.warning("Failed to generate mail for %s: %s", exc.code, exc)
            return DispatchResult(success=False, message=str(exc))
        except Exception as exc:
            LOGGER.exception("Unexpected error generating mail for %s", request.code)
            return DispatchResult(success=False, message=f"Error: {exc}")

        content.body = append_addendum(content.body, request.additional_message)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.deliver, content)
        except Exception as exc:
            LOGGER.warning("Delivery to %s failed: %s", content.recipient_email, exc)
            return DispatchResult(success=False, message=f"Error: {exc}")

        sent_at = self.clock()
        LOGGER.info("Mail for %s sent to %s", normalize_code(request.code), content.recipient_email)
        return DispatchResult(
            success=True,
            message=SENT_MESSAGE,
            sent_at=sent_at,
            recipient_email=content.recipient_email,
        )

    async def fetch_data(self, code: object, target_date: Optional[date]) -> DataResponse:
        """Run only the data step for a code, reporting failure in the response."""
        try:
            normalized, target_date = validate(code, target_date)
            data = await self.generator.provider.fetch(normalized, target_date)
        except (ValidationError, DataError) as exc:
            return DataResponse(success=False, error=str(exc))
        return DataResponse(success=True, data=data)

    def catalog(self) -> List[CatalogEntry]:
        return code_catalog(self.generator.directory, self.generator.registry)


def build_dispatcher(
    settings: Optional[MailSettings] = None,
    *,
    deliver: Optional[Deliver] = None,
    rng: Optional[random.Random] = None,
) -> MailDispatcher:
    """Wire the default catalog, data provider and SMTP channel together."""
    settings = settings or MailSettings.from_env()
    directory, registry = load_catalog(settings.catalog_path)
    provider = build_data_provider(settings, rng)
    generator = ContentGenerator(directory, registry, provider, settings)
    if deliver is None:
        deliver = functools.partial(send_email, settings=settings)
    return MailDispatcher(generator, deliver)


__all__ = [
    "ContentGenerator",
    "MailDispatcher",
    "append_addendum",
    "build_dispatcher",
    "validate",
]
