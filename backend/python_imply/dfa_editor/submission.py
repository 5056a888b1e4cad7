"""
Hand-off of a finished DFA to the application generation service.

A request is only ever built from a DFA that passes validation; anything
else is refused locally before a connection is opened. Each submission is
a single attempt with no retries.
"""

from enum import Enum
from typing import Optional

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import GenerationServiceError, ServiceUnavailable, SubmissionRefused
from .models import Dfa
from .serializer import to_document
from .validator import DfaValidator

log = structlog.get_logger()

CREATE_APP_PATH = "/v1/apps/create"

APP_NAME_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"
APP_PACKAGE_PATTERN = r"^[a-z_]((\.[a-z_])?[a-z0-9_]*)*$"
MAX_APP_NAME = 30
MAX_APP_PACKAGE = 100
MAX_CONTAINER_REGISTRY = 100


class MessagingType(str, Enum):
    RABBITMQ = "RABBITMQ"
    ARTEMIS = "ARTEMIS"
    KAFKA = "KAFKA"


class StorageType(str, Enum):
    REDIS = "REDIS"
    MONGODB = "MONGODB"
    POSTGRESQL = "POSTGRESQL"


class ApplicationMetaData(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    app_name: str = Field(..., alias="appName", min_length=1, max_length=MAX_APP_NAME, pattern=APP_NAME_PATTERN)
    app_package: str = Field(
        ..., alias="appPackage", min_length=1, max_length=MAX_APP_PACKAGE, pattern=APP_PACKAGE_PATTERN
    )
    container_registry: str = Field(..., alias="containerRegistry", min_length=1, max_length=MAX_CONTAINER_REGISTRY)
    messaging_type: MessagingType = Field(..., alias="messagingType")
    storage_type: StorageType = Field(..., alias="storageType")
    include_optional_services: bool = Field(default=False, alias="includeOptionalServices")

    @field_validator("app_name", "app_package", "container_registry", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("container_registry")
    @classmethod
    def registry_without_spaces(cls, v: str) -> str:
        if " " in v:
            raise ValueError("The name of the container registry must not contain any spaces.")
        return v

    @property
    def archive_name(self) -> str:
        return f"{self.app_name.lower()}.zip"


class GenerationRequest(BaseModel):
    """Validated payload: `{"dfa": ..., "applicationMetaData": ...}`."""

    model_config = ConfigDict(frozen=True)

    dfa: dict
    application_meta_data: ApplicationMetaData

    def to_payload(self) -> dict:
        return {
            "dfa": self.dfa,
            "applicationMetaData": self.application_meta_data.model_dump(by_alias=True, mode="json"),
        }


class GeneratedApp(BaseModel):
    file_name: str
    content: bytes


def build_generation_request(
    dfa: Dfa, metadata: ApplicationMetaData, validator: Optional[DfaValidator] = None
) -> GenerationRequest:
    validator = validator or DfaValidator()
    message = validator.validate(dfa)
    if message:
        log.warning("submission_refused", app_name=metadata.app_name, reason=message)
        raise SubmissionRefused(message)
    return GenerationRequest(dfa=to_document(dfa), application_meta_data=metadata)


class GenerationClient:
    """Talks to the remote service that turns a DFA into an application archive."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def create_app(self, dfa: Dfa, metadata: ApplicationMetaData) -> GeneratedApp:
        request = build_generation_request(dfa, metadata)

        log.info("generation_requested", app_name=metadata.app_name, url=self.base_url)
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(CREATE_APP_PATH, json=request.to_payload())
        except httpx.HTTPError as e:
            log.error("generation_unreachable", app_name=metadata.app_name, error=str(e))
            raise ServiceUnavailable(f"Unable to reach the generation service: {e}") from e

        if response.status_code != 200:
            log.error("generation_failed", app_name=metadata.app_name, status=response.status_code)
            raise GenerationServiceError(response.status_code, response.text)

        log.info("generation_succeeded", app_name=metadata.app_name, size=len(response.content))
        return GeneratedApp(file_name=metadata.archive_name, content=response.content)
