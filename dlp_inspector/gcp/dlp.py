from functools import cache
from pathlib import Path
from typing import Any, Union

import backoff
from google.api_core.exceptions import DeadlineExceeded, ServiceUnavailable
from google.cloud import dlp_v2
from loguru import logger

from ..config import AppConfig
from ..models import InspectOptions, StorageTarget
from ..utils.backoff import on_backoff, on_giveup
from .pubsub import topic_path

# Errors worth retrying for read-only calls
TRANSIENT_ERRORS = (ServiceUnavailable, DeadlineExceeded)

# File extension -> ByteContentItem.BytesType name
BYTES_TYPES = {
    ".jpg": "IMAGE_JPEG",
    ".jpeg": "IMAGE_JPEG",
    ".bmp": "IMAGE_BMP",
    ".png": "IMAGE_PNG",
    ".svg": "IMAGE_SVG",
    # Image formats without a dedicated type
    ".gif": "IMAGE",
    ".tif": "IMAGE",
    ".tiff": "IMAGE",
    ".webp": "IMAGE",
    ".txt": "TEXT_UTF8",
    ".pdf": "PDF",
    ".docx": "WORD_DOCUMENT",
    ".csv": "CSV",
    ".tsv": "TSV",
}


def _max_tries() -> int:
    return AppConfig().max_tries


@cache
def get_dlp_client() -> dlp_v2.DlpServiceClient:
    """Returns a DLP client using application default credentials.

    Subsequent calls return the cached client.
    """
    return dlp_v2.DlpServiceClient()


def project_path(project: str) -> str:
    return f"projects/{project}"


def bytes_type_for(path: Union[str, Path]) -> str:
    """Name of the byte content type the service should parse a file as."""
    return BYTES_TYPES.get(Path(path).suffix.lower(), "BYTES_TYPE_UNSPECIFIED")


def build_inspect_config(options: InspectOptions) -> dict[str, Any]:
    return {
        "info_types": [{"name": name} for name in options.info_types],
        "min_likelihood": dlp_v2.Likelihood[options.min_likelihood.value],
        "limits": {"max_findings_per_request": options.max_findings},
        "include_quote": options.include_quote,
    }


def text_item(text: str) -> dict[str, Any]:
    return {"value": text}


def byte_item(data: bytes, bytes_type: str) -> dict[str, Any]:
    return {
        "byte_item": {
            "type_": dlp_v2.ByteContentItem.BytesType[bytes_type],
            "data": data,
        }
    }


def build_content_request(
    project: str, item: dict[str, Any], options: InspectOptions
) -> dict[str, Any]:
    """Builds an `inspect_content` request for a single content item."""
    return {
        "parent": project_path(project),
        "item": item,
        "inspect_config": build_inspect_config(options),
    }


def build_job_request(
    project: str, target: StorageTarget, options: InspectOptions, topic: str
) -> dict[str, Any]:
    """Builds a `create_dlp_job` request for an inspection job over `target`.

    Parameters
    ----------
    project : `str`
        The project to run the job under. Also owns the notification topic.
    target : `StorageTarget`
        The storage to inspect.
    options : `InspectOptions`
        Info types, likelihood threshold and finding limits.
    topic : `str`
        ID of the Pub/Sub topic notified once the job completes.

    Returns
    -------
    `dict[str, Any]`
        The request mapping.
    """
    return {
        "parent": project_path(project),
        "inspect_job": {
            "inspect_config": build_inspect_config(options),
            "storage_config": target.storage_config(),
            "actions": [{"pub_sub": {"topic": topic_path(project, topic)}}],
        },
    }


@backoff.on_exception(
    backoff.expo,
    TRANSIENT_ERRORS,
    max_tries=_max_tries,
    jitter=backoff.full_jitter,
    on_backoff=on_backoff,
    on_giveup=on_giveup,
)
def inspect_content(
    client: dlp_v2.DlpServiceClient, request: dict[str, Any]
) -> dlp_v2.InspectContentResponse:
    logger.debug(f"Inspecting content under {request['parent']}")
    return client.inspect_content(request=request)


def create_job(client: dlp_v2.DlpServiceClient, request: dict[str, Any]) -> str:
    """Creates an inspection job and returns its name.

    Not retried: a retry after a lost response would start a second job.
    """
    job = client.create_dlp_job(request=request)
    logger.info(f"Created DLP job {job.name}")
    return job.name


@backoff.on_exception(
    backoff.expo,
    TRANSIENT_ERRORS,
    max_tries=_max_tries,
    jitter=backoff.full_jitter,
    on_backoff=on_backoff,
    on_giveup=on_giveup,
)
def get_job(client: dlp_v2.DlpServiceClient, name: str) -> dlp_v2.DlpJob:
    logger.debug(f"Fetching DLP job {name}")
    return client.get_dlp_job(request={"name": name})
