from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator

DEFAULT_INFO_TYPES = ["PHONE_NUMBER", "EMAIL_ADDRESS", "CREDIT_CARD_NUMBER"]


class Likelihood(Enum):
    """Minimum likelihood a finding must have to be reported."""

    LIKELIHOOD_UNSPECIFIED = "LIKELIHOOD_UNSPECIFIED"
    VERY_UNLIKELY = "VERY_UNLIKELY"
    UNLIKELY = "UNLIKELY"
    POSSIBLE = "POSSIBLE"
    LIKELY = "LIKELY"
    VERY_LIKELY = "VERY_LIKELY"


class InspectOptions(BaseModel):
    """What to look for and how much of it to report."""

    min_likelihood: Likelihood = Likelihood.LIKELIHOOD_UNSPECIFIED
    max_findings: int = Field(0, ge=0)  # 0 = server maximum
    info_types: list[str] = Field(default_factory=lambda: list(DEFAULT_INFO_TYPES))
    include_quote: bool = True

    @field_validator("info_types")
    @classmethod
    def ensure_info_types(cls, v: list[str]) -> list[str]:
        names = [name.strip() for name in v if name.strip()]
        if not names:
            raise ValueError("at least one info type is required")
        return names


class CloudStorageTarget(BaseModel):
    """A file (or wildcard set of files) in a Cloud Storage bucket."""

    source: Literal["gcs"] = "gcs"
    bucket: str = Field(..., min_length=1)
    file: str = Field(..., min_length=1)  # may contain wildcards, e.g. "my-image.*"

    @property
    def url(self) -> str:
        return f"gs://{self.bucket}/{self.file}"

    def storage_config(self) -> dict[str, Any]:
        return {"cloud_storage_options": {"file_set": {"url": self.url}}}

    def describe(self) -> str:
        return self.url


class DatastoreTarget(BaseModel):
    """All entities of one kind in a Datastore partition."""

    source: Literal["datastore"] = "datastore"
    project: str = Field(..., min_length=1)
    namespace: str = ""  # empty string ignores namespaces
    kind: str = Field(..., min_length=1)

    def storage_config(self) -> dict[str, Any]:
        return {
            "datastore_options": {
                "partition_id": {
                    "project_id": self.project,
                    "namespace_id": self.namespace,
                },
                "kind": {"name": self.kind},
            }
        }

    def describe(self) -> str:
        ns = f"/{self.namespace}" if self.namespace else ""
        return f"datastore://{self.project}{ns}/{self.kind}"


class BigQueryTarget(BaseModel):
    """A BigQuery table. The data project may differ from the calling project."""

    source: Literal["bigquery"] = "bigquery"
    project: str = Field(..., min_length=1)
    dataset: str = Field(..., min_length=1)
    table: str = Field(..., min_length=1)

    def storage_config(self) -> dict[str, Any]:
        return {
            "big_query_options": {
                "table_reference": {
                    "project_id": self.project,
                    "dataset_id": self.dataset,
                    "table_id": self.table,
                }
            }
        }

    def describe(self) -> str:
        return f"bigquery://{self.project}.{self.dataset}.{self.table}"


StorageTarget = Annotated[
    Union[CloudStorageTarget, DatastoreTarget, BigQueryTarget],
    Field(discriminator="source"),
]


class Finding(BaseModel):
    quote: str = ""
    info_type: str
    likelihood: str

    @classmethod
    def from_proto(cls, finding: Any) -> "Finding":
        return cls(
            quote=finding.quote,
            info_type=finding.info_type.name,
            likelihood=finding.likelihood.name,
        )


class InfoTypeCount(BaseModel):
    info_type: str
    count: int = Field(0, ge=0)


class JobSummary(BaseModel):
    """Final state of an inspection job and its per-info-type finding counts."""

    name: str
    state: str
    stats: list[InfoTypeCount] = Field(default_factory=list)

    @property
    def total_findings(self) -> int:
        return sum(s.count for s in self.stats)

    @classmethod
    def from_proto(cls, job: Any) -> "JobSummary":
        stats = [
            InfoTypeCount(info_type=s.info_type.name, count=s.count)
            for s in job.inspect_details.result.info_type_stats
        ]
        return cls(name=job.name, state=job.state.name, stats=stats)
