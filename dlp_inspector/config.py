from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Config for the inspector.
    Retrieves values from environment variables."""

    project: str = Field(
        "", validation_alias=AliasChoices("GCLOUD_PROJECT", "GOOGLE_CLOUD_PROJECT")
    )
    job_timeout: float = Field(300.0, gt=0, validation_alias="DLP_JOB_TIMEOUT")
    settle_delay: float = Field(0.5, ge=0, validation_alias="DLP_SETTLE_DELAY")
    max_tries: int = Field(5, ge=1, validation_alias="DLP_MAX_TRIES")
    debug: bool = Field(False, validation_alias="DEBUG")
