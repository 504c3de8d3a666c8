import argparse
import sys
from typing import Any, Callable, Optional, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from .config import AppConfig
from .exceptions import ConfigError, InvalidTarget
from .inspection import inspect_file, inspect_storage, inspect_string
from .models import (
    DEFAULT_INFO_TYPES,
    BigQueryTarget,
    CloudStorageTarget,
    DatastoreTarget,
    InspectOptions,
    Likelihood,
)

EPILOG = """
Examples:
  dlp-inspector string "My email address is me@somedomain.com"
  dlp-inspector file resources/test.txt
  dlp-inspector gcsFile my-bucket my-file.txt my-topic my-subscription
  dlp-inspector bigquery my-dataset my-table my-topic my-subscription
  dlp-inspector datastore my-datastore-kind my-topic my-subscription

For more information, see https://cloud.google.com/dlp/docs. Optional flags are
explained at https://cloud.google.com/dlp/docs/reference/rest/v2/InspectConfig
"""

LOG_FORMAT = "<level>{level: <8}</level> | {message}"

ModelT = TypeVar("ModelT", bound=BaseModel)


def setup_logging(verbose: bool = False) -> None:
    logger.remove()
    logger.add(sys.stdout, level="DEBUG" if verbose else "INFO", format=LOG_FORMAT)


def describe_errors(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        for err in error.errors()
    )


def positive_float(value: str) -> float:
    """argparse type for durations that must be greater than zero."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return number


def _build(model: type[ModelT], **kwargs: Any) -> ModelT:
    """Constructs a model from CLI arguments, reporting bad input as `InvalidTarget`."""
    try:
        return model(**kwargs)
    except ValidationError as e:
        raise InvalidTarget(describe_errors(e)) from e


def get_options(args: argparse.Namespace) -> InspectOptions:
    return _build(
        InspectOptions,
        min_likelihood=Likelihood(args.min_likelihood),
        max_findings=args.max_findings,
        info_types=args.info_types,
        include_quote=args.include_quote,
    )


def _require_project(project: str, flag: str) -> str:
    if not project:
        raise ConfigError(
            f"No project ID given. Pass {flag} or set GCLOUD_PROJECT."
        )
    return project


def run_string(args: argparse.Namespace) -> Any:
    project = _require_project(args.calling_project_id, "--calling-project-id")
    return inspect_string(project, args.text, get_options(args))


def run_file(args: argparse.Namespace) -> Any:
    project = _require_project(args.calling_project_id, "--calling-project-id")
    return inspect_file(project, args.path, get_options(args))


def run_gcs_file(args: argparse.Namespace) -> Any:
    target = _build(CloudStorageTarget, bucket=args.bucket_name, file=args.file_name)
    return _run_job(args, target)


def run_bigquery(args: argparse.Namespace) -> Any:
    target = _build(
        BigQueryTarget,
        project=_require_project(args.data_project_id, "--data-project-id"),
        dataset=args.dataset_name,
        table=args.table_name,
    )
    return _run_job(args, target)


def run_datastore(args: argparse.Namespace) -> Any:
    target = _build(
        DatastoreTarget,
        project=_require_project(args.data_project_id, "--data-project-id"),
        namespace=args.namespace_id,
        kind=args.kind,
    )
    return _run_job(args, target)


def _run_job(args: argparse.Namespace, target: Any) -> Any:
    project = _require_project(args.calling_project_id, "--calling-project-id")
    return inspect_storage(
        project,
        target,
        args.topic_id,
        args.subscription_id,
        get_options(args),
        timeout=args.timeout,
    )


def _common_options(config: AppConfig) -> argparse.ArgumentParser:
    """Options shared by every subcommand."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-m",
        "--min-likelihood",
        default=Likelihood.LIKELIHOOD_UNSPECIFIED.value,
        choices=[likelihood.value for likelihood in Likelihood],
        help="Minimum likelihood required before returning a match",
    )
    common.add_argument(
        "-c",
        "--calling-project-id",
        default=config.project,
        help="Project ID to run the API calls under (default: $GCLOUD_PROJECT)",
    )
    common.add_argument(
        "-p",
        "--data-project-id",
        default=config.project,
        help="Project ID the inspected data is stored under (default: $GCLOUD_PROJECT)",
    )
    common.add_argument(
        "-f",
        "--max-findings",
        type=int,
        default=0,
        help="Maximum number of findings to report per request (0 = server maximum)",
    )
    common.add_argument(
        "-q",
        "--include-quote",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Include the matched text in findings",
    )
    common.add_argument(
        "-t",
        "--info-types",
        nargs="+",
        default=list(DEFAULT_INFO_TYPES),
        metavar="INFO_TYPE",
        help=f"Info types to match (default: {' '.join(DEFAULT_INFO_TYPES)})",
    )
    common.add_argument(
        "--timeout",
        type=positive_float,
        default=config.job_timeout,
        help="Seconds to wait for a job's completion notification",
    )
    common.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return common


def build_parser(config: Optional[AppConfig] = None) -> argparse.ArgumentParser:
    config = config or AppConfig()
    common = _common_options(config)

    parser = argparse.ArgumentParser(
        prog="dlp-inspector",
        description="Inspect content for sensitive data with the Data Loss Prevention API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_command(
        name: str, func: Callable[[argparse.Namespace], Any], operation: str, help: str
    ) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, parents=[common], help=help)
        sub.set_defaults(func=func, operation=operation)
        return sub

    sub = add_command(
        "string", run_string, "inspect_string", "Inspects a string."
    )
    sub.add_argument("text")

    sub = add_command(
        "file", run_file, "inspect_file", "Inspects a local text, image or document file."
    )
    sub.add_argument("path")

    sub = add_command(
        "gcsFile",
        run_gcs_file,
        "inspect_gcs_file",
        "Inspects a file stored on Google Cloud Storage, using Pub/Sub for job notifications.",
    )
    sub.add_argument("bucket_name")
    sub.add_argument("file_name")
    sub.add_argument("topic_id")
    sub.add_argument("subscription_id")

    sub = add_command(
        "bigquery",
        run_bigquery,
        "inspect_bigquery",
        "Inspects a BigQuery table, using Pub/Sub for job notifications.",
    )
    sub.add_argument("dataset_name")
    sub.add_argument("table_name")
    sub.add_argument("topic_id")
    sub.add_argument("subscription_id")

    sub = add_command(
        "datastore",
        run_datastore,
        "inspect_datastore",
        "Inspects a Datastore kind, using Pub/Sub for job notifications.",
    )
    sub.add_argument("kind")
    sub.add_argument("topic_id")
    sub.add_argument("subscription_id")
    sub.add_argument(
        "-n",
        "--namespace-id",
        default="",
        help="Datastore namespace of the kind (default: ignore namespaces)",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    try:
        config, config_error = AppConfig(), None
    except ValidationError as e:
        # Parse with defaults so the failure is reported like any other
        config, config_error = AppConfig.model_construct(), e
    args = build_parser(config).parse_args(argv)
    setup_logging(args.verbose or config.debug)

    try:
        if config_error is not None:
            raise ConfigError(f"Invalid settings: {describe_errors(config_error)}")
        args.func(args)
    except Exception as e:
        # Google API errors carry a readable `message`
        logger.error(f"Error in {args.operation}: {getattr(e, 'message', None) or e}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
