"""CI job tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastmcp import Context

from ..arguments import arg
from ..exceptions import operation
from ..pagination import MAX_PER_PAGE, all_pages, collect
from ..scalars import ID
from ._helpers import parse_build_states
from .gitlab import _check_write, _get_client, tool

PROJECT_ID = "ID of the project, either the numeric ID or the 'owner/project' path"
STATUS_FILTER = (
    "Comma-separated job states to filter by: created, waiting_for_resource, preparing,"
    " pending, running, success, failed, canceled, skipped, manual, scheduled"
)


def _state_params(status: str) -> dict[str, Any]:
    params: dict[str, Any] = {"per_page": MAX_PER_PAGE}
    if states := parse_build_states(status):
        params["scope[]"] = states
    return params


@dataclass
class ListPipelineJobsArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    pipeline_id: int = arg("ID of the pipeline", required=True)
    status: str = arg(STATUS_FILTER)
    include_retried: bool = arg("Include retried jobs. Defaults to false")


@tool("list_pipeline_jobs", ListPipelineJobsArgs, tags={"jobs"}, read_only=True)
async def list_pipeline_jobs(ctx: Context, args: ListPipelineJobsArgs) -> list[dict]:
    """List the jobs of a pipeline, optionally filtered by state."""
    client = _get_client(ctx)
    project_id = args.project_id.value()
    params = _state_params(args.status)
    params["include_retried"] = args.include_retried

    async def fetch(p: dict[str, Any]) -> tuple[list, int]:
        return await client.list_pipeline_jobs(project_id, args.pipeline_id, p)

    with operation(f"list_pipeline_jobs({project_id!r}, {args.pipeline_id})"):
        return await collect(all_pages(fetch, params))


@dataclass
class ListDownstreamPipelinesArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    pipeline_id: int = arg("ID of the pipeline", required=True)
    status: str = arg(STATUS_FILTER)


@tool("list_downstream_pipelines", ListDownstreamPipelinesArgs, tags={"jobs"}, read_only=True)
async def list_downstream_pipelines(ctx: Context, args: ListDownstreamPipelinesArgs) -> list[dict]:
    """List the trigger jobs (bridges) of a pipeline that start downstream pipelines."""
    client = _get_client(ctx)
    project_id = args.project_id.value()

    async def fetch(p: dict[str, Any]) -> tuple[list, int]:
        return await client.list_pipeline_bridges(project_id, args.pipeline_id, p)

    with operation(f"list_pipeline_bridges({project_id!r}, {args.pipeline_id})"):
        return await collect(all_pages(fetch, _state_params(args.status)))


@dataclass
class JobArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    job_id: int = arg("ID of the job", required=True)


@tool("get_job", JobArgs, tags={"jobs"}, read_only=True)
async def get_job(ctx: Context, args: JobArgs) -> dict:
    """Get a single job of a project."""
    project_id = args.project_id.value()
    with operation(f"get_job({project_id!r}, {args.job_id})"):
        return await _get_client(ctx).get_job(project_id, args.job_id)


@dataclass
class DownloadJobArtifactsFileArgs:
    project_id: ID = arg(PROJECT_ID, required=True)
    job_id: int = arg("ID of the job", required=True)
    artifact_path: str = arg("Path of a file inside the artifacts archive", required=True)


@tool("download_job_artifacts_file", DownloadJobArtifactsFileArgs, tags={"jobs"}, read_only=True)
async def download_job_artifacts_file(ctx: Context, args: DownloadJobArtifactsFileArgs) -> str:
    """Download a single file from a job's artifacts and return it as text."""
    project_id = args.project_id.value()
    with operation(f"get_job_artifact({project_id!r}, {args.job_id}, {args.artifact_path!r})"):
        return await _get_client(ctx).get_job_artifact(
            project_id, args.job_id, args.artifact_path
        )


@tool("download_job_log", JobArgs, tags={"jobs"}, read_only=True)
async def download_job_log(ctx: Context, args: JobArgs) -> str:
    """Download the log (trace) of a job."""
    project_id = args.project_id.value()
    with operation(f"get_job_trace({project_id!r}, {args.job_id})"):
        return await _get_client(ctx).get_job_trace(project_id, args.job_id)


@tool("retry_job", JobArgs, tags={"jobs"})
async def retry_job(ctx: Context, args: JobArgs) -> dict:
    """Retry a job. Returns the newly created job."""
    _check_write(ctx)
    project_id = args.project_id.value()
    with operation(f"retry_job({project_id!r}, {args.job_id})"):
        return await _get_client(ctx).retry_job(project_id, args.job_id)


@tool("trigger_manual_job", JobArgs, tags={"jobs"})
async def trigger_manual_job(ctx: Context, args: JobArgs) -> dict:
    """Start a manual job."""
    _check_write(ctx)
    project_id = args.project_id.value()
    with operation(f"play_job({project_id!r}, {args.job_id})"):
        return await _get_client(ctx).play_job(project_id, args.job_id)
