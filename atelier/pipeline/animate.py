"""
Video Job Orchestrator: two Veo jobs polled as a pair under one deadline.

Two lanes run side by side:
  - rotation: invisible-mannequin 360° product shot
  - runway:   human model walking toward camera (person generation allowed)

Both are submitted before either is awaited, then polled as a pair every
POLL_INTERVAL seconds. A lane that is already done is never polled again.
The run succeeds only when both lanes finish with a video; a timeout or a
failure in either lane cancels the other lane's in-flight request and discards
its result.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

import httpx

from ..errors import (
    GenerationFailure,
    PipelineError,
    QuotaFailure,
    TimeoutFailure,
    classify_backend_error,
    is_quota_error,
)
from ..gemini import GeminiAPIError
from .models import Lane, ShowcaseVideos, VideoJob, VideoPrompts

logger = logging.getLogger(__name__)

# ── Config ───────────────────────────────────────────────────────────────────

POLL_INTERVAL = 10  # seconds
MAX_DURATION = 60  # seconds, measured from submission

VIDEO_PARAMETERS = {
    "aspectRatio": "9:16",
    "durationSeconds": 8,
    "resolution": "720p",
    "sampleCount": 1,
}

LANE_PARAMETERS = {
    Lane.ROTATION: VIDEO_PARAMETERS,
    Lane.RUNWAY: {**VIDEO_PARAMETERS, "personGeneration": "allow_all"},
}

LANE_FILENAMES = {
    Lane.ROTATION: "fashion-360",
    Lane.RUNWAY: "fashion-runway",
}


# ── Operation parsing ────────────────────────────────────────────────────────

def operation_video_uris(operation: dict) -> list[str]:
    """
    Collect video URIs from a finished operation.

    The REST API nests samples under ``generateVideoResponse.generatedSamples``;
    SDK-shaped payloads use ``generatedVideos``. Both are accepted.
    """
    response = operation.get("response") or {}
    container = response.get("generateVideoResponse") or response
    samples = container.get("generatedSamples") or container.get("generatedVideos") or []

    uris = []
    for sample in samples:
        if not isinstance(sample, dict):
            continue
        video = sample.get("video") or {}
        uri = video.get("uri") or sample.get("uri")
        if uri:
            uris.append(uri)
    return uris


def operation_error(operation: dict) -> Optional[str]:
    error = operation.get("error")
    if not error:
        return None
    if isinstance(error, dict):
        status = error.get("status") or error.get("code") or ""
        message = error.get("message") or "Unknown Veo error"
        return f"{status}: {message}" if status else message
    return str(error)


def job_from_operation(lane: Lane, operation: dict, polls: int = 0) -> VideoJob:
    name = operation.get("name")
    if not name:
        raise GenerationFailure(f"Veo submit failed, no operation name: {operation}")
    done = bool(operation.get("done"))
    return VideoJob(
        lane=lane,
        name=name,
        done=done,
        video_uris=operation_video_uris(operation) if done else [],
        error=operation_error(operation) if done else None,
        polls=polls,
    )


def with_credential(uri: str, api_key: str) -> str:
    """Append the API key so the asset can be fetched directly."""
    separator = "&" if "?" in uri else "?"
    return f"{uri}{separator}key={api_key}"


async def join_lanes(*coros: Awaitable[VideoJob]) -> list[VideoJob]:
    """
    Run one coroutine per lane and wait for all of them.

    If any lane raises, the lanes still running are cancelled and awaited
    before the error propagates.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


# ── Orchestrator ─────────────────────────────────────────────────────────────

class VideoJobOrchestrator:
    """
    Fork/join scheduler for the rotation and runway lanes.

    Usage:
        orchestrator = VideoJobOrchestrator(client, api_key, model)
        videos = await orchestrator.run(prompts)

    ``clock`` and ``sleep`` are injectable so the deadline can be tested
    without waiting.
    """

    def __init__(
        self,
        client,
        api_key: str,
        model: str = "veo-3.0-fast-generate-001",
        poll_interval: float = POLL_INTERVAL,
        max_duration: float = MAX_DURATION,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self._api_key = api_key
        self.model = model
        self.poll_interval = poll_interval
        self.max_duration = max_duration
        self._clock = clock
        self._sleep = sleep

    async def _submit(self, lane: Lane, prompt: str) -> VideoJob:
        operation = await self._client.predict_long_running(
            model=self.model,
            instances=[{"prompt": prompt}],
            parameters=LANE_PARAMETERS[lane],
        )
        job = job_from_operation(lane, operation)
        logger.info(f"Veo {lane.value} operation submitted: {job.name}")
        return job

    async def _poll(self, job: VideoJob) -> VideoJob:
        if job.done:
            return job
        operation = await self._client.get_operation(job.name)
        operation.setdefault("name", job.name)
        return job_from_operation(job.lane, operation, polls=job.polls + 1)

    async def submit(self, prompts: VideoPrompts) -> dict[Lane, VideoJob]:
        """Submit both lanes concurrently."""
        rotation, runway = await join_lanes(
            self._submit(Lane.ROTATION, prompts.rotation),
            self._submit(Lane.RUNWAY, prompts.runway),
        )
        return {Lane.ROTATION: rotation, Lane.RUNWAY: runway}

    async def wait(self, jobs: dict[Lane, VideoJob], started: float) -> dict[Lane, VideoJob]:
        """Poll every pending lane each tick until all are done or the deadline hits."""
        while not all(job.done for job in jobs.values()):
            logger.info(
                "Polling status - "
                + ", ".join(
                    f"{lane.value}: {'DONE' if job.done else 'IN_PROGRESS'}"
                    for lane, job in jobs.items()
                )
            )
            remaining = self.max_duration - (self._clock() - started)
            await self._sleep(max(0.0, min(self.poll_interval, remaining)))

            pending = [job for job in jobs.values() if not job.done]
            updated = await join_lanes(*(self._poll(job) for job in pending))
            for job in updated:
                jobs[job.lane] = job

            if all(job.done for job in jobs.values()):
                break
            elapsed = self._clock() - started
            if elapsed >= self.max_duration:
                logger.warning(f"Video generation timed out after {elapsed:.0f}s")
                raise TimeoutFailure("Video generation timed out")
        return jobs

    def collect(self, jobs: dict[Lane, VideoJob], prompts: VideoPrompts) -> ShowcaseVideos:
        """Turn two finished lanes into the credentialed result pair."""
        for job in jobs.values():
            if job.error:
                logger.error(f"Veo {job.lane.value} operation failed: {job.error}")
                if is_quota_error(job.error):
                    raise QuotaFailure()
                raise GenerationFailure(f"Veo {job.lane.value} video failed: {job.error}")

        rotation, runway = jobs[Lane.ROTATION], jobs[Lane.RUNWAY]
        logger.info(
            f"Video count - rotation: {len(rotation.video_uris)}, runway: {len(runway.video_uris)}"
        )
        if not rotation.video_uri or not runway.video_uri:
            raise GenerationFailure("Video generation incomplete: one or both videos failed to generate")

        completed_ms = int(self._clock() * 1000)
        return ShowcaseVideos(
            video_360_url=with_credential(rotation.video_uri, self._api_key),
            video_runway_url=with_credential(runway.video_uri, self._api_key),
            video_360_filename=f"{LANE_FILENAMES[Lane.ROTATION]}-{completed_ms}.mp4",
            video_runway_filename=f"{LANE_FILENAMES[Lane.RUNWAY]}-{completed_ms}.mp4",
            prompt_360=prompts.rotation,
            prompt_runway=prompts.runway,
        )

    async def run(self, prompts: VideoPrompts) -> ShowcaseVideos:
        """
        Submit, poll and collect both lanes.

        Raises:
            QuotaFailure:      the backend reported quota/rate exhaustion.
            TimeoutFailure:    a lane was still running at the deadline.
            GenerationFailure: any other backend failure or a missing video.
        """
        logger.info(
            f"Starting dual video generation (rotation prompt {len(prompts.rotation)} chars, "
            f"runway prompt {len(prompts.runway)} chars)"
        )
        started = self._clock()
        try:
            jobs = await self.submit(prompts)
            jobs = await self.wait(jobs, started)
        except PipelineError:
            raise
        except (GeminiAPIError, httpx.HTTPError) as e:
            logger.error(f"Veo request failed: {e}")
            raise classify_backend_error(e) from e

        videos = self.collect(jobs, prompts)
        logger.info("Both videos generated successfully")
        return videos
