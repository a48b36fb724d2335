"""HTTP surface: status mapping, quota flag and the end-to-end video flow."""

from __future__ import annotations

import functools
import json
import os
import unittest
from unittest import mock

import httpx
from fastapi.testclient import TestClient

from atelier import metrics
from atelier.config import ShowcaseConfig
from atelier.gemini import GeminiAPIError, GeminiClient
from atelier.main import app
from atelier.pipeline.animate import VideoJobOrchestrator
from atelier.pipeline.orchestrator import ShowcaseService
from atelier.pipeline.routes import get_service

from fakes import (
    PNG_DATA_URL,
    FakeClock,
    FakeGeminiClient,
    finished,
    image_reply,
    pending,
    text_reply,
)

RECORD = {
    "silhouette": {"type": "sheath", "length": "floor-length"},
    "fabric_and_texture": {"primary_material": "crepe", "sheen_level": "glossy"},
    "design_features": {"neckline": "halter", "cutouts": "none"},
    "pattern_and_color": {"primary_colors": ["white"], "patterns": "solid"},
}

COMPLETED = {
    "operations/rotation": [finished("https://videos.test/rot")],
    "operations/runway": [finished("https://videos.test/run")],
}


class RoutesTestCase(unittest.TestCase):
    def setUp(self) -> None:
        metrics.reset()
        self.clock = FakeClock()
        self.fake = FakeGeminiClient(
            replies=[text_reply(json.dumps(RECORD))],
            operations=COMPLETED,
        )
        self.api = TestClient(app)
        self.use_service(ShowcaseConfig(gemini_api_key="gem-key"))

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def use_service(self, config: ShowcaseConfig) -> ShowcaseService:
        self.keys: list[str] = []

        def client_factory(key: str) -> FakeGeminiClient:
            self.keys.append(key)
            return self.fake

        service = ShowcaseService(
            config,
            client_factory=client_factory,
            orchestrator_factory=functools.partial(
                VideoJobOrchestrator, clock=self.clock, sleep=self.clock.sleep
            ),
        )
        app.dependency_overrides[get_service] = lambda: service
        return service


class ImageRoutesTest(RoutesTestCase):
    def test_generate_image(self) -> None:
        self.fake.replies = [image_reply(data="T1VU", mime="image/jpeg")]
        resp = self.api.post(
            "/pipeline/generate-image",
            json={"image": PNG_DATA_URL, "image_type": "3d", "design_preferences": {"color": "red"}},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True, "image": "data:image/jpeg;base64,T1VU"})
        self.assertIn("DESIGNER SPECIFICATIONS:\ncolor: red", self.fake.content_calls[0]["parts"][0]["text"])

    def test_generate_image_requires_upload(self) -> None:
        resp = self.api.post("/pipeline/generate-image", json={"image_type": "technical"})
        self.assertEqual(resp.status_code, 400)

    def test_unknown_image_type(self) -> None:
        resp = self.api.post("/pipeline/generate-image", json={"image": PNG_DATA_URL, "image_type": "sketchy"})
        self.assertEqual(resp.status_code, 400)

    def test_generate_images(self) -> None:
        self.fake.replies = [image_reply(data="QQ==")]
        resp = self.api.post("/pipeline/generate-images", json={"image": PNG_DATA_URL})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["technical_sketch"], "data:image/png;base64,QQ==")
        self.assertEqual(body["render_3d"], "data:image/png;base64,QQ==")

    def test_missing_key_is_server_error(self) -> None:
        self.use_service(ShowcaseConfig())
        resp = self.api.post("/pipeline/generate-image", json={"image": PNG_DATA_URL})
        self.assertEqual(resp.status_code, 500)
        self.assertIn("GEMINI_API_KEY", resp.json()["detail"])


class AnalysisRoutesTest(RoutesTestCase):
    def test_analyze_design(self) -> None:
        resp = self.api.post(
            "/pipeline/analyze-design",
            json={"technical_sketch": PNG_DATA_URL, "render_3d": PNG_DATA_URL},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["metadata"]["silhouette"]["type"], "sheath")
        self.assertEqual(body["metadata"]["design_features"]["cape_or_train"], "none")
        self.assertIn("sheath floor-length dress", body["description"])

    def test_analyze_design_requires_both_images(self) -> None:
        resp = self.api.post("/pipeline/analyze-design", json={"technical_sketch": PNG_DATA_URL})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.fake.content_calls, [])

    def test_refine_design(self) -> None:
        resp = self.api.post(
            "/pipeline/refine-design",
            json={
                "metadata": RECORD,
                "comments": "Please use midi length in red and navy with matte finish",
            },
        )
        self.assertEqual(resp.status_code, 200)
        metadata = resp.json()["metadata"]
        self.assertEqual(metadata["silhouette"]["length"], "midi length")
        self.assertEqual(metadata["pattern_and_color"]["primary_colors"], ["red", "navy"])
        self.assertEqual(metadata["fabric_and_texture"]["sheen_level"], "matte")
        self.assertIn("red and navy", resp.json()["description"])

    def test_preview_prompt(self) -> None:
        resp = self.api.post(
            "/pipeline/preview-prompt",
            json={"description": "A white sheath.", "comments": "Add a cape"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIn("A white sheath.", resp.json()["prompt"])
        self.assertIn("Add a cape", resp.json()["prompt"])


class VideoRouteTest(RoutesTestCase):
    def test_end_to_end_with_comments(self) -> None:
        resp = self.api.post(
            "/pipeline/generate-video",
            json={
                "technical_sketch": PNG_DATA_URL,
                "render_3d": PNG_DATA_URL,
                "comments": "Please use midi length in red and navy with matte finish",
            },
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["video_360_url"], "https://videos.test/rot?key=gem-key")
        self.assertEqual(body["video_runway_filename"], "fashion-runway-1010000.mp4")
        for prompt in (body["prompt_360"], body["prompt_runway"]):
            self.assertIn("- Length: midi length", prompt)
            self.assertIn("- Primary Colors: red and navy", prompt)
            self.assertIn("- Sheen: matte", prompt)
            self.assertIn("DESIGNER'S ADDITIONAL NOTES:", prompt)
        self.assertEqual(len(self.fake.content_calls), 1)

    def test_without_render_uses_generic_prompts(self) -> None:
        resp = self.api.post("/pipeline/generate-video", json={"technical_sketch": PNG_DATA_URL})
        self.assertEqual(resp.status_code, 200)
        self.assertIn("- Type: elegant dress", resp.json()["prompt_360"])
        self.assertEqual(self.fake.content_calls, [])

    def test_failed_analysis_degrades_to_generic_prompts(self) -> None:
        self.fake.replies = [GeminiAPIError(503, "unavailable")]
        resp = self.api.post(
            "/pipeline/generate-video",
            json={"technical_sketch": PNG_DATA_URL, "render_3d": PNG_DATA_URL, "comments": "silk"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIn("- Primary Material: quality fabric", resp.json()["prompt_360"])

    def test_non_json_analysis_reply_degrades_to_generic_prompts(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path.endswith(":generateContent"):
                return httpx.Response(200, text="<html>proxy error</html>")
            if path.endswith(":predictLongRunning"):
                lane = "runway" if "personGeneration" in request.content.decode() else "rotation"
                return httpx.Response(200, json={"name": f"operations/{lane}", "done": False})
            return httpx.Response(200, json=finished(f"https://videos.test{path}"))

        service = ShowcaseService(
            ShowcaseConfig(gemini_api_key="gem-key"),
            client_factory=lambda key: GeminiClient(key, transport=httpx.MockTransport(handler)),
            orchestrator_factory=functools.partial(
                VideoJobOrchestrator, clock=self.clock, sleep=self.clock.sleep
            ),
        )
        app.dependency_overrides[get_service] = lambda: service

        resp = self.api.post(
            "/pipeline/generate-video",
            json={"technical_sketch": PNG_DATA_URL, "render_3d": PNG_DATA_URL},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertIn("- Type: elegant dress", body["prompt_360"])
        self.assertEqual(body["video_360_url"], "https://videos.test/v1beta/operations/rotation?key=gem-key")

    def test_bad_base64_upload_is_client_error(self) -> None:
        resp = self.api.post(
            "/pipeline/generate-image",
            json={"image": "data:image/png;base64,!!!", "image_type": "technical"},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.fake.content_calls, [])

    def test_video_key_preferred(self) -> None:
        self.use_service(ShowcaseConfig(gemini_api_key="gem-key", veo_api_key="veo-key"))
        resp = self.api.post("/pipeline/generate-video", json={"technical_sketch": PNG_DATA_URL})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.keys, ["veo-key"])
        self.assertTrue(resp.json()["video_runway_url"].endswith("?key=veo-key"))

    def test_missing_technical_sketch(self) -> None:
        resp = self.api.post("/pipeline/generate-video", json={"render_3d": PNG_DATA_URL})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.fake.submitted, [])

    def test_missing_credentials(self) -> None:
        self.use_service(ShowcaseConfig())
        resp = self.api.post("/pipeline/generate-video", json={"technical_sketch": PNG_DATA_URL})
        self.assertEqual(resp.status_code, 500)

    def test_quota_is_flagged(self) -> None:
        self.fake.submit_error = GeminiAPIError(429, "RESOURCE_EXHAUSTED")
        resp = self.api.post("/pipeline/generate-video", json={"technical_sketch": PNG_DATA_URL})
        self.assertEqual(resp.status_code, 429)
        detail = resp.json()["detail"]
        self.assertTrue(detail["is_quota_error"])
        self.assertIn("quota", detail["error"].lower())

    def test_timeout(self) -> None:
        self.fake.operations = {
            "operations/rotation": [finished("https://videos.test/rot")],
            "operations/runway": [pending()],
        }
        resp = self.api.post("/pipeline/generate-video", json={"technical_sketch": PNG_DATA_URL})
        self.assertEqual(resp.status_code, 408)
        self.assertEqual(self.clock.now, 1060.0)


class ServiceRoutesTest(RoutesTestCase):
    def test_health_reports_key_prefix(self) -> None:
        with mock.patch.dict(os.environ, {"GEMINI_API_KEY": "AIzaSyExample123"}):
            resp = self.api.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["gemini_key_prefix"], "AIzaSyEx...")

    def test_metrics_count_failures(self) -> None:
        self.api.post("/pipeline/generate-video", json={})
        snapshot = self.api.get("/metrics").json()
        self.assertEqual(snapshot["counters"]["requests.generate_video"], 1)
        self.assertEqual(snapshot["counters"]["errors.ValidationFailure"], 1)
        self.assertEqual(snapshot["recent_errors"][-1]["route"], "generate_video")
