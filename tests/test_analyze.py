"""Visual analyzer: JSON extraction, fallback and backend failures."""

from __future__ import annotations

import json
import unittest

import httpx

from atelier.errors import AnalysisFailure, BackendParseFailure
from atelier.gemini import GeminiAPIError
from atelier.pipeline.analyze import (
    ANALYSIS_PROMPT,
    analyze_design,
    extract_json_candidate,
    metadata_from_reply,
    parse_metadata,
)
from atelier.pipeline.models import DesignAsset

from fakes import FakeGeminiClient, text_reply

RECORD = {
    "silhouette": {"type": "mermaid", "length": "floor-length", "overall_shape": "hourglass"},
    "fabric_and_texture": {"primary_material": "satin", "sheen_level": "glossy"},
    "design_features": {"neckline": "sweetheart", "cutouts": "none", "cape_or_train": None},
    "pattern_and_color": {"primary_colors": ["emerald", "gold"]},
}

TECHNICAL = DesignAsset(mime_type="image/png", data="VEVDSA==")
RENDER = DesignAsset(mime_type="image/jpeg", data="UkVOREVS")


class ExtractionTest(unittest.TestCase):
    def test_prefers_fenced_json_block(self) -> None:
        text = 'Sure! {"ignored": true}\n```json\n{"silhouette": {}}\n```\nDone.'
        self.assertEqual(extract_json_candidate(text), '{"silhouette": {}}')

    def test_falls_back_to_braced_span(self) -> None:
        text = 'Analysis follows: {"a": {"b": 1}} hope this helps'
        self.assertEqual(extract_json_candidate(text), '{"a": {"b": 1}}')

    def test_whole_reply_when_nothing_matches(self) -> None:
        self.assertEqual(extract_json_candidate("no json here"), "no json here")

    def test_parse_fenced_record(self) -> None:
        text = f"```json\n{json.dumps(RECORD)}\n```"
        metadata = parse_metadata(text)
        self.assertEqual(metadata.silhouette.type, "mermaid")
        self.assertEqual(metadata.pattern_and_color.primary_colors, ["emerald", "gold"])
        self.assertEqual(metadata.design_features.cape_or_train, "none")

    def test_parse_failure_raises_backend_parse_failure(self) -> None:
        with self.assertRaises(BackendParseFailure):
            parse_metadata("{not: valid json}")
        with self.assertRaises(BackendParseFailure):
            parse_metadata("[1, 2, 3]")

    def test_unparseable_reply_returns_fallback(self) -> None:
        metadata = metadata_from_reply("I could not analyze these images, sorry.")
        self.assertEqual(metadata.silhouette.type, "elegant dress")
        self.assertEqual(metadata.silhouette.overall_shape, "fashion design")
        self.assertEqual(metadata.fabric_and_texture.primary_material, "quality fabric")
        self.assertEqual(metadata.pattern_and_color.primary_colors, [])


class AnalyzeDesignTest(unittest.IsolatedAsyncioTestCase):
    async def test_sends_both_images_then_prompt(self) -> None:
        client = FakeGeminiClient(replies=[text_reply(json.dumps(RECORD))])
        analysis = await analyze_design(client, TECHNICAL, RENDER, model="vision-model")

        call = client.content_calls[0]
        self.assertEqual(call["model"], "vision-model")
        self.assertEqual(call["parts"][0], TECHNICAL.inline_part())
        self.assertEqual(call["parts"][1], RENDER.inline_part())
        self.assertEqual(call["parts"][2], {"text": ANALYSIS_PROMPT})
        self.assertEqual(analysis.metadata.fabric_and_texture.primary_material, "satin")
        self.assertIn("mermaid floor-length dress", analysis.description)

    async def test_malformed_reply_never_raises(self) -> None:
        for text in ("", "{", "```json\n{oops}\n```", "plain prose"):
            client = FakeGeminiClient(replies=[text_reply(text)])
            analysis = await analyze_design(client, TECHNICAL, RENDER, model="m")
            dumped = analysis.metadata.model_dump()
            for section in (
                "silhouette",
                "fabric_and_texture",
                "design_features",
                "pattern_and_color",
                "dimensional_cues",
                "pose_and_dynamics",
                "embellishments",
            ):
                self.assertIn(section, dumped)
            self.assertEqual(analysis.metadata.silhouette.type, "elegant dress")

    async def test_backend_error_is_analysis_failure(self) -> None:
        client = FakeGeminiClient(replies=[GeminiAPIError(503, "unavailable")])
        with self.assertRaises(AnalysisFailure):
            await analyze_design(client, TECHNICAL, RENDER, model="m")

    async def test_transport_error_is_analysis_failure(self) -> None:
        client = FakeGeminiClient(replies=[httpx.ConnectError("connection refused")])
        with self.assertRaises(AnalysisFailure):
            await analyze_design(client, TECHNICAL, RENDER, model="m")

    async def test_no_candidates_is_analysis_failure(self) -> None:
        client = FakeGeminiClient(replies=[{"candidates": []}])
        with self.assertRaises(AnalysisFailure):
            await analyze_design(client, TECHNICAL, RENDER, model="m")
