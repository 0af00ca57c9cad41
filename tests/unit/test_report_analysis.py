"""Tests for per-report analysis: templates, LLM reply parsing and prompts."""

from __future__ import annotations

import json
import logging
from datetime import timedelta

import pytest

from portal.analysis.report_analysis import (
    analyze_report,
    build_analysis_prompt,
    follow_up_due_date,
    parse_analysis_response,
    system_prompt,
    template_for,
)
from portal.util.time import to_iso

VALID_REPLY = {
    "keyFindings": ["Mild LV hypertrophy"],
    "riskFactors": ["Hypertension"],
    "recommendations": ["Repeat echo in 12 months"],
    "followUpNeeded": True,
    "severity": "moderate",
    "confidence": 0.7,
    "dataPoints": [{"metric": "LVEF", "value": "55%", "normalRange": "55-70%", "status": "borderline"}],
}


class TestTemplates:
    @pytest.mark.parametrize("report_type", ["cardiology", "pathology", "radiology", "neurology"])
    def test_known_types_have_templates(self, report_type) -> None:
        assert template_for(report_type)["keyFindings"]

    def test_unknown_type_falls_back_to_pathology(self) -> None:
        assert template_for("dermatology") == template_for("pathology")

    def test_templates_are_copies(self) -> None:
        template_for("radiology")["keyFindings"].append("mutated")
        assert "mutated" not in template_for("radiology")["keyFindings"]


class TestParseResponse:
    def test_fenced_json(self) -> None:
        reply = "Here is the analysis:\n```json\n" + json.dumps(VALID_REPLY) + "\n```"
        parsed, errors = parse_analysis_response(reply)
        assert errors == []
        assert parsed["severity"] == "moderate"

    def test_schema_violation(self) -> None:
        bad = dict(VALID_REPLY, severity="catastrophic")
        parsed, errors = parse_analysis_response(json.dumps(bad))
        assert parsed is None
        assert any("severity" in e for e in errors)

    def test_no_json(self) -> None:
        parsed, errors = parse_analysis_response("I cannot help with that.")
        assert parsed is None
        assert errors[0].startswith("No JSON found")


class TestAnalyzeReport:
    def test_template_without_reply(self, make_report, now) -> None:
        result = analyze_report(make_report(3, "cardiology", id="r9"), now=now)
        assert result["id"] == "analysis_r9"
        assert result["reportId"] == "r9"
        assert result["source"] == "template"
        assert result["analysisDate"] == to_iso(now)
        assert result["severity"] == "normal"

    def test_valid_reply_used(self, make_report, now) -> None:
        result = analyze_report(make_report(3, "cardiology"), raw_response=json.dumps(VALID_REPLY), now=now)
        assert result["source"] == "llm"
        assert result["keyFindings"] == ["Mild LV hypertrophy"]

    def test_invalid_reply_falls_back_with_warning(self, make_report, now, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="portal.analysis.report_analysis"):
            result = analyze_report(make_report(3, "neurology"), raw_response="{not json", now=now)
        assert result["source"] == "template"
        assert result["keyFindings"] == template_for("neurology")["keyFindings"]
        assert "using template" in caplog.text

    def test_extra_reply_keys_dropped(self, make_report, now) -> None:
        reply = dict(VALID_REPLY, diagnosis="should not leak")
        result = analyze_report(make_report(1), raw_response=json.dumps(reply), now=now)
        assert "diagnosis" not in result


class TestPrompts:
    def test_analysis_prompt_fields(self, make_report) -> None:
        report = make_report(2, "pathology", "St. Mary's", report_date="2026-01-12", file_name="cbc.pdf")
        prompt = build_analysis_prompt(report)
        assert "Report Type: pathology" in prompt
        assert "Hospital: St. Mary's" in prompt
        assert "Date: 2026-01-12" in prompt
        assert "Description: No description provided" in prompt
        assert "File Name: cbc.pdf" in prompt

    def test_system_prompt_describes_schema(self) -> None:
        text = system_prompt()
        assert '"keyFindings"' in text
        assert "normal|mild|moderate|severe" in text


@pytest.mark.parametrize("priority, days", [("high", 7), ("medium", 30), ("low", 90), ("unknown", 90)])
def test_follow_up_due_date(priority, days, now) -> None:
    assert follow_up_due_date(priority, now) == to_iso(now + timedelta(days=days))
