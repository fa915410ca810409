"""Tests for the workflow catalog and runner payloads."""

from datetime import datetime

import pytest

from src.automation.core.exceptions import UnknownWorkflowTypeError
from src.automation.models import WorkflowType
from src.automation.services.workflow_catalog import (
    build_runner_payload,
    content_generation_steps,
    email_automation_steps,
    steps_for,
)
from tests.factories import WorkflowExecutionFactory

pytestmark = pytest.mark.unit


class TestWorkflowType:
    def test_webhook_path_is_hyphenated(self):
        assert WorkflowType.CONTENT_GENERATION.webhook_path == "content-generation"

    @pytest.mark.parametrize("name", ["content_generation", "content-generation"])
    def test_parse_accepts_both_spellings(self, name):
        assert WorkflowType.parse(name) is WorkflowType.CONTENT_GENERATION

    def test_parse_rejects_unknown(self):
        with pytest.raises(UnknownWorkflowTypeError):
            WorkflowType.parse("mortgage_approval")


class TestSteps:
    @pytest.mark.parametrize("workflow_type", list(WorkflowType))
    def test_every_type_has_steps(self, workflow_type):
        assert steps_for(workflow_type)

    def test_property_ingestion_order(self):
        assert steps_for(WorkflowType.PROPERTY_INGESTION) == [
            "validate_property_data",
            "scrape_additional_data",
            "enrich_with_external_apis",
            "generate_ai_content",
            "process_images",
            "create_social_campaign",
            "setup_chat_agent",
            "send_notifications",
        ]

    def test_content_generation_all_when_empty(self):
        assert content_generation_steps([]) == [
            "generate_ai_description",
            "generate_restyled_images",
            "create_social_campaign",
            "generate_pdf_brochure",
            "create_microsite",
            "generate_email_templates",
        ]

    def test_content_generation_narrowed(self):
        assert content_generation_steps(["pdf_brochure", "ai_description", "hologram"]) == [
            "generate_pdf_brochure",
            "generate_ai_description",
        ]

    @pytest.mark.parametrize(
        ("automation_type", "expected"),
        [
            ("welcome_sequence", ["send_welcome_email", "schedule_follow_up"]),
            ("lead_nurture", ["send_nurture_emails", "track_engagement"]),
            ("property_alerts", ["check_new_properties", "send_alerts"]),
            ("market_updates", ["gather_market_data", "send_updates"]),
            ("newsletter", ["send_email"]),
            (None, ["send_email"]),
        ],
    )
    def test_email_automation(self, automation_type, expected):
        assert email_automation_steps(automation_type) == expected


class TestBuildRunnerPayload:
    def test_common_fields(self):
        execution = WorkflowExecutionFactory.build()

        payload = build_runner_payload(execution)

        assert payload["executionId"] == str(execution.id)
        assert payload["tenantId"] == str(execution.tenant_id)
        assert payload["subjectId"] == str(execution.subject_id)
        assert payload["contentTypes"] == ["ai_description"]
        assert payload["steps"] == ["generate_ai_description"]

    def test_social_campaign_defaults(self):
        created_at = datetime(2026, 3, 1, 9, 30)
        execution = WorkflowExecutionFactory.build(
            workflow_type=WorkflowType.SOCIAL_CAMPAIGN.value,
            input_data={"campaignConfig": {"postsPerDay": 5}},
            created_at=created_at,
        )

        config = build_runner_payload(execution)["campaignConfig"]

        assert config == {
            "duration": 70,
            "postsPerDay": 5,
            "platforms": ["instagram", "facebook", "linkedin"],
            "startDate": "2026-03-01T09:30:00",
        }

    def test_email_automation_splits_trigger_data(self):
        execution = WorkflowExecutionFactory.build(
            workflow_type=WorkflowType.EMAIL_AUTOMATION.value,
            input_data={"automationType": "lead_nurture", "leadId": "L-1"},
        )

        payload = build_runner_payload(execution)

        assert payload["automationType"] == "lead_nurture"
        assert payload["triggerData"] == {"leadId": "L-1"}
        assert payload["steps"] == ["send_nurture_emails", "track_engagement"]

    def test_same_payload_every_attempt(self):
        """Retries re-send the stored snapshot unchanged."""
        execution = WorkflowExecutionFactory.build(
            workflow_type=WorkflowType.SOCIAL_CAMPAIGN.value,
            input_data={},
        )

        assert build_runner_payload(execution) == build_runner_payload(execution)
