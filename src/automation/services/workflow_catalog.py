"""Closed catalog of workflow types: runner step lists and payload shapes."""

from datetime import datetime
from typing import Any

from src.automation.models import WorkflowExecution, WorkflowType

PROPERTY_INGESTION_STEPS = (
    "validate_property_data",
    "scrape_additional_data",
    "enrich_with_external_apis",
    "generate_ai_content",
    "process_images",
    "create_social_campaign",
    "setup_chat_agent",
    "send_notifications",
)

# Content type requested by the caller -> runner step
CONTENT_GENERATION_STEPS = {
    "ai_description": "generate_ai_description",
    "image_restyling": "generate_restyled_images",
    "social_campaign": "create_social_campaign",
    "pdf_brochure": "generate_pdf_brochure",
    "microsite": "create_microsite",
    "email_templates": "generate_email_templates",
}

SOCIAL_CAMPAIGN_STEPS = (
    "generate_campaign_strategy",
    "create_content_calendar",
    "generate_post_content",
    "create_visual_assets",
    "schedule_posts",
    "setup_monitoring",
)

EMAIL_AUTOMATION_STEPS = {
    "welcome_sequence": ("send_welcome_email", "schedule_follow_up"),
    "lead_nurture": ("send_nurture_emails", "track_engagement"),
    "property_alerts": ("check_new_properties", "send_alerts"),
    "market_updates": ("gather_market_data", "send_updates"),
}
DEFAULT_EMAIL_STEPS = ("send_email",)

BRAND_PROCESSING_STEPS = (
    "validate_brand_assets",
    "process_logo",
    "generate_color_palette",
    "create_brand_guidelines",
    "generate_email_templates",
    "update_social_templates",
    "apply_brand_to_existing_content",
)

DATA_ENRICHMENT_STEPS = (
    "load_property_record",
    "query_data_providers",
    "merge_enrichment_results",
    "update_property_record",
)

LEAD_PROCESSING_STEPS = (
    "validate_lead_data",
    "enrich_lead_profile",
    "send_welcome_email",
    "notify_agent",
    "schedule_follow_up",
    "add_to_crm",
    "trigger_nurture_sequence",
)

ANALYTICS_COLLECTION_STEPS = (
    "collect_listing_metrics",
    "collect_campaign_metrics",
    "aggregate_metrics",
    "store_analytics_snapshot",
)

DEFAULT_CAMPAIGN_DURATION_DAYS = 70
DEFAULT_POSTS_PER_DAY = 3
DEFAULT_PLATFORMS = ("instagram", "facebook", "linkedin")


def content_generation_steps(content_types: list[str] | None) -> list[str]:
    """Steps for the requested content types; all of them when none are given.

    Unrecognised content types are ignored.
    """
    if not content_types:
        return list(CONTENT_GENERATION_STEPS.values())
    return [
        CONTENT_GENERATION_STEPS[content_type]
        for content_type in content_types
        if content_type in CONTENT_GENERATION_STEPS
    ]


def email_automation_steps(automation_type: str | None) -> list[str]:
    return list(EMAIL_AUTOMATION_STEPS.get(automation_type or "", DEFAULT_EMAIL_STEPS))


def steps_for(workflow_type: WorkflowType, input_data: dict[str, Any] | None = None) -> list[str]:
    """Ordered runner steps for a workflow type.

    Args:
        workflow_type: The automation to run.
        input_data: Stored request snapshot. Only content generation and
            email automation look at it.
    """
    data = input_data or {}
    match workflow_type:
        case WorkflowType.PROPERTY_INGESTION:
            return list(PROPERTY_INGESTION_STEPS)
        case WorkflowType.CONTENT_GENERATION:
            return content_generation_steps(data.get("contentTypes"))
        case WorkflowType.SOCIAL_CAMPAIGN:
            return list(SOCIAL_CAMPAIGN_STEPS)
        case WorkflowType.EMAIL_AUTOMATION:
            return email_automation_steps(data.get("automationType"))
        case WorkflowType.BRAND_PROCESSING:
            return list(BRAND_PROCESSING_STEPS)
        case WorkflowType.DATA_ENRICHMENT:
            return list(DATA_ENRICHMENT_STEPS)
        case WorkflowType.LEAD_PROCESSING:
            return list(LEAD_PROCESSING_STEPS)
        case WorkflowType.ANALYTICS_COLLECTION:
            return list(ANALYTICS_COLLECTION_STEPS)


def campaign_config(config: dict[str, Any] | None, start: datetime) -> dict[str, Any]:
    """Social campaign settings with defaults filled in. Caller values win."""
    return {
        "duration": DEFAULT_CAMPAIGN_DURATION_DAYS,
        "postsPerDay": DEFAULT_POSTS_PER_DAY,
        "platforms": list(DEFAULT_PLATFORMS),
        "startDate": start.isoformat(),
        **(config or {}),
    }


def _type_fields(
    workflow_type: WorkflowType, data: dict[str, Any], created_at: datetime
) -> dict[str, Any]:
    match workflow_type:
        case WorkflowType.PROPERTY_INGESTION | WorkflowType.DATA_ENRICHMENT:
            return {"propertyData": data}
        case WorkflowType.CONTENT_GENERATION:
            return {"contentTypes": list(data.get("contentTypes") or [])}
        case WorkflowType.SOCIAL_CAMPAIGN:
            return {"campaignConfig": campaign_config(data.get("campaignConfig", data), created_at)}
        case WorkflowType.EMAIL_AUTOMATION:
            trigger_data = {k: v for k, v in data.items() if k != "automationType"}
            return {"automationType": data.get("automationType"), "triggerData": trigger_data}
        case WorkflowType.BRAND_PROCESSING:
            return {"brandData": data}
        case WorkflowType.LEAD_PROCESSING:
            return {"leadData": data}
        case WorkflowType.ANALYTICS_COLLECTION:
            return {"collectionConfig": data}


def build_runner_payload(execution: WorkflowExecution) -> dict[str, Any]:
    """Webhook body for one dispatch attempt.

    Built from the stored (sanitized) snapshot, so every attempt for the
    same execution sends the same request.
    """
    workflow_type = execution.workflow_type_enum
    data = dict(execution.input_data or {})
    return {
        "executionId": str(execution.id),
        "tenantId": str(execution.tenant_id),
        "subjectId": str(execution.subject_id) if execution.subject_id else None,
        **_type_fields(workflow_type, data, execution.created_at),
        "steps": steps_for(workflow_type, data),
    }
