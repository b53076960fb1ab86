from __future__ import annotations

import pytest

from mnemo.core.orchestration.resolver import resolve_command


def test_search_strips_verb_and_collects_type() -> None:
    command = resolve_command("search for project notes")

    assert command.tool == "memory"
    assert command.action == "search"
    assert command.args["query"] == "project notes"
    assert command.args["limit"] == 10
    assert command.args["type"] == ["project"]
    assert command.confidence == pytest.approx(0.9)


def test_search_for_onboarding_docs_filters_to_reference() -> None:
    command = resolve_command("search for onboarding docs")

    assert command.tool == "memory"
    assert command.action == "search"
    assert command.args == {"query": "onboarding docs", "limit": 10, "type": ["reference"]}


def test_create_launch_plan_with_title_and_content() -> None:
    command = resolve_command('create memory "Launch Plan" "Ship v2 by Friday"')

    assert command.tool == "memory"
    assert command.action == "create"
    assert command.args == {
        "title": "Launch Plan",
        "content": "Ship v2 by Friday",
        "memory_type": "context",
        "tags": [],
    }
    assert command.confidence == pytest.approx(0.95)


def test_search_drops_trailing_scope_and_reads_limit() -> None:
    command = resolve_command("find deployment steps in memories limit 3")

    assert command.action == "search"
    assert command.args["query"] == "deployment steps"
    assert command.args["limit"] == 3


def test_create_with_two_quoted_segments_uses_them_verbatim() -> None:
    command = resolve_command('create memory "Standup" "Discussed the release plan" #team')

    assert command.action == "create"
    assert command.args["title"] == "Standup"
    assert command.args["content"] == "Discussed the release plan"
    assert command.args["memory_type"] == "context"
    assert command.args["tags"] == ["team"]
    assert command.confidence == pytest.approx(0.95)


def test_create_with_one_quoted_segment_takes_first_sentence_as_title() -> None:
    command = resolve_command('save "Ship it friday. Then rest for a week."')

    assert command.args["title"] == "Ship it friday"
    assert command.args["content"] == "Ship it friday. Then rest for a week."


def test_create_without_quotes_uses_remaining_text() -> None:
    command = resolve_command("create memory")

    assert command.action == "create"
    assert command.args["title"] == "New Memory"
    assert command.args["content"] == "Memory created via orchestrator"


def test_create_topic_uses_name_after_marker() -> None:
    command = resolve_command("create a topic named research")

    assert command.action == "create-topic"
    assert command.args["name"] == "research"


def test_list_defaults_to_twenty_and_reads_tags() -> None:
    command = resolve_command("list my memories tagged with ops")

    assert command.action == "list"
    assert command.args["limit"] == 20
    assert command.args["tags"] == ["ops"]


def test_list_topics_and_stats() -> None:
    assert resolve_command("topics").action == "list-topics"
    stats = resolve_command("memory statistics")
    assert stats.action == "stats"
    assert stats.confidence == pytest.approx(0.95)


def test_delete_with_id_has_high_confidence() -> None:
    command = resolve_command("delete memory 3f2a9c10-77aa")

    assert command.action == "delete"
    assert command.args["id"] == "3f2a9c10-77aa"
    assert command.confidence == pytest.approx(0.9)


def test_delete_without_id_lowers_confidence_and_leaves_id_absent() -> None:
    command = resolve_command("delete that one")

    assert command.action == "delete"
    assert "id" not in command.args
    assert command.confidence == pytest.approx(0.6)


def test_memory_vocabulary_without_verb_falls_back_to_search() -> None:
    command = resolve_command("remember the plan")

    assert command.action == "search"
    assert command.args["query"] == "remember the plan"
    assert command.confidence == pytest.approx(0.8)


def test_original_input_is_kept_unchanged() -> None:
    text = "  Search for Quarterly Goals  "
    command = resolve_command(text)

    assert command.original_input == text
    assert command.args["query"] == "Quarterly Goals"
