from __future__ import annotations

from streamlights.config.schema import EventSubConfig
from streamlights.eventsub.subscriptions import build_subscription_requests


def test_one_request_per_configured_event_type() -> None:
    config = EventSubConfig()

    requests = build_subscription_requests(
        session_id="abc123",
        broadcaster_id="42",
        event_types=config.event_types,
    )

    assert [r.type for r in requests] == config.event_types
    assert all(r.session_id == "abc123" for r in requests)
    assert requests[0].to_dict() == {
        "type": "channel.channel_points_custom_reward_redemption.add",
        "version": "1",
        "condition": {"broadcaster_user_id": "42"},
        "transport": {"method": "websocket", "session_id": "abc123"},
    }


def test_chat_subscription_added_in_dev_mode_with_user_condition() -> None:
    requests = build_subscription_requests(
        session_id="s",
        broadcaster_id="42",
        event_types=["channel.cheer"],
        include_chat=True,
    )

    assert [r.type for r in requests] == ["channel.cheer", "channel.chat.message"]
    assert requests[1].condition == {"broadcaster_user_id": "42", "user_id": "42"}


def test_duplicate_and_blank_event_types_are_skipped() -> None:
    requests = build_subscription_requests(
        session_id="s",
        broadcaster_id="42",
        event_types=["channel.cheer", " ", "channel.cheer", "stream.online"],
        version="2",
    )

    assert [r.type for r in requests] == ["channel.cheer", "stream.online"]
    assert {r.version for r in requests} == {"2"}
