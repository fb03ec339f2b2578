"""
Unit tests for ContextResolver.
"""

import pytest

from assistant_relay.conversation.context import ContextResolver
from assistant_relay.conversation.models import ReplyTarget, SlackMessageEvent
from tests.support.events import make_message_payload

pytestmark = pytest.mark.unit


def _event(**kwargs) -> SlackMessageEvent:
    event = SlackMessageEvent.from_payload(make_message_payload(**kwargs))
    assert event is not None
    return event


class TestConversationKey:
    def test_key_is_deterministic(self):
        resolver = ContextResolver()
        keys = {resolver.conversation_key("U1", "C1") for _ in range(10)}
        assert keys == {"U1-C1"}

    def test_distinct_pairs_get_distinct_keys(self):
        resolver = ContextResolver()
        pairs = [("U1", "C1"), ("U1", "C2"), ("U2", "C1"), ("U1", "DM")]
        keys = [resolver.conversation_key(actor, surface) for actor, surface in pairs]
        assert len(set(keys)) == len(pairs)

    def test_direct_message_uses_dm_surface(self):
        resolver = ContextResolver()
        event = _event(text="What's 2+2?", user="U1", channel="D0123", channel_type="im")
        assert resolver.key_for(event) == "U1-DM"

    def test_channel_message_uses_channel_id(self):
        resolver = ContextResolver()
        event = _event(text="hi", user="U1", channel="C999", channel_type="channel")
        assert resolver.key_for(event) == "U1-C999"

    def test_channel_type_inferred_from_dm_channel_id(self):
        event = _event(text="hi", user="U1", channel="D42", channel_type=None)
        assert ContextResolver().key_for(event) == "U1-DM"


class TestReplyTarget:
    def test_direct_reply_goes_to_actor_without_thread(self):
        event = _event(text="hi", user="U1", channel="D1", channel_type="im")
        assert ContextResolver.reply_target(event) == ReplyTarget(channel="U1", thread_ts=None)

    def test_channel_reply_is_threaded_on_message_ts(self):
        event = _event(text="hi", user="U1", channel="C1", channel_type="channel", ts="111.222")
        assert ContextResolver.reply_target(event) == ReplyTarget(channel="C1", thread_ts="111.222")

    def test_thread_reply_is_anchored_on_thread_root(self):
        event = _event(
            text="follow up",
            user="U1",
            channel="C1",
            channel_type="channel",
            ts="333.444",
            thread_ts="111.222",
        )
        assert ContextResolver.reply_target(event) == ReplyTarget(channel="C1", thread_ts="111.222")
