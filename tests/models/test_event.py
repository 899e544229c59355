"""Tests for decoded event models."""

import pytest
from pydantic import ValidationError

from danmaku.models.event import CMD_DANMU_MSG, CMD_SEND_GIFT, Danmaku, DanmakuEvent, EventData
from danmaku.testing import danmu_payload, gift_payload


class TestDanmakuEvent:
    """Tests for DanmakuEvent construction and defaults."""

    def test_defaults(self) -> None:
        event = DanmakuEvent()
        assert event.command == ""
        assert event.data == EventData()
        assert event.info == []

    def test_reads_wire_aliases(self) -> None:
        event = DanmakuEvent.from_payload(gift_payload("bob", "辣条"))
        assert event.command == CMD_SEND_GIFT
        assert event.data.username == "bob"
        assert event.data.action == "投喂"
        assert event.data.gift_name == "辣条"

    def test_accepts_python_field_names(self) -> None:
        event = DanmakuEvent(command="X", info=[1, 2])
        assert event.command == "X"
        assert event.info == [1, 2]

    def test_null_fields_fall_back_to_defaults(self) -> None:
        event = DanmakuEvent.from_payload({"cmd": None, "data": None, "info": None})
        assert event.command == ""
        assert event.data.username == ""
        assert event.info == []

    def test_non_object_data_is_ignored(self) -> None:
        event = DanmakuEvent.from_payload({"cmd": "ROOM_RANK", "data": [1, 2, 3]})
        assert event.data == EventData()

    def test_unknown_keys_are_ignored(self) -> None:
        event = DanmakuEvent.from_payload({"cmd": "A", "roomid": 5, "data": {"uid": 1}})
        assert event.command == "A"

    def test_numeric_data_fields_become_strings(self) -> None:
        event = DanmakuEvent.from_payload({"data": {"uname": 123, "action": None}})
        assert event.data.username == "123"
        assert event.data.action == ""

    def test_non_list_info_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DanmakuEvent.from_payload({"info": "hello"})

    def test_is_frozen(self) -> None:
        event = DanmakuEvent(command="A")
        with pytest.raises(ValidationError):
            event.command = "B"  # type: ignore[misc]

    def test_dump_uses_wire_names(self) -> None:
        dumped = DanmakuEvent.from_payload(gift_payload("bob", "辣条")).model_dump(by_alias=True)
        assert dumped["cmd"] == CMD_SEND_GIFT
        assert dumped["data"]["uname"] == "bob"
        assert dumped["data"]["giftName"] == "辣条"


class TestDanmakuAccessors:
    """Tests for the chat and gift accessors."""

    def test_as_danmaku(self) -> None:
        event = DanmakuEvent.from_payload(danmu_payload("alice", "hello"))
        assert event.is_danmaku()
        assert event.as_danmaku() == Danmaku(username="alice", text="hello")

    def test_as_danmaku_for_other_commands(self) -> None:
        assert DanmakuEvent(command=CMD_SEND_GIFT).as_danmaku() is None

    @pytest.mark.parametrize(
        ("info", "expected"),
        [
            ([], Danmaku(username="", text="")),
            ([None, "hi"], Danmaku(username="", text="hi")),
            ([None, "hi", "not a list"], Danmaku(username="", text="hi")),
            ([None, 42, [0, "alice"]], Danmaku(username="alice", text="")),
            ([None, "hi", [0]], Danmaku(username="", text="hi")),
        ],
    )
    def test_as_danmaku_tolerates_short_info(self, info: list, expected: Danmaku) -> None:
        event = DanmakuEvent(command=CMD_DANMU_MSG, info=info)
        assert event.as_danmaku() == expected

    def test_display_text_for_chat(self) -> None:
        event = DanmakuEvent.from_payload(danmu_payload("alice", "hello"))
        assert event.display_text() == "alice: hello"

    def test_display_text_for_gift(self) -> None:
        event = DanmakuEvent.from_payload(gift_payload("bob", "小心心", action="赠送"))
        assert event.is_send_gift()
        assert event.display_text() == "bob: 赠送 小心心"

    def test_display_text_for_gift_with_missing_data(self) -> None:
        assert DanmakuEvent(command=CMD_SEND_GIFT).display_text() == ":  "

    def test_display_text_for_other_commands(self) -> None:
        assert DanmakuEvent(command="INTERACT_WORD").display_text() is None
