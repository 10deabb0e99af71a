from streamledger.integration.events import InMemoryEventSink, JsonlEventSink, NullEventSink


def test_in_memory_sequence_and_filters() -> None:
    sink = InMemoryEventSink()
    sink.publish("stream_created", {"stream_id": 1})
    sink.publish("fee_config_updated", {"admin": "a"})
    sink.publish("tokens_withdrawn", {"stream_id": 1, "amount": 5})
    assert [r.seq for r in sink.records()] == [0, 1, 2]
    assert [r.topic for r in sink.for_stream(1)] == ["stream_created", "tokens_withdrawn"]
    assert len(sink.records("fee_config_updated")) == 1
    assert sink.records("fee_config_updated")[0].stream_id is None
    sink.clear()
    assert len(sink) == 0


def test_payload_is_copied() -> None:
    sink = InMemoryEventSink()
    payload = {"stream_id": 1}
    sink.publish("stream_created", payload)
    payload["stream_id"] = 2
    assert sink.records()[0].stream_id == 1


def test_jsonl_appends_and_resumes(tmp_path) -> None:
    path = tmp_path / "log" / "events.jsonl"
    sink = JsonlEventSink(path)
    sink.publish("stream_created", {"stream_id": 3, "deposited_amount": 10_000})
    sink.publish("tokens_withdrawn", {"stream_id": 4, "amount": 1})

    reopened = JsonlEventSink(path)
    reopened.publish("stream_cancelled", {"stream_id": 3})
    assert [r.seq for r in reopened.records()] == [0, 1, 2]
    assert [r.topic for r in reopened.for_stream(3)] == ["stream_created", "stream_cancelled"]
    assert reopened.records("tokens_withdrawn")[0].payload == {"stream_id": 4, "amount": 1}
    assert len(path.read_text(encoding="utf-8").splitlines()) == 3


def test_null_sink_accepts_anything() -> None:
    assert NullEventSink().publish("anything", {}) is None
