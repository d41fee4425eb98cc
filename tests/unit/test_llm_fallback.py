from pydantic import BaseModel

from llm_gateway import Parsed, Unparsed, generate_with_fallback, parse_structured


class Pair(BaseModel):
    left: int
    right: int


def _scripted(*replies):
    calls = []
    queue = list(replies)

    def generator(messages, **options):
        calls.append(messages)
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    return generator, calls


def test_parse_structured_tags_results():
    parsed = parse_structured(Pair, '```json\n{"left": 1, "right": 2}\n```')
    assert isinstance(parsed, Parsed)
    assert parsed.record == Pair(left=1, right=2)

    unparsed = parse_structured(Pair, "left is one")
    assert isinstance(unparsed, Unparsed)
    assert unparsed.raw == "left is one"

    assert isinstance(parse_structured(Pair, None), Unparsed)
    assert isinstance(parse_structured(Pair, '{"left": 1}'), Unparsed)


def test_primary_accepted_without_retry():
    generator, calls = _scripted("fine?")
    result = generate_with_fallback(
        generator, [{"role": "user", "content": "a"}], purpose="t", fallback="fb", retry_messages=[{"role": "user", "content": "b"}]
    )
    assert (result.text, result.source) == ("fine?", "primary")
    assert len(calls) == 1


def test_rejected_primary_retries_once():
    generator, calls = _scripted("bad", "good?")
    result = generate_with_fallback(
        generator,
        [{"role": "user", "content": "a"}],
        purpose="t",
        fallback="fb",
        accept=lambda text: text.endswith("?"),
        retry_messages=[{"role": "user", "content": "b"}],
    )
    assert (result.text, result.source) == ("good?", "retry")
    assert calls[1] == [{"role": "user", "content": "b"}]


def test_rejected_retry_degrades():
    generator, calls = _scripted("bad", "still bad")
    result = generate_with_fallback(
        generator,
        [{"role": "user", "content": "a"}],
        purpose="t",
        fallback="fb",
        accept=lambda text: text.endswith("?"),
        retry_messages=[{"role": "user", "content": "b"}],
    )
    assert result.text == "fb"
    assert result.degraded
    assert len(calls) == 2


def test_error_skips_retry_unless_requested():
    generator, calls = _scripted(TimeoutError("slow"))
    result = generate_with_fallback(
        generator, [{"role": "user", "content": "a"}], purpose="t", fallback="fb", retry_messages=[{"role": "user", "content": "b"}]
    )
    assert result.source == "fallback"
    assert len(calls) == 1

    generator, calls = _scripted(TimeoutError("slow"), "ok")
    result = generate_with_fallback(
        generator,
        [{"role": "user", "content": "a"}],
        purpose="t",
        fallback="fb",
        retry_messages=[{"role": "user", "content": "b"}],
        retry_on_error=True,
    )
    assert (result.text, result.source) == ("ok", "retry")
