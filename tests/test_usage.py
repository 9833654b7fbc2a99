from claus import Usage, UsageTotals


def test_from_dict_reads_known_counters():
    usage = Usage.from_dict({
        "input_tokens": 10,
        "output_tokens": "5",
        "cache_read_input_tokens": 3,
        "server_tool_use": {"web_search_requests": 1},
    })

    assert usage == Usage(input_tokens=10, output_tokens=5, cache_read_input_tokens=3)
    assert usage.total_tokens == 15
    assert usage.to_dict() == {"input_tokens": 10, "output_tokens": 5, "cache_read_input_tokens": 3}


def test_from_dict_ignores_bad_values():
    assert Usage.from_dict(None) is None
    assert Usage.from_dict([1]) is None
    usage = Usage.from_dict({"input_tokens": True, "output_tokens": "lots"})
    assert usage == Usage()
    assert usage.total_tokens is None
    assert Usage.from_dict({"input_tokens": float("inf"), "output_tokens": float("nan")}) == Usage()


def test_merge_keeps_earlier_counters_not_reported_again():
    start = Usage(input_tokens=25, output_tokens=1, cache_read_input_tokens=4)
    final = start.merge(Usage(output_tokens=15))

    assert final == Usage(input_tokens=25, output_tokens=15, cache_read_input_tokens=4)
    assert start.merge(None) is start


def test_totals_accumulate_across_calls():
    totals = UsageTotals()
    totals.accumulate(Usage(input_tokens=10, output_tokens=5))
    totals.accumulate(None)
    totals.accumulate(Usage(input_tokens=7, output_tokens=3, cache_creation_input_tokens=2))

    assert totals.calls == 3
    assert totals.reported_calls == 2
    assert totals.input_tokens == 17
    assert totals.output_tokens == 8
    assert totals.cache_creation_input_tokens == 2
    assert totals.total_tokens == 25
